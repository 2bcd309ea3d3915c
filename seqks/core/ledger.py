"""
seqks.core.ledger
=================

Append-only event ledger on top of ibis-framework.

- Backend-agnostic via ibis-framework (duckdb by default, polars optional)
- JSON payloads with type-based wrap/unwrap through `PayloadTypeRegistry`
- Automatic `seqks_version` tracking and a monotone `seq` column so
  events read back in the order they were written

Examples:
---------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> from seqks.core.names import Namespace
>>>
>>> conn = create_test_connection("duckdb")  # doctest: +SKIP
>>> ledger = Ledger(conn)  # doctest: +SKIP
>>> ledger.write_event(
...     time_index="t1", namespace=Namespace.OBS, kind="observation",
...     experiment_id="exp1", step_key="s1", payload_type="KSObsBatch",
...     payload={"a": [0.1, 0.7], "b": [0.4, 0.2]}
... )  # doctest: +SKIP
>>> ledger.latest(namespace=Namespace.OBS)["payload"]["a"]  # doctest: +SKIP
[0.1, 0.7]
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import json
import logging
import uuid as uuid_module

import ibis
import ibis.expr.datatypes as dt
import pandas as pd
from ibis import BaseBackend
from ibis.expr.types import Table

from seqks.core.names import Namespace, ExperimentId, StepKey, TimeIndex
from seqks.__version__ import __version__

logger = logging.getLogger(__name__)

NamespaceLike = Union[Namespace, str]


def get_ledger_schema() -> ibis.Schema:
    """Get the standardized ledger schema using ibis.Schema."""
    return ibis.schema(
        [
            ("uuid", dt.string),
            ("ledger_name", dt.string),
            ("seq", dt.int64),
            ("time_index", dt.string),
            ("ts", dt.Timestamp(timezone="UTC")),
            ("namespace", dt.string),
            ("kind", dt.string),
            ("entity", dt.string),
            ("snapshot_id", dt.string),
            ("tag", dt.string),
            ("payload_type", dt.string),
            ("payload", dt.string),  # JSON text
            ("seqks_version", dt.string),
        ]
    )


class PayloadType(ABC):
    """Abstract base class for payload type handlers."""

    @abstractmethod
    def wrap(self, data: Any) -> str:
        """Convert data to JSON string for storage."""

    @abstractmethod
    def unwrap(self, json_str: str) -> Any:
        """Convert JSON string back to data."""


class JSONPayloadType(PayloadType):
    """Default JSON payload type handler."""

    def wrap(self, data: Any) -> str:
        return json.dumps(data, separators=(",", ":"))

    def unwrap(self, json_str: str) -> Any:
        return json.loads(json_str) if json_str else {}


class PayloadTypeRegistry:
    """Registry for payload type handlers."""

    _handlers: Dict[str, PayloadType] = {}
    _default_handler = JSONPayloadType()

    @classmethod
    def register(cls, payload_type: str, handler: PayloadType) -> None:
        """Register a payload type handler."""
        cls._handlers[payload_type] = handler

    @classmethod
    def get_handler(cls, payload_type: str) -> PayloadType:
        """Get handler for payload type, fallback to default JSON handler."""
        return cls._handlers.get(payload_type, cls._default_handler)

    @classmethod
    def wrap(cls, payload_type: str, data: Any) -> str:
        return cls.get_handler(payload_type).wrap(data)

    @classmethod
    def unwrap(cls, payload_type: str, json_str: str) -> Any:
        return cls.get_handler(payload_type).unwrap(json_str)


class Ledger:
    """
    Append-only event ledger over an ibis backend.

    Responsibilities:
    - Schema guarantee and table lifecycle
    - Automatic ledger_name, seq and seqks_version injection
    - Payload wrapping/unwrapping via PayloadTypeRegistry

    Query construction and aggregation are left to callers, who build ibis
    expressions on `ledger.table`; `events()` and `latest()` cover the
    common filtered reads.
    """

    def __init__(
        self,
        connection: BaseBackend,
        ledger_name: str = "default",
        table_name: str = "ledger",
    ):
        """Initialize ledger with connection and names.

        Parameters
        ----------
        connection : BaseBackend
            Ibis backend connection
        ledger_name : str
            Name of this ledger instance (several ledgers may share a table)
        table_name : str
            Name of the table in the backend
        """
        self.connection = connection
        self.ledger_name = ledger_name
        self.table_name = table_name
        self._ensure_table_exists()

    def _ensure_table_exists(self) -> None:
        """Create an empty table with the ledger schema if it doesn't exist."""
        if self.table_name in self.connection.list_tables():
            return

        self.connection.create_table(
            self.table_name, schema=get_ledger_schema(), overwrite=True
        )

    @property
    def table(self) -> Table:
        """
        Ibis table filtered by ledger name.

        This is the main interface for querying: callers build ibis
        expressions for filtering, aggregation, etc. on top of it.
        """
        table = self.connection.table(self.table_name)
        return table.filter(table.ledger_name == self.ledger_name)

    @property
    def raw_table(self) -> Table:
        """Raw ibis table without ledger filtering (for cross-ledger analysis)."""
        return self.connection.table(self.table_name)

    def write_event(
        self,
        *,
        time_index: Union[TimeIndex, str],
        namespace: NamespaceLike,
        kind: str,
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        payload_type: str,
        payload: Any,
        tag: Optional[str] = None,
        ts: Optional[datetime] = None,
    ) -> None:
        """Write a typed event to the ledger.

        Parameters
        ----------
        time_index : TimeIndex or str
            Time index for the event
        namespace : NamespaceLike
            Event namespace
        kind : str
            Event kind/type
        experiment_id : ExperimentId or str
            Experiment identifier (stored as `entity`)
        step_key : StepKey or str
            Step key within experiment (stored as `snapshot_id`)
        payload_type : str
            Type of payload for wrap/unwrap handling
        payload : Any
            Payload data to be wrapped
        tag : str, optional
            Optional tag for filtering
        ts : datetime, optional
            Timestamp, defaults to now (UTC)
        """
        if ts is None:
            ts = datetime.now(timezone.utc)
        elif ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)

        existing = self.raw_table.to_pandas()

        record = {
            "uuid": str(uuid_module.uuid4()),
            "ledger_name": self.ledger_name,
            "seq": len(existing),
            "time_index": str(time_index),
            "ts": ts,
            "namespace": str(namespace),
            "kind": kind,
            "entity": str(experiment_id),
            "snapshot_id": str(step_key),
            "tag": tag or "",
            "payload_type": payload_type,
            "payload": PayloadTypeRegistry.wrap(payload_type, payload),
            "seqks_version": __version__,
        }

        new_data = pd.concat([existing, pd.DataFrame([record])], ignore_index=True)
        self.connection.create_table(
            self.table_name,
            ibis.memtable(new_data, schema=get_ledger_schema()),
            overwrite=True,
        )
        logger.debug(
            "ledger %s: %s/%s for %s at %s",
            self.ledger_name,
            record["namespace"],
            kind,
            record["entity"],
            record["time_index"],
        )

    def unwrap_payload(self, payload_type: str, payload_json: str) -> Any:
        """Unwrap payload using PayloadTypeRegistry."""
        return PayloadTypeRegistry.unwrap(payload_type, payload_json)

    def unwrap_results(self, df: Any) -> List[Dict[str, Any]]:
        """
        Unwrap payloads in query results.

        Takes a pandas DataFrame from ibis query execution and unwraps the
        payload column using payload_type.
        """
        records: List[Dict[str, Any]] = df.to_dict("records")

        for record in records:
            if "payload" in record and "payload_type" in record:
                record["payload"] = self.unwrap_payload(
                    record["payload_type"], record["payload"]
                )

        return records

    def events(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        experiment_id: Optional[Union[ExperimentId, str]] = None,
        kind: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return matching events in write order, with unwrapped payloads."""
        table = self.table
        predicates = []
        if namespace is not None:
            predicates.append(table.namespace == str(namespace))
        if experiment_id is not None:
            predicates.append(table.entity == str(experiment_id))
        if kind is not None:
            predicates.append(table.kind == kind)
        if tag is not None:
            predicates.append(table.tag == tag)

        query = table.filter(*predicates) if predicates else table
        return self.unwrap_results(query.order_by("seq").execute())

    def latest(
        self,
        *,
        namespace: Optional[NamespaceLike] = None,
        experiment_id: Optional[Union[ExperimentId, str]] = None,
        kind: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return the most recent matching event (or None)."""
        found = self.events(
            namespace=namespace, experiment_id=experiment_id, kind=kind, tag=tag
        )
        return found[-1] if found else None


def create_test_connection(backend: str = "duckdb") -> BaseBackend:
    """Create an in-memory connection for tests and notebooks.

    Parameters
    ----------
    backend : str
        Backend type ("duckdb" or "polars")
    """
    if backend == "duckdb":
        return ibis.duckdb.connect(":memory:")
    elif backend == "polars":
        return ibis.polars.connect()
    else:
        raise ValueError(f"Unsupported backend: {backend}. Use 'duckdb' or 'polars'.")
