"""
seqks.reporting.generic
=======================

A scheme-agnostic reporter that shows raw ledger events and
namespace x kind counts. Works with any ibis backend.

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> from seqks.reporting.generic import LedgerReporter
>>> L = Ledger(create_test_connection("duckdb"), "test")  # doctest: +SKIP
>>> LedgerReporter(L).unique_namespaces()  # doctest: +SKIP
[]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List

import ibis
import polars as pl

if TYPE_CHECKING:
    from seqks.core.ledger import Ledger


@dataclass
class LedgerReporter:
    """
    A generic, scheme-agnostic reporter for any experiment ledger.
    """

    ledger: "Ledger"

    def ledger_table(self) -> Any:
        """Return the underlying ledger table as ibis expression."""
        return self.ledger.table

    def to_polars(self) -> pl.DataFrame:
        """Materialise the ledger as a polars DataFrame, in write order."""
        return self.ledger.table.order_by("seq").to_polars()

    def _distinct(self, column: str) -> List[str]:
        table = self.ledger.table
        values = table.select(table[column]).distinct().execute()[column]
        return sorted(v for v in values.tolist() if v is not None)

    def unique_entities(self) -> List[str]:
        """List all unique experiment entities."""
        return self._distinct("entity")

    def unique_namespaces(self) -> List[str]:
        """List all unique event namespaces."""
        return self._distinct("namespace")

    def unique_kinds(self) -> List[str]:
        """List all unique event kinds."""
        return self._distinct("kind")

    def namespace_kind_counts(self) -> Any:
        """
        Return counts of events grouped by namespace and kind.

        Returns
        -------
        ibis.Table
            Table with namespace, kind, and count columns
        """
        table = self.ledger.table
        return (
            table.group_by([table.namespace, table.kind])
            .aggregate(count=ibis._.count())
            .order_by(["namespace", "kind"])
        )
