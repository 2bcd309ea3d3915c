"""
seqks.core.components
=====================

Roles in the sequential KS pipeline. Each look runs the components of an
experiment in order; they talk to each other only through the ledger.

Roles (and where they write):
- `Observer`: refuses malformed batches, appends the rest to OBS
- `Statistic`: turns everything observed so far into a CDF gap (STATS)
- `Criteria`: the anytime-valid threshold for the current sample size (CRITERIA)
- `Signaler`: compares the two and decides stop/continue (SIGNALS)
- `Recommender`: optional guidance such as a detection horizon (SIGNALS)

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>>
>>> class PairCount(Statistic):
...     def step(self, ledger, experiment_id, step_key, time_index):
...         batches = ledger.events(namespace=Namespace.OBS, experiment_id=experiment_id)
...         n = sum(len(e["payload"].a) for e in batches)
...         self.emit(ledger, experiment_id, step_key, time_index, {"n": n})
...
>>> ledger = Ledger(create_test_connection("duckdb"), "doc")  # doctest: +SKIP
>>> counter = PairCount(tag_stats="stat:pair_count")
>>> counter.step(ledger, "exp1", "look-1", "t1")  # doctest: +SKIP
>>> counter.latest(ledger, "exp1")  # doctest: +SKIP
{'n': 0}
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union, TYPE_CHECKING

from seqks.core.names import Namespace, ExperimentId, StepKey, TimeIndex

NamespaceLike = Union[Namespace, str]

if TYPE_CHECKING:
    from seqks.core.ledger import Ledger


class ComponentBase(ABC):
    """A pipeline stage that reads earlier stages' events and appends its own."""

    # Where `emit` writes and `latest` reads; set by each role.
    namespace: NamespaceLike
    tag: str
    kind: str = "updated"
    payload_type: str = "dict"

    @abstractmethod
    def step(
        self,
        ledger: "Ledger",
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
    ) -> None:
        """Run this stage for one look of an experiment."""

    def emit(
        self,
        ledger: "Ledger",
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
        payload: Any,
    ) -> None:
        """Append this stage's result for the look."""
        ledger.write_event(
            time_index=time_index,
            namespace=self.namespace,
            kind=self.kind,
            experiment_id=str(experiment_id),
            step_key=str(step_key),
            payload_type=self.payload_type,
            payload=payload,
            tag=self.tag,
        )

    def latest(
        self, ledger: "Ledger", experiment_id: Union[ExperimentId, str]
    ) -> Optional[Dict[str, Any]]:
        """Payload of this stage's most recent event for the experiment, if any."""
        event = ledger.latest(
            namespace=self.namespace, experiment_id=str(experiment_id), tag=self.tag
        )
        return None if event is None else event["payload"]


@dataclass(kw_only=True)
class Observer(ComponentBase):
    """Validates raw batches and appends them to OBS."""

    ns_obs: NamespaceLike = Namespace.OBS
    tag_obs: str = "obs:generic"
    kind = "observation"

    @property
    def namespace(self) -> NamespaceLike:  # type: ignore[override]
        return self.ns_obs

    @property
    def tag(self) -> str:  # type: ignore[override]
        return self.tag_obs


@dataclass(kw_only=True)
class Statistic(ComponentBase):
    """Summarises the observations so far into a test statistic."""

    ns_stats: NamespaceLike = Namespace.STATS
    tag_stats: str = "stat:generic"

    @property
    def namespace(self) -> NamespaceLike:  # type: ignore[override]
        return self.ns_stats

    @property
    def tag(self) -> str:  # type: ignore[override]
        return self.tag_stats


@dataclass(kw_only=True)
class Criteria(ComponentBase):
    """Computes the rejection threshold the statistic is compared with."""

    ns_crit: NamespaceLike = Namespace.CRITERIA
    tag_crit: str = "crit:generic"

    @property
    def namespace(self) -> NamespaceLike:  # type: ignore[override]
        return self.ns_crit

    @property
    def tag(self) -> str:  # type: ignore[override]
        return self.tag_crit


@dataclass(kw_only=True)
class Signaler(ComponentBase):
    """Turns the latest statistic and threshold into a stop/continue decision."""

    ns_sig: NamespaceLike = Namespace.SIGNALS
    tag_sig: str = "signal:generic"
    kind = "decision"

    @property
    def namespace(self) -> NamespaceLike:  # type: ignore[override]
        return self.ns_sig

    @property
    def tag(self) -> str:  # type: ignore[override]
        return self.tag_sig


@dataclass(kw_only=True)
class Recommender(ComponentBase):
    """Emits guidance alongside decisions, e.g. how many pairs an effect needs."""

    ns_rec: NamespaceLike = Namespace.SIGNALS
    tag_rec: str = "recommendation:generic"
    kind = "recommendation"

    @property
    def namespace(self) -> NamespaceLike:  # type: ignore[override]
        return self.ns_rec

    @property
    def tag(self) -> str:  # type: ignore[override]
        return self.tag_rec
