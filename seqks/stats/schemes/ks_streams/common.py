"""
seqks.stats.schemes.ks_streams.common
=====================================

Common utilities and data structures for sequential KS testing on streams.

This module provides the observation batch and observer component, the
ledger aggregation helper and the empirical CDF gap computations shared by
the two-sample and fixed-reference schemes.

Examples
--------
>>> ecdf_gaps([0.1, 0.2, 0.3], [0.6, 0.7, 0.8])
(1.0, 0.0)
>>> histogram_cdf_gap([1, 0, 1], [0, 1, 1])
0.5
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    TypedDict,
    Union,
)

import numpy as np

from seqks.core.components import Observer
from seqks.core.ledger import (
    JSONPayloadType,
    Ledger,
    PayloadType,
    PayloadTypeRegistry,
)
from seqks.core.names import Namespace

ArrayLike = Union[Sequence[float], np.ndarray]


# --- Payload Schemas ---


class KSDistancePayload(TypedDict):
    """Payload for the observed CDF gap."""

    n: int
    d_plus: float
    d_minus: float
    statistic: float
    comparison: str


class KSThresholdPayload(TypedDict):
    """Payload for the anytime-valid threshold; `threshold` is None before `min_count`."""

    threshold: Optional[float]
    n: int
    min_count: int
    log_eps: float
    family: str


# --- Data Classes ---


@dataclass(frozen=True)
class KSObsBatchData:
    """Typed observation batch as stored in the ledger."""

    a: Tuple[float, ...]
    b: Tuple[float, ...]


@dataclass
class ObservationBatch:
    """
    A batch of observations for sequential KS testing.

    In two-sample mode every observation of stream A is paired with one of
    stream B, so both sides must grow by the same amount. Against a fixed
    reference only stream A is observed.
    """

    a_values: List[float] = field(default_factory=list)
    b_values: List[float] = field(default_factory=list)
    two_sample: bool = True

    # Optional metadata
    timestamp: Optional[datetime] = None
    source_info: Dict[str, Any] = field(default_factory=dict)
    validation_errors: List[str] = field(default_factory=list)

    def add_a_observations(self, values: Iterable[float]) -> None:
        """Add observations for stream A."""
        self.a_values.extend(float(v) for v in values)

    def add_b_observations(self, values: Iterable[float]) -> None:
        """Add observations for stream B."""
        self.b_values.extend(float(v) for v in values)

    def add_pairs(self, pairs: Iterable[Tuple[float, float]]) -> None:
        """Add (a, b) pairs of observations."""
        for a, b in pairs:
            self.add_a_observations([a])
            self.add_b_observations([b])

    def validate(self) -> bool:
        """Validate the batch and return True if valid."""
        self.validation_errors = []

        if not self.two_sample and self.b_values:
            self.validation_errors.append(
                "Stream B observations are not accepted against a fixed reference"
            )
        if not all(math.isfinite(v) for v in self.a_values):
            self.validation_errors.append("Stream A values must be finite")
        if not all(math.isfinite(v) for v in self.b_values):
            self.validation_errors.append("Stream B values must be finite")
        if self.two_sample and len(self.a_values) != len(self.b_values):
            self.validation_errors.append(
                f"Streams must grow in pairs, got {len(self.a_values)} A and "
                f"{len(self.b_values)} B observations"
            )

        return len(self.validation_errors) == 0

    def is_empty(self) -> bool:
        return not self.a_values and not self.b_values

    def size(self) -> int:
        """Number of pairs (two-sample) or observations (fixed reference)."""
        return len(self.a_values)

    def to_payload(self) -> Dict[str, Any]:
        """Convert to payload format for ledger registration."""
        return {"a": list(self.a_values), "b": list(self.b_values)}

    def reset(self) -> None:
        self.a_values.clear()
        self.b_values.clear()
        self.validation_errors.clear()
        self.source_info.clear()


@dataclass(kw_only=True)
class KSObservation(Observer):
    """
    Observation component for sequential KS experiments.

    Handles validation and registration of observation batches.

    Parameters
    ----------
    two_sample : bool, default=True
        Whether batches carry paired A/B observations
    auto_validate : bool, default=True
        Whether to validate batches before registration
    tag_obs : str, default="obs"
        Tag to use for observation events
    """

    two_sample: bool = True
    auto_validate: bool = True
    tag_obs: str = "obs"
    payload_type = "KSObsBatch"

    current_batch: Optional[ObservationBatch] = field(default=None, init=False)

    def create_batch(self, timestamp: Optional[datetime] = None) -> ObservationBatch:
        """Create a new observation batch."""
        return ObservationBatch(two_sample=self.two_sample, timestamp=timestamp)

    def register_batch(
        self,
        ledger: Ledger,
        experiment_id: str,
        step_key: str,
        time_index: str,
        batch: ObservationBatch,
        force: bool = False,
    ) -> bool:
        """
        Register an observation batch to the ledger.

        Returns
        -------
        bool
            True if registration succeeded, False if the batch was invalid
            or empty (see `batch.validation_errors`)
        """
        if not force and self.auto_validate and not batch.validate():
            return False

        if not force and batch.is_empty():
            batch.validation_errors.append("Batch has no observations")
            return False

        ledger.write_event(
            time_index=str(time_index),
            namespace=self.namespace,
            kind=self.kind,
            experiment_id=str(experiment_id),
            step_key=str(step_key),
            payload_type=self.payload_type,
            payload=batch.to_payload(),
            tag=self.tag,
            ts=batch.timestamp or datetime.now(timezone.utc),
        )
        return True

    def step(
        self, ledger: Ledger, experiment_id: str, step_key: str, time_index: str
    ) -> None:
        """Register `current_batch` if one is pending."""
        if self.current_batch is None:
            return
        batch, self.current_batch = self.current_batch, None
        if not self.register_batch(ledger, experiment_id, step_key, time_index, batch):
            raise ValueError(
                f"Failed to register observations: {batch.validation_errors}"
            )


# --- Aggregation Functions ---


def reduce_values(
    ledger: Ledger, experiment_id: str
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Concatenate every observation registered for an experiment.

    Returns:
        Tuple of (a, b) float arrays, in registration order
    """
    a: List[float] = []
    b: List[float] = []
    for event in ledger.events(namespace=Namespace.OBS, experiment_id=experiment_id):
        payload = event["payload"]
        if isinstance(payload, KSObsBatchData):
            a.extend(payload.a)
            b.extend(payload.b)
        elif isinstance(payload, dict):
            a.extend(payload.get("a", []))
            b.extend(payload.get("b", []))

    return np.asarray(a, dtype=float), np.asarray(b, dtype=float)


# --- Empirical CDF gaps ---


def ecdf_gaps(a: ArrayLike, b: ArrayLike) -> Tuple[float, float]:
    """
    One-sided supremum gaps between two empirical CDFs.

    Returns:
        (d_plus, d_minus) = (sup_x F_a(x) - F_b(x), sup_x F_b(x) - F_a(x)),
        both clipped at 0. Empty inputs give (0.0, 0.0).
    """
    a_sorted = np.sort(np.asarray(a, dtype=float))
    b_sorted = np.sort(np.asarray(b, dtype=float))
    if a_sorted.size == 0 or b_sorted.size == 0:
        return 0.0, 0.0

    # Both ECDFs only jump at observed points.
    grid = np.concatenate([a_sorted, b_sorted])
    cdf_a = np.searchsorted(a_sorted, grid, side="right") / a_sorted.size
    cdf_b = np.searchsorted(b_sorted, grid, side="right") / b_sorted.size
    diff = cdf_a - cdf_b

    return float(max(diff.max(), 0.0)), float(max((-diff).max(), 0.0))


def ecdf_gaps_to_reference(
    a: ArrayLike, cdf: Callable[[np.ndarray], Any]
) -> Tuple[float, float]:
    """
    One-sided supremum gaps between an empirical CDF and a reference CDF.

    Args:
        a: Observations
        cdf: Vectorised reference CDF, e.g. `scipy.stats.norm(0, 1).cdf`

    Returns:
        (d_plus, d_minus) = (sup_x F_a(x) - F(x), sup_x F(x) - F_a(x))
    """
    a_sorted = np.sort(np.asarray(a, dtype=float))
    n = a_sorted.size
    if n == 0:
        return 0.0, 0.0

    reference = np.asarray(cdf(a_sorted), dtype=float)
    d_plus = (np.arange(1, n + 1) / n - reference).max()
    d_minus = (reference - np.arange(0, n) / n).max()

    return float(max(d_plus, 0.0)), float(max(d_minus, 0.0))


def histogram_cdf_gap(x_counts: ArrayLike, y_counts: ArrayLike) -> float:
    """
    Max absolute CDF gap between two histograms over the same ordered bins.

    Missing trailing bins count as zero.
    """
    x = np.asarray(x_counts, dtype=float)
    y = np.asarray(y_counts, dtype=float)
    size = max(x.size, y.size)
    if size == 0:
        return 0.0

    x = np.pad(x, (0, size - x.size))
    y = np.pad(y, (0, size - y.size))
    x_scale = 1.0 / max(1.0, x.sum())
    y_scale = 1.0 / max(1.0, y.sum())

    return float(np.abs(x_scale * np.cumsum(x) - y_scale * np.cumsum(y)).max())


# --- Payload Type Handlers ---


class KSObsBatchHandler(PayloadType):
    """Store observation batches as `{"a": [...], "b": [...]}` JSON."""

    def __init__(self) -> None:
        self._json = JSONPayloadType()

    def wrap(self, data: Union[KSObsBatchData, Dict[str, Any]]) -> str:
        if isinstance(data, KSObsBatchData):
            payload = {"a": list(data.a), "b": list(data.b)}
        else:
            payload = {"a": list(data["a"]), "b": list(data.get("b", []))}
        return self._json.wrap(payload)

    def unwrap(self, json_str: str) -> KSObsBatchData:
        payload = self._json.unwrap(json_str)
        return KSObsBatchData(
            a=tuple(payload.get("a", [])), b=tuple(payload.get("b", []))
        )


PayloadTypeRegistry.register("KSObsBatch", KSObsBatchHandler())
