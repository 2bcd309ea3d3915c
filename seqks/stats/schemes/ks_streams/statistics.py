"""
seqks.stats.schemes.ks_streams.statistics
=========================================

Statistical components for sequential KS testing on streams.

- `KSDistanceStatistic`: Observed one-sided CDF gaps from ledger observations
- `OneSidedKSThreshold`: Anytime-valid threshold at the current sample size
- `KSSignaler`: Emit stop/continue decisions when the gap crosses the threshold
- `DetectionHorizon`: Recommend how many observations a given effect needs

All components read from and write to the ledger; none keeps state between
steps.

Mathematical Background
-----------------------
With `n` pairs (or `n` observations against a fixed reference), reject the
null once the observed gap exceeds `threshold(n, min_count, log_eps)`. The
gap is `D+ = sup F_A - F_B` for the "less_equal" comparison and
`max(D+, D-)` for "equal"; the family offset added to `log_eps` accounts
for the two-sided and fixed-reference variants.

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> L = Ledger(create_test_connection("duckdb"), "test")  # doctest: +SKIP
>>> KSDistanceStatistic().step(L, "exp#1", "s1", "t1")  # doctest: +SKIP
>>> OneSidedKSThreshold(alpha=0.05, family="pair_eq").step(L, "exp#1", "s1", "t1")  # doctest: +SKIP
>>> KSSignaler().step(L, "exp#1", "s1", "t1")  # doctest: +SKIP
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Optional, Union

from seqks.core.components import Criteria, Recommender, Signaler, Statistic
from seqks.core.ledger import Ledger
from seqks.core.names import ExperimentId, Namespace, StepKey, TimeIndex
from seqks.stats.methods.one_sided_ks import (
    Family,
    expected_iter,
    family_log_eps,
    find_min_count,
    log_eps_from_alpha,
    min_count_valid,
    threshold,
)
from seqks.stats.schemes.ks_streams.common import (
    KSDistancePayload,
    KSThresholdPayload,
    ecdf_gaps,
    ecdf_gaps_to_reference,
    reduce_values,
)

Comparison = Literal["less_equal", "equal"]


def resolve_design(
    alpha: float, family: Family, min_count: Optional[int]
) -> tuple[float, int]:
    """
    Return `(log_eps, min_count)` for a design.

    The family offset is folded into `log_eps`; a missing or invalid
    `min_count` is replaced with the smallest valid one.

    >>> resolve_design(0.05, "pair_le", None)[1]
    6
    """
    log_eps = family_log_eps(log_eps_from_alpha(alpha), family)
    if min_count is None or not min_count_valid(min_count, log_eps):
        min_count = find_min_count(log_eps)
    return log_eps, min_count


def _latest_payload(
    ledger: Ledger, namespace: Namespace, experiment_id: str, tag: str
) -> Optional[Dict[str, Any]]:
    event = ledger.latest(namespace=namespace, experiment_id=experiment_id, tag=tag)
    return None if event is None else event["payload"]


# --- Statistic ---


@dataclass(kw_only=True)
class KSDistanceStatistic(Statistic):
    """
    Compute the observed CDF gap from every registered observation.

    Without `reference_cdf`, compares the empirical CDFs of stream A and
    stream B; with it, compares stream A against the reference.

    Events consumed:
        - Namespace.OBS: KSObsBatch observations

    Events produced:
        - Namespace.STATS: KSDistance with n, d_plus, d_minus and statistic

    Attributes:
        comparison: "less_equal" tests A <= B with D+, "equal" uses max(D+, D-)
        reference_cdf: Vectorised reference CDF for one-sample monitoring
        tag_stats: Tag for statistic events (default "stat:ks_distance")
    """

    comparison: Comparison = "equal"
    reference_cdf: Optional[Callable[[Any], Any]] = None
    tag_stats: str = "stat:ks_distance"
    payload_type = "KSDistance"

    def step(
        self,
        ledger: Ledger,
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
    ) -> None:
        """Compute the CDF gap and write it to the ledger."""
        a, b = reduce_values(ledger, str(experiment_id))

        if self.reference_cdf is None:
            n = int(min(a.size, b.size))
            d_plus, d_minus = ecdf_gaps(a[:n], b[:n])
        else:
            n = int(a.size)
            d_plus, d_minus = ecdf_gaps_to_reference(a, self.reference_cdf)

        statistic = d_plus if self.comparison == "less_equal" else max(d_plus, d_minus)

        payload: KSDistancePayload = {
            "n": n,
            "d_plus": d_plus,
            "d_minus": d_minus,
            "statistic": statistic,
            "comparison": self.comparison,
        }

        self.emit(ledger, experiment_id, step_key, time_index, dict(payload))


# --- Criteria ---


@dataclass(kw_only=True)
class OneSidedKSThreshold(Criteria):
    """
    Compute the anytime-valid threshold for the current sample size.

    The threshold is infinite (stored as `None`) until `min_count`
    observations have accumulated.

    Attributes:
        alpha: Lifetime false-positive rate, in (0, 1)
        family: Which comparison the threshold guards (sets the log_eps offset)
        min_count: Observations accumulated before testing; defaults to the
            smallest valid value
        tag_stats: Tag of the statistic events to read the sample size from
        tag_crit: Tag for criteria events
    """

    alpha: float = 0.05
    family: Family = "pair_eq"
    min_count: Optional[int] = None
    tag_stats: str = "stat:ks_distance"
    tag_crit: str = "crit:ks_threshold"
    payload_type = "KSThreshold"

    def step(
        self,
        ledger: Ledger,
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
    ) -> None:
        """Compute the threshold and write it to the ledger."""
        log_eps, min_count = resolve_design(self.alpha, self.family, self.min_count)

        stat = _latest_payload(
            ledger, Namespace.STATS, str(experiment_id), self.tag_stats
        )
        n = int(stat["n"]) if stat else 0
        thr = threshold(n, min_count, log_eps)

        payload: KSThresholdPayload = {
            "threshold": None if math.isinf(thr) else thr,
            "n": n,
            "min_count": min_count,
            "log_eps": log_eps,
            "family": self.family,
        }

        self.emit(ledger, experiment_id, step_key, time_index, dict(payload))


# --- Signaler ---


@dataclass(kw_only=True)
class KSSignaler(Signaler):
    """
    Emit a decision by comparing the latest gap with the latest threshold.

    Decision rule:
        - "stop" (reason "reject_null") if statistic > threshold
        - "continue" otherwise, with reason "collecting_min_count" while the
          threshold is still infinite

    Attributes:
        tag_stats: Tag of the statistic events to read
        tag_crit: Tag of the criteria events to read
        tag_sig: Tag for decision events
    """

    tag_stats: str = "stat:ks_distance"
    tag_crit: str = "crit:ks_threshold"
    tag_sig: str = "ks:decision"

    def step(
        self,
        ledger: Ledger,
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
    ) -> None:
        """Check the threshold crossing and emit a decision."""
        stat = _latest_payload(
            ledger, Namespace.STATS, str(experiment_id), self.tag_stats
        )
        crit = _latest_payload(
            ledger, Namespace.CRITERIA, str(experiment_id), self.tag_crit
        )
        if stat is None or crit is None:
            return

        statistic = float(stat["statistic"])
        thr = crit.get("threshold")

        if thr is None:
            action, reason = "continue", "collecting_min_count"
        elif statistic > thr:
            action, reason = "stop", "reject_null"
        else:
            action, reason = "continue", "not_significant"

        self.emit(
            ledger,
            experiment_id,
            step_key,
            time_index,
            {
                "action": action,
                "reason": reason,
                "statistic": statistic,
                "threshold": thr,
                "n": int(stat["n"]),
            },
        )


# --- Recommender ---


@dataclass(kw_only=True)
class DetectionHorizon(Recommender):
    """
    Recommend how many observations an effect of a given size needs.

    Reports `expected_iter(min_count, log_eps, effect_size)`, a conservative
    upper bound on the expected sample size at rejection when the true CDF
    gap is `effect_size`, and how far the experiment still is from it.

    Attributes:
        effect_size: Assumed true CDF gap
        alpha, family, min_count: Same design as `OneSidedKSThreshold`
        tag_rec: Tag for recommendation events
    """

    effect_size: float
    alpha: float = 0.05
    family: Family = "pair_eq"
    min_count: Optional[int] = None
    tag_stats: str = "stat:ks_distance"
    tag_rec: str = "ks:horizon"

    def step(
        self,
        ledger: Ledger,
        experiment_id: Union[ExperimentId, str],
        step_key: Union[StepKey, str],
        time_index: Union[TimeIndex, str],
    ) -> None:
        """Compute the detection horizon and write it to the ledger."""
        log_eps, min_count = resolve_design(self.alpha, self.family, self.min_count)
        horizon = expected_iter(min_count, log_eps, self.effect_size)

        stat = _latest_payload(
            ledger, Namespace.STATS, str(experiment_id), self.tag_stats
        )
        n = int(stat["n"]) if stat else 0

        self.emit(
            ledger,
            experiment_id,
            step_key,
            time_index,
            {
                "effect_size": self.effect_size,
                "expected_iter": horizon,
                "n": n,
                "remaining": max(0.0, horizon - n),
            },
        )
