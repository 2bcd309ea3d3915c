"""
seqks.stats.schemes.ks_streams.experiments
==========================================

Experiment templates for sequential KS monitoring of streams.

**Base Template:**
- `KSTemplate`: design resolution, registration and result extraction

**Concrete Templates:**
- `TwoSampleKSTemplate`: compare two paired streams (families pair_le/pair_eq)
- `FixedDistributionKSTemplate`: compare one stream against a reference
  distribution (families fixed_le/fixed_eq)

Examples
--------
>>> from seqks.stats.schemes.ks_streams.experiments import TwoSampleKSTemplate
>>> exp = TwoSampleKSTemplate("ab", alpha=0.05, comparison="less_equal")
>>> exp.family, exp.min_count
('pair_le', 6)

Reference distributions can be scipy frozen distributions or plain CDFs:

>>> from scipy import stats
>>> gof = FixedDistributionKSTemplate("gof", reference=stats.uniform())
>>> gof.family
'fixed_eq'
"""

from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from seqks.core.ledger import Ledger
from seqks.core.names import Namespace
from seqks.runtime.experiment_template import AnalysisResult, ExperimentTemplate
from seqks.stats.methods.one_sided_ks import Family, expected_iter
from seqks.stats.schemes.ks_streams.common import KSObservation, ObservationBatch
from seqks.stats.schemes.ks_streams.statistics import (
    Comparison,
    DetectionHorizon,
    KSDistanceStatistic,
    KSSignaler,
    OneSidedKSThreshold,
    resolve_design,
)

logger = logging.getLogger(__name__)


# --- Base Template ---


class KSTemplate(ExperimentTemplate):
    """
    Base class for sequential KS experiment templates.

    Subclasses pick the comparison family and whether stream B is observed.

    Attributes:
        experiment_id: Unique identifier for the experiment
        alpha: Lifetime false-positive rate (default 0.05)
        comparison: "less_equal" (A <= B) or "equal" (A == B)
        min_count: Observations accumulated before testing; None (or an
            invalid value) uses the smallest valid one
        effect_size: Optional assumed CDF gap for detection-horizon
            recommendations
    """

    two_sample: bool = True
    families: Dict[str, Family] = {}

    def __init__(
        self,
        experiment_id: str,
        alpha: float = 0.05,
        comparison: Comparison = "equal",
        min_count: Optional[int] = None,
        effect_size: Optional[float] = None,
    ):
        super().__init__(experiment_id)
        if comparison not in self.families:
            raise ValueError(
                f"Unknown comparison: {comparison}. Use one of {sorted(self.families)}."
            )

        self.alpha = alpha
        self.comparison = comparison
        self.family: Family = self.families[comparison]
        self.effect_size = effect_size
        self.log_eps, self.min_count = resolve_design(alpha, self.family, min_count)

        if min_count is not None and min_count != self.min_count:
            logger.warning(
                "%s: min_count=%d is too small for alpha=%g; using %d",
                experiment_id,
                min_count,
                alpha,
                self.min_count,
            )

    # --- Components ---

    def _create_statistic(self) -> KSDistanceStatistic:
        return KSDistanceStatistic(comparison=self.comparison)

    def configure_components(self) -> Dict[str, Any]:
        """Configure the KS pipeline."""
        components: Dict[str, Any] = {
            "observation": KSObservation(two_sample=self.two_sample),
            "statistic": self._create_statistic(),
            "criteria": OneSidedKSThreshold(
                alpha=self.alpha, family=self.family, min_count=self.min_count
            ),
            "signaler": KSSignaler(),
        }
        if self.effect_size is not None:
            components["recommender"] = DetectionHorizon(
                effect_size=self.effect_size,
                alpha=self.alpha,
                family=self.family,
                min_count=self.min_count,
            )
        return components

    def _populate_batch(self, batch: ObservationBatch, **kwargs: Any) -> None:
        """Accept `a=`/`b=` sequences, `pairs=` or a `data={"a": ..., "b": ...}` dict."""
        if "data" in kwargs:
            kwargs = dict(kwargs["data"])

        if "pairs" in kwargs:
            batch.add_pairs(kwargs["pairs"])
        elif "a" in kwargs:
            batch.add_a_observations(kwargs["a"])
            if "b" in kwargs:
                batch.add_b_observations(kwargs["b"])
        else:
            raise ValueError(
                f"Unsupported observation format for {type(self).__name__}: "
                f"{sorted(kwargs)}"
            )

    # --- Design ---

    def design_payload(self) -> Dict[str, Any]:
        return {
            "method": "sequential_one_sided_ks",
            "alpha": self.alpha,
            "comparison": self.comparison,
            "family": self.family,
            "log_eps": self.log_eps,
            "min_count": self.min_count,
            "effect_size": self.effect_size,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def register_design(self, ledger: Ledger) -> None:
        """Register the experimental design."""
        ledger.write_event(
            namespace=Namespace.DESIGN,
            kind="experiment_design",
            payload_type="ks_design",
            experiment_id=str(self.experiment_id),
            step_key="design",
            time_index="t0",
            payload=self.design_payload(),
        )

    # --- Results ---

    def extract_results(self, ledger: Ledger) -> AnalysisResult:
        """Extract the latest look from the ledger."""
        experiment_id = str(self.experiment_id)

        decisions = ledger.events(
            namespace=Namespace.SIGNALS, experiment_id=experiment_id, kind="decision"
        )
        if not decisions:
            raise ValueError("No decision events found")

        latest_signal = decisions[-1]
        latest_stat = ledger.latest(
            namespace=Namespace.STATS, experiment_id=experiment_id
        )
        latest_criteria = ledger.latest(
            namespace=Namespace.CRITERIA, experiment_id=experiment_id
        )

        stat = latest_stat["payload"] if latest_stat else {}
        crit = latest_criteria["payload"] if latest_criteria else {}

        metrics: Dict[str, Any] = {
            "d_plus": stat.get("d_plus", 0.0),
            "d_minus": stat.get("d_minus", 0.0),
            "family": self.family,
            "log_eps": self.log_eps,
            "min_count": self.min_count,
            "reason": latest_signal["payload"].get("reason"),
        }
        if self.effect_size is not None:
            metrics["expected_iter"] = expected_iter(
                self.min_count, self.log_eps, self.effect_size
            )

        return AnalysisResult(
            should_stop=latest_signal["payload"].get("action") == "stop",
            statistic_value=float(stat.get("statistic", 0.0)),
            threshold_value=crit.get("threshold"),
            look_number=self._current_look,
            sample_size=stat.get("n"),
            additional_metrics=metrics,
            statistic_event=latest_stat,
            criteria_event=latest_criteria,
            signal_event=latest_signal,
        )

    def get_summary(self) -> Dict[str, Any]:
        """Summary with the resolved design."""
        summary = super().get_summary()
        summary.update(
            {
                "experiment_type": "sequential_ks",
                "alpha": self.alpha,
                "comparison": self.comparison,
                "family": self.family,
                "min_count": self.min_count,
            }
        )
        return summary


# --- Concrete Templates ---


class TwoSampleKSTemplate(KSTemplate):
    """
    Monitor whether stream A is distributed like (or below) stream B.

    Observations arrive in pairs. "less_equal" tests that the CDF of A is
    everywhere <= the CDF of B, so only `sup F_A - F_B` can reject;
    "equal" rejects on either side.
    """

    two_sample = True
    families: Dict[str, Family] = {"less_equal": "pair_le", "equal": "pair_eq"}


class FixedDistributionKSTemplate(KSTemplate):
    """
    Monitor whether stream A follows a fixed reference distribution.

    Attributes:
        reference: Vectorised CDF callable, or any object with a `.cdf`
            method such as a frozen `scipy.stats` distribution
    """

    two_sample = False
    families: Dict[str, Family] = {"less_equal": "fixed_le", "equal": "fixed_eq"}

    def __init__(
        self,
        experiment_id: str,
        reference: Any,
        alpha: float = 0.05,
        comparison: Comparison = "equal",
        min_count: Optional[int] = None,
        effect_size: Optional[float] = None,
    ):
        cdf: Optional[Callable[[Any], Any]] = getattr(reference, "cdf", reference)
        if not callable(cdf):
            raise ValueError("reference must be a CDF callable or expose .cdf")
        self.reference_cdf = cdf
        super().__init__(
            experiment_id,
            alpha=alpha,
            comparison=comparison,
            min_count=min_count,
            effect_size=effect_size,
        )

    def _create_statistic(self) -> KSDistanceStatistic:
        return KSDistanceStatistic(
            comparison=self.comparison, reference_cdf=self.reference_cdf
        )

    def design_payload(self) -> Dict[str, Any]:
        payload = super().design_payload()
        payload["reference"] = getattr(
            self.reference_cdf, "__qualname__", type(self.reference_cdf).__name__
        )
        return payload
