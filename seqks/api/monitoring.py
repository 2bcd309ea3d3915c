"""
seqks.api.monitoring
====================

Distribution monitoring facade with business-oriented interfaces.

Both entry points return experiment templates that can be monitored after
every batch of data without inflating the false-positive rate.

Examples
--------
>>> from seqks.api.monitoring import two_sample_monitoring, goodness_of_fit_monitoring
>>> from seqks.runtime.runners import SequentialRunner
>>>
>>> # Has the latency distribution of the canary drifted from production?
>>> canary = two_sample_monitoring("canary_latency", alpha=0.01)
>>> canary.family
'pair_eq'
>>>
>>> # Are p-values from a pipeline still uniform?
>>> from scipy import stats
>>> pvals = goodness_of_fit_monitoring("pvalue_health", reference=stats.uniform())
>>> pvals.family
'fixed_eq'
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal, Optional

from seqks.stats.schemes.ks_streams.experiments import (
    FixedDistributionKSTemplate,
    KSTemplate,
    TwoSampleKSTemplate,
)

Sidedness = Literal["two_sided", "one_sided"]

# Map business terms to technical terms
_COMPARISON_MAP = {
    "two_sided": "equal",
    "one_sided": "less_equal",
}


def two_sample_monitoring(
    experiment_id: str,
    alpha: float = 0.05,
    sidedness: Sidedness = "two_sided",
    warmup: Optional[int] = None,
    effect_size: Optional[float] = None,
) -> TwoSampleKSTemplate:
    """
    Monitor whether two paired streams share the same distribution.

    Parameters
    ----------
    experiment_id : str
        Unique identifier for the experiment
    alpha : float, default=0.05
        Probability of ever raising a false alarm, over the whole lifetime
        of the monitor
    sidedness : {"two_sided", "one_sided"}, default="two_sided"
        - "two_sided": alarm on any difference between the distributions
        - "one_sided": alarm only when stream A's CDF rises above stream B's
          (i.e. A shifts towards smaller values)
    warmup : int, optional
        Pairs collected before the first test; defaults to the smallest
        valid value for `alpha`
    effect_size : float, optional
        Expected CDF gap; enables detection-horizon recommendations

    Returns
    -------
    TwoSampleKSTemplate
        A configured experiment ready for execution

    Examples
    --------
    >>> two_sample_monitoring("latency_ab", sidedness="one_sided").family
    'pair_le'
    """
    return TwoSampleKSTemplate(
        experiment_id=experiment_id,
        alpha=alpha,
        comparison=_COMPARISON_MAP[sidedness],  # type: ignore[arg-type]
        min_count=warmup,
        effect_size=effect_size,
    )


def goodness_of_fit_monitoring(
    experiment_id: str,
    reference: Any,
    alpha: float = 0.05,
    sidedness: Sidedness = "two_sided",
    warmup: Optional[int] = None,
    effect_size: Optional[float] = None,
) -> FixedDistributionKSTemplate:
    """
    Monitor whether a stream keeps following a reference distribution.

    Parameters
    ----------
    experiment_id : str
        Unique identifier for the experiment
    reference : callable or frozen scipy.stats distribution
        Reference CDF (anything with a `.cdf` method, or the CDF itself)
    alpha, sidedness, warmup, effect_size
        As in `two_sample_monitoring`

    Returns
    -------
    FixedDistributionKSTemplate
        A configured experiment ready for execution
    """
    return FixedDistributionKSTemplate(
        experiment_id=experiment_id,
        reference=reference,
        alpha=alpha,
        comparison=_COMPARISON_MAP[sidedness],  # type: ignore[arg-type]
        min_count=warmup,
        effect_size=effect_size,
    )


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class KSMonitorConfig:
    """
    Configuration for a sequential KS monitor.

    Parameters
    ----------
    name : str
        Experiment identifier
    alpha : float, default=0.05
        Lifetime false-positive rate, in (0, 1)
    comparison : {"equal", "less_equal"}, default="equal"
        Null hypothesis on the CDFs
    min_count : int, optional
        Observations collected before testing; None uses the smallest valid one
    effect_size : float, optional
        Hypothesised CDF gap in (0, 1] for detection-horizon recommendations
    reference : callable or frozen scipy.stats distribution, optional
        If set, monitor one stream against this distribution; otherwise
        compare two paired streams

    Examples
    --------
    >>> config = KSMonitorConfig("drift", alpha=0.01, min_count=200)
    >>> from_config(config).min_count
    200
    >>> KSMonitorConfig("bad", alpha=1.5)
    Traceback (most recent call last):
    ...
    ValueError: Alpha must be in (0,1), got 1.5
    """

    name: str
    alpha: float = 0.05
    comparison: Literal["equal", "less_equal"] = "equal"
    min_count: Optional[int] = None
    effect_size: Optional[float] = None
    reference: Optional[Any] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate monitor configuration."""
        if not 0 < self.alpha < 1:
            raise ValueError(f"Alpha must be in (0,1), got {self.alpha}")
        if self.comparison not in ("equal", "less_equal"):
            raise ValueError(
                f"Comparison must be 'equal' or 'less_equal', got {self.comparison}"
            )
        if self.min_count is not None and self.min_count < 3:
            raise ValueError(f"min_count must be at least 3, got {self.min_count}")
        if self.effect_size is not None and not 0 < self.effect_size <= 1:
            raise ValueError(
                f"effect_size must be in (0, 1], got {self.effect_size}"
            )
        if self.reference is not None and not callable(
            getattr(self.reference, "cdf", self.reference)
        ):
            raise ValueError("reference must be a CDF callable or expose .cdf")


def from_config(config: KSMonitorConfig) -> KSTemplate:
    """Build the experiment template described by `config`."""
    config.validate()

    if config.reference is None:
        return TwoSampleKSTemplate(
            experiment_id=config.name,
            alpha=config.alpha,
            comparison=config.comparison,
            min_count=config.min_count,
            effect_size=config.effect_size,
        )
    return FixedDistributionKSTemplate(
        experiment_id=config.name,
        reference=config.reference,
        alpha=config.alpha,
        comparison=config.comparison,
        min_count=config.min_count,
        effect_size=config.effect_size,
    )
