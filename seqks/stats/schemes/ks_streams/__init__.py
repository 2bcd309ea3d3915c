"""
Sequential Kolmogorov–Smirnov monitoring of observation streams.

Applies the anytime-valid one-sided KS threshold to streams registered in a
ledger, either two paired streams or one stream against a fixed reference
distribution.

**Module Organization:**

- `common`: observation batches, the observer component, ledger
  aggregation and empirical CDF gaps
- `statistics`: statistic, threshold, signaler and detection-horizon
  components
- `experiments`: experiment templates

Example Usage
-------------
>>> from seqks.stats.schemes.ks_streams import ObservationBatch
>>> batch = ObservationBatch()
>>> batch.add_pairs([(0.1, 0.3), (0.5, 0.2)])
>>> batch.validate()
True
>>> batch.add_a_observations([0.9])
>>> batch.validate()
False
"""

from seqks.stats.schemes.ks_streams.common import (
    KSObsBatchData,
    KSObservation,
    ObservationBatch,
    ecdf_gaps,
    ecdf_gaps_to_reference,
    histogram_cdf_gap,
    reduce_values,
)
from seqks.stats.schemes.ks_streams.experiments import (
    FixedDistributionKSTemplate,
    KSTemplate,
    TwoSampleKSTemplate,
)
from seqks.stats.schemes.ks_streams.statistics import (
    DetectionHorizon,
    KSDistanceStatistic,
    KSSignaler,
    OneSidedKSThreshold,
    resolve_design,
)

__all__ = [
    "DetectionHorizon",
    "FixedDistributionKSTemplate",
    "KSDistanceStatistic",
    "KSObsBatchData",
    "KSObservation",
    "KSSignaler",
    "KSTemplate",
    "ObservationBatch",
    "OneSidedKSThreshold",
    "TwoSampleKSTemplate",
    "ecdf_gaps",
    "ecdf_gaps_to_reference",
    "histogram_cdf_gap",
    "reduce_values",
    "resolve_design",
]
