"""
seqks.api - User-Friendly Facade
================================

Off-the-shelf entry points organised by what users want to monitor,
delegating to the experiment templates in `seqks.stats.schemes`.

- `two_sample_monitoring()`: have two paired streams drifted apart?
- `goodness_of_fit_monitoring()`: does a stream still follow a reference
  distribution?
- `KSMonitorConfig` + `from_config()`: the same, from validated configuration

Examples
--------
>>> from seqks.api import two_sample_monitoring
>>> monitor = two_sample_monitoring("checkout_latency", alpha=0.01)
>>> monitor.min_count
9
"""

from seqks.api.monitoring import (
    KSMonitorConfig,
    from_config,
    goodness_of_fit_monitoring,
    two_sample_monitoring,
)

__all__ = [
    "KSMonitorConfig",
    "from_config",
    "goodness_of_fit_monitoring",
    "two_sample_monitoring",
]
