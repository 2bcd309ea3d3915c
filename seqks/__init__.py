"""
seqks: anytime-valid sequential Kolmogorov–Smirnov tests.

seqks answers one question about data that keeps arriving: has the
distribution of this stream departed from another stream (or from a fixed
reference distribution)? You may look after every observation, as often as
you like, and the probability of ever raising a false alarm stays below the
rate you chose up front.

The numerical engine (`seqks.stats.methods.one_sided_ks`) computes a
law-of-the-iterated-logarithm threshold on the supremum gap between CDFs,
rounding every floating point step outward so that the guarantee survives
floating point arithmetic. Around it sits an event-sourced runtime: every
observation, statistic, threshold and decision is appended to a typed
ledger (`seqks.core.ledger`) that acts as the experiment's single source of
truth.

Example
-------
>>> import math
>>> import seqks
>>> seqks.find_min_count(math.log(0.05))
6
>>> seqks.threshold(5, 6, math.log(0.05))
inf
"""

from seqks.__version__ import __version__
from seqks.stats.methods.one_sided_ks import (
    CLASS_EQ,
    EXPECTED_ITER_INVALID,
    FIXED_EQ,
    FIXED_LE,
    PAIR_EQ,
    PAIR_LE,
    check_constants,
    expected_iter,
    find_min_count,
    threshold,
    threshold_fast,
)

__all__ = [
    "CLASS_EQ",
    "EXPECTED_ITER_INVALID",
    "FIXED_EQ",
    "FIXED_LE",
    "PAIR_EQ",
    "PAIR_LE",
    "__version__",
    "check_constants",
    "expected_iter",
    "find_min_count",
    "threshold",
    "threshold_fast",
]
