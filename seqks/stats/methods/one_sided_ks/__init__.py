"""
seqks.stats.methods.one_sided_ks
================================

Law-of-the-iterated-logarithm confidence sequence for a one-sided,
sequential Kolmogorov–Smirnov statistic.

Components:
- `constants`: comparison-family offsets and their self-check
- `core`: the threshold function, min-count policy and threshold API
- `estimation`: expected number of pairs before rejection

Examples
--------
>>> import math
>>> from seqks.stats.methods.one_sided_ks import threshold, PAIR_EQ
>>> threshold(1000, 100, math.log(0.01) + PAIR_EQ) < threshold(100, 100, math.log(0.01) + PAIR_EQ)
True

References:
- Howard, Ramdas, McAuliffe & Sekhon (2021). Time-uniform, nonparametric,
  nonasymptotic confidence sequences. Annals of Statistics 49(2).
"""

from __future__ import annotations

from seqks.stats.methods.one_sided_ks.constants import (
    CLASS_EQ,
    FAMILY_OFFSETS,
    FIXED_EQ,
    FIXED_LE,
    PAIR_EQ,
    PAIR_LE,
    Family,
    check_constants,
    family_log_eps,
    log_eps_from_alpha,
)
from seqks.stats.methods.one_sided_ks.core import (
    MAX_MIN_COUNT,
    find_min_count,
    min_count_valid,
    threshold,
    threshold_fast,
)
from seqks.stats.methods.one_sided_ks.estimation import (
    EXPECTED_ITER_INVALID,
    expected_iter,
)

__all__ = [
    "CLASS_EQ",
    "EXPECTED_ITER_INVALID",
    "FAMILY_OFFSETS",
    "FIXED_EQ",
    "FIXED_LE",
    "Family",
    "MAX_MIN_COUNT",
    "PAIR_EQ",
    "PAIR_LE",
    "check_constants",
    "expected_iter",
    "family_log_eps",
    "find_min_count",
    "log_eps_from_alpha",
    "min_count_valid",
    "threshold",
    "threshold_fast",
]
