"""
seqks.stats.methods.one_sided_ks.estimation
===========================================

Expected stopping time of the sequential one-sided KS test.

Let g be the inverse of the threshold x -> f(x)/x. If the true CDF gap is
`delta`, the expected number of pairs before rejection satisfies

    E[N] <= g(delta - m / g(delta)) <= g_up(delta - m / g_down(delta)),

where `m` is `min_count`, `g_up` over-approximates g and `g_down`
under-approximates it. The bound is extremely conservative for large
`delta`.

Examples
--------
>>> import math
>>> 99.9 < expected_iter(6, math.log(0.05), 1.0) < 100.1
True
>>> expected_iter(1000, -1.0, 0.0) == DBL_MAX
True
>>> expected_iter(5, math.log(0.05), 0.1) == EXPECTED_ITER_INVALID
True
"""

from __future__ import annotations
import logging
import math
from typing import Callable, Dict, Tuple

from seqks.stats.common.inversion import Rounding, invert_decreasing
from seqks.stats.common.rounding import DBL_MAX, next_down, next_up
from seqks.stats.methods.one_sided_ks.core import (
    check_log_eps,
    log_b_down,
    log_b_up,
    min_count_valid,
    threshold,
    threshold_down,
    threshold_up,
)

logger = logging.getLogger(__name__)

# Returned by `expected_iter` when `min_count` is invalid for `log_eps`.
EXPECTED_ITER_INVALID = -1.0

_BOUNDS: Dict[
    Rounding,
    Tuple[Callable[[float, float], float], Callable[[int, float], float]],
] = {
    Rounding.UP: (threshold_up, log_b_up),
    Rounding.DOWN: (threshold_down, log_b_down),
}


def invert_threshold(
    target: float, min_count: int, log_eps: float, rounding: Rounding
) -> float:
    """
    Invert the threshold function over `[min_count, DBL_MAX]`.

    `Rounding.UP` over-approximates g(target) (the min x whose rounded-up
    threshold is <= target); `Rounding.DOWN` under-approximates it.
    """
    bound, log_b = _BOUNDS[rounding]
    log_b_value = log_b(min_count, log_eps)

    def fn(x: float) -> float:
        return bound(x, log_b_value)

    return invert_decreasing(fn, target, float(min_count), DBL_MAX, rounding)


def expected_iter(min_count: int, log_eps: float, delta: float) -> float:
    """
    Upper-bound the expected number of pairs to reject the null hypothesis
    when the actual distance from it is `delta`.

    Args:
        min_count: Number of pairs accumulated before testing; must be valid
        log_eps: Natural log of the lifetime false-positive rate; must be < 0
        delta: True gap between the CDFs

    Returns:
        An upper bound on E[N]; `DBL_MAX` if `min_count == 0` or
        `delta <= 0`; `EXPECTED_ITER_INVALID` if `min_count` is invalid
        for `log_eps`.
    """
    check_log_eps(log_eps)
    if math.isnan(delta):
        raise ValueError("delta must be a number, got nan")

    if min_count == 0 or delta <= 0:
        return DBL_MAX

    if not min_count_valid(min_count, log_eps):
        return EXPECTED_ITER_INVALID

    # The formula doesn't hold if the expected difference exceeds our
    # first threshold. Clamp to much less than that for a conservative count.
    first_threshold = threshold(min_count, min_count, log_eps)
    if delta > first_threshold / 2:
        logger.debug(
            "delta=%r exceeds half the first threshold %r; clamping",
            delta,
            first_threshold,
        )
        delta = next_down(first_threshold / 2)

    g_delta = invert_threshold(delta, min_count, log_eps, Rounding.DOWN)
    inner = delta - next_up(1.0 * min_count / g_delta)
    return invert_threshold(next_down(inner), min_count, log_eps, Rounding.UP)
