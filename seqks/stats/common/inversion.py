"""
seqks.stats.common.inversion
============================

Monotone inversion of decreasing functions over the doubles.

The search runs on the integer images of the endpoints (see
`seqks.stats.common.rounding.float_bits`), so every pivot is a
representable double strictly inside the bracket and 64 rounds are enough
to exhaust the exponent and mantissa range. No derivatives, no tolerance:
the answer is pinned to the representable boundary in the requested
rounding direction.

Examples
--------
>>> def f(x):
...     return 1.0 / x
>>> x = invert_decreasing(f, 0.25, 1.0, 1e6, Rounding.UP)
>>> f(x) <= 0.25
True
>>> invert_decreasing(f, 2.0, 1.0, 1e6, Rounding.UP)
1.0
"""

from __future__ import annotations
from enum import Enum
from typing import Callable

from seqks.stats.common.rounding import DBL_MAX, bits_float, float_bits


class Rounding(str, Enum):
    """Direction of a safe bound.

    - UP: over-approximate (result is never smaller than the true value)
    - DOWN: under-approximate (result is never larger than the true value)
    """

    UP = "up"
    DOWN = "down"


# Enough rounds to walk every bit pattern between two positive doubles.
INVERSION_ITERATIONS = 64


def invert_decreasing(
    fn: Callable[[float], float],
    target: float,
    low: float,
    high: float = DBL_MAX,
    rounding: Rounding = Rounding.UP,
    iterations: int = INVERSION_ITERATIONS,
) -> float:
    """
    Invert a non-increasing function `fn` on `[low, high]`.

    Args:
        fn: Non-increasing function of x
        target: Value to invert
        low: Lower end of the domain (must be a non-negative double)
        high: Upper end of the domain
        rounding: `Rounding.UP` finds the min x with fn(x) <= target;
            `Rounding.DOWN` finds the max x with fn(x) >= target
        iterations: Fixed number of bisection rounds

    Returns:
        The boundary crossing, rounded in the requested direction, or a
        pivot where fn hits `target` exactly.

    Note:
        NaN evaluations compare false on both sides and move `low` up.
    """
    if fn(low) <= target:
        return low

    if fn(high) >= target:
        return high

    # Invariant: fn(low) > target and fn(high) < target.
    for _ in range(iterations):
        low_bits = float_bits(low)
        high_bits = float_bits(high)
        pivot = bits_float(low_bits + (high_bits - low_bits) // 2)
        fx = fn(pivot)
        if fx == target:
            return pivot

        if fx < target:
            high = pivot
        else:
            low = pivot

    return high if rounding == Rounding.UP else low
