"""
seqks.stats.common.rounding
===========================

Directed rounding primitives.

Every bound computed by this package must stay on the safe side of the
true mathematical value, even after libm and basic-operation rounding.
We get there by stepping results outward by a few representable doubles.

Doubles are mapped to integers whose natural order is the IEEE-754 total
order (sign-magnitude bits converted to two's complement), so moving `k`
representable steps is just integer addition on that image.

Examples
--------
>>> float_bits(0.0), float_bits(-0.0)
(0, -1)
>>> next_up(1.0)
1.0000000000000002
>>> next_down(1.0)
0.9999999999999999
>>> next_up(-0.0)
0.0
>>> log_down(20.0) < math.log(20.0) < log_up(20.0)
True
"""

from __future__ import annotations
import math
import struct
from typing import cast

# Assume libm's log is off by less than 4 ULPs.
LIBM_ERROR_LIMIT = 4

DBL_MAX = 1.7976931348623157e308
DBL_MIN = 2.2250738585072014e-308


def float_bits(x: float) -> int:
    """Convert a double to sign-magnitude bits, then to 2's complement.

    >>> float_bits(1.0)
    4607182418800017408
    >>> float_bits(-1.0) < float_bits(-0.0) < float_bits(0.0) < float_bits(1.0)
    True
    >>> -float_bits(math.pi) - 1 == float_bits(-math.pi)
    True
    """
    bits = struct.unpack("=q", struct.pack("=d", x))[0]
    magnitude = cast(int, bits % (1 << 63))
    # ~magnitude == -1 - magnitude keeps -0.0 strictly below +0.0.
    return magnitude if bits >= 0 else ~magnitude


def bits_float(bits: int) -> float:
    """Inverse of `float_bits`.

    >>> bits_float(4607182418800017409)
    1.0000000000000002
    >>> bits_float(-1)
    -0.0
    >>> bits_float(float_bits(-math.pi)) == -math.pi
    True
    """
    if bits < 0:
        bits = ~(bits % (1 << 63))
    return cast(float, struct.unpack("=d", struct.pack("=q", bits))[0])


def step(x: float, k: int) -> float:
    """Move `k` representable doubles up (k > 0) or down (k < 0) from `x`.

    >>> step(1.0, 2) == next_up(next_up(1.0))
    True
    >>> step(math.pi, 0) == math.pi
    True
    """
    return bits_float(float_bits(x) + k)


def next_up(x: float, delta: int = 1) -> float:
    """Increment `x` by `delta` ULPs."""
    return step(x, delta)


def next_down(x: float, delta: int = 1) -> float:
    """Decrement `x` by `delta` ULPs."""
    return step(x, -delta)


def log_up(x: float) -> float:
    """Conservative upper bound on log(x).

    >>> 0 < log_up(4.0) - math.log(4.0) < 1e-10
    True
    """
    return next_up(math.log(x), LIBM_ERROR_LIMIT)


def log_down(x: float) -> float:
    """Conservative lower bound on log(x).

    >>> -1e-10 < log_down(4.0) - math.log(4.0) < 0
    True
    """
    return next_down(math.log(x), LIBM_ERROR_LIMIT)


def sqrt_up(x: float) -> float:
    """Upper bound on sqrt(x); sqrt is correctly rounded, one step is enough."""
    return next_up(math.sqrt(x))


def sqrt_down(x: float) -> float:
    """Lower bound on sqrt(x)."""
    return next_down(math.sqrt(x))
