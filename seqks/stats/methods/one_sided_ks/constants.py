"""
seqks.stats.methods.one_sided_ks.constants
==========================================

Comparison-family offsets for the one-sided KS threshold.

Add one of these to `log_eps` to select the kind of comparison. The
offsets are `-log 2`, `-log(2 sqrt 2)` and `-log(4 sqrt 2)` rounded away
from zero, so the adjusted error budget is never looser than intended.

- `PAIR_LE`: pairwise <= test (the base case, no adjustment)
- `PAIR_EQ`: pairwise equality test
- `FIXED_LE`: <= test against a specific distribution
- `FIXED_EQ`: equality test against a specific distribution
- `CLASS_EQ`: equality test against a family of distributions

Examples
--------
>>> check_constants()
0
>>> family_log_eps(-3.0, "pair_le")
-3.0
>>> family_log_eps(-3.0, "pair_eq") < -3.0
True
"""

from __future__ import annotations
import math
import struct
from types import MappingProxyType
from typing import Literal, Mapping, Tuple

Family = Literal["pair_le", "pair_eq", "fixed_le", "fixed_eq", "class"]

# Pairwise <= test is the base case.
PAIR_LE = 0.0

# -log 2 rounded away from 0.
PAIR_EQ = -0.6931471805599454

# -log(2 sqrt(2)) rounded away from 0.
FIXED_LE = -1.039720770839918

# -log(4 sqrt(2)) rounded away from 0.
FIXED_EQ = -1.7328679513998635

# -log(4 sqrt(2)) rounded away from 0.
CLASS_EQ = -1.7328679513998635

FAMILY_OFFSETS: Mapping[str, float] = MappingProxyType(
    {
        "pair_le": PAIR_LE,
        "pair_eq": PAIR_EQ,
        "fixed_le": FIXED_LE,
        "fixed_eq": FIXED_EQ,
        "class": CLASS_EQ,
    }
)

# Raw sign-magnitude bit patterns, in bitmask order.
_EXPECTED_BITS: Tuple[Tuple[str, int], ...] = (
    ("pair_le", 0),
    ("pair_eq", -4618953502541334032),
    ("fixed_le", -4616010731606004876),
    ("fixed_eq", -4612889074221922196),
    ("class", -4612889074221922196),
)


def check_constants() -> int:
    """
    Return 0 if the family offsets hold their expected values.

    Otherwise return a bitmask with one bit set per mismatched constant:
    bit 0 pair_le, bit 1 pair_eq, bit 2 fixed_le, bit 3 fixed_eq, bit 4 class.

    Bit patterns are compared directly in sign-magnitude form, so this
    also catches a negative zero for `pair_le`.
    """
    ret = 0
    for index, (name, expected) in enumerate(_EXPECTED_BITS):
        actual = struct.unpack("=q", struct.pack("=d", FAMILY_OFFSETS[name]))[0]
        if actual != expected:
            ret |= 1 << index
    return ret


def family_log_eps(log_eps: float, family: Family = "pair_le") -> float:
    """Adjust a log error rate for the comparison family."""
    if family not in FAMILY_OFFSETS:
        raise ValueError(
            f"Unknown comparison family: {family}. "
            f"Use one of {sorted(FAMILY_OFFSETS)}."
        )
    return log_eps + FAMILY_OFFSETS[family]


def log_eps_from_alpha(alpha: float) -> float:
    """
    Convert a lifetime false-positive rate into `log_eps`.

    >>> log_eps_from_alpha(0.05) == math.log(0.05)
    True
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    return math.log(alpha)
