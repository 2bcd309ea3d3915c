"""
seqks.stats.methods.one_sided_ks.core
=====================================

Anytime-valid threshold for the sequential one-sided KS statistic.

Given `n` pairs of datapoints, of which the first `min_count` were
accumulated without any significance test, `threshold(n, min_count,
log_eps)` is the level that the supremum of the CDF difference must
exceed before we reject "the first stream is <= the second". Applied to an
infinite stream, the probability of ever rejecting a true null is at most
`exp(log_eps)`.

The threshold is `f(n) / n` with

    f(x) = sqrt((x + 1) (2 log x + log b)),    b = 1 / [eps (min_count - 1)],

a law-of-the-iterated-logarithm confidence sequence. `min_count` must be
large enough that `eps exp(min_count - 1) >= min_count + 1`.

Mathematical background
-----------------------
All arithmetic is rounded outward (see `seqks.stats.common.rounding`):
`threshold_up` never under-estimates f(x)/x and `threshold_down` never
over-estimates it, so floating point cannot make the error guarantee lie.

Examples
--------
>>> import math
>>> find_min_count(math.log(0.05))
6
>>> min_count_valid(5, math.log(0.05))
False
>>> t = threshold(100, 6, math.log(0.05))
>>> abs(t - math.sqrt(101 * (2 * math.log(100) + math.log(4))) / 100) < 1e-15
True
>>> threshold(5, 6, math.log(0.05))
inf
"""

from __future__ import annotations
import logging
import math

from seqks.stats.common.rounding import (
    log_down,
    log_up,
    next_down,
    next_up,
    sqrt_down,
    sqrt_up,
)

logger = logging.getLogger(__name__)

# Largest value `find_min_count` reports; as good as infinity in practice.
MAX_MIN_COUNT = (1 << 64) - 1


def check_log_eps(log_eps: float) -> None:
    """Raise ValueError unless `log_eps` is a strictly negative log rate."""
    if not log_eps < 0:
        raise ValueError(
            f"log_eps must be negative (for a false positive rate < 1), got {log_eps}"
        )


def threshold_up(x: float, log_b_up: float) -> float:
    """f(x) / x, where f(x) = ((x + 1)(2 log x + log b))^1/2, rounded up."""
    # Exact up to 2^53.
    xp1 = x + 1.0
    # f(x)^2 = (x + 1)(2 log x + log b); the multiplication by 2 is exact.
    f_x2 = next_up(xp1 * next_up(2 * log_up(x) + log_b_up))
    return next_up(sqrt_up(f_x2) / x)


def threshold_down(x: float, log_b_down: float) -> float:
    """f(x) / x, rounded down."""
    xp1 = x + 1.0
    f_x2 = next_down(xp1 * next_down(2 * log_down(x) + log_b_down))
    return next_down(sqrt_down(f_x2) / x)


def log_b_up(min_count: int, log_eps: float) -> float:
    """log(b) = -log(eps) - log(min_count - 1), rounded up."""
    return next_up(-log_down(min_count - 1.0) - log_eps)


def log_b_down(min_count: int, log_eps: float) -> float:
    """log(b), rounded down."""
    return next_down(-log_up(min_count - 1.0) - log_eps)


def min_count_valid(min_count: int, log_eps: float) -> bool:
    """
    Determine whether `min_count` is high enough to achieve a log error
    rate of at most `log_eps`.

    We need eps exp(min_count - 1) >= min_count + 1, i.e., in log space,
    log(eps) + min_count - 1 >= log(min_count + 1). Both sides are rounded
    so that the test errs towards "invalid".

    >>> min_count_valid(6, math.log(0.05)), min_count_valid(7, math.log(0.05))
    (True, True)
    >>> min_count_valid(2, -1e-3)
    False
    """
    check_log_eps(log_eps)
    if min_count <= 2:
        return False

    return next_down(log_eps + (min_count - 1)) >= log_up(min_count + 1.0)


def find_min_count(log_eps: float) -> int:
    """
    Compute the smallest valid `min_count` for `log_eps`.

    Gallops over powers of two to bracket the answer, then bisects the
    bracket. Saturates at `MAX_MIN_COUNT` when even 2**63 is not enough
    (e.g., `log_eps = -inf`).

    >>> find_min_count(-1e-300)
    3
    >>> find_min_count(-math.inf) == MAX_MIN_COUNT
    True
    """
    check_log_eps(log_eps)

    for i in range(1, 64):
        if min_count_valid(1 << i, log_eps):
            break
    else:
        return MAX_MIN_COUNT

    # Nothing to bsearch: m is at least 2.
    if i == 1:
        return 2

    # Invariant: low is invalid, and high is valid.
    low = 1 << (i - 1)
    high = 1 << i
    while low + 1 < high:
        pivot = low + (high - low) // 2
        if min_count_valid(pivot, log_eps):
            high = pivot
        else:
            low = pivot

    return high


def threshold_fast(n: int, min_count: int, log_eps: float) -> float:
    """
    Like `threshold`, but trusts the caller to pass a valid `min_count`.

    Returns `inf` while `n < min_count`: no test may run before then.
    """
    check_log_eps(log_eps)
    if n < min_count:
        return math.inf

    if min_count < 2:
        raise ValueError(f"min_count must be at least 2, got {min_count}")

    return threshold_up(float(n), log_b_up(min_count, log_eps))


def threshold(n: int, min_count: int, log_eps: float) -> float:
    """
    Threshold on the observed CDF gap after `n` pairs of datapoints.

    If the supremum of the difference between the two empirical CDFs
    exceeds the returned value, conclude that the first set of datapoints
    is not sampled from a distribution that is always <= the second. Add a
    family offset (see `constants`) to `log_eps` for other comparisons.

    An invalid `min_count` is replaced with `find_min_count(log_eps)`.

    Args:
        n: Number of pairs observed so far
        min_count: Number of pairs accumulated before testing started
        log_eps: Natural log of the lifetime false-positive rate; must be < 0

    Returns:
        The threshold, or `inf` if `n` is still below the effective min count
    """
    check_log_eps(log_eps)

    if not min_count_valid(min_count, log_eps):
        substitute = find_min_count(log_eps)
        logger.debug(
            "min_count=%d is invalid for log_eps=%r; using %d",
            min_count,
            log_eps,
            substitute,
        )
        min_count = substitute

    return threshold_fast(n, min_count, log_eps)
