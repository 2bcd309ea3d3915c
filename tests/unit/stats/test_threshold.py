import logging
import math
from decimal import Decimal, localcontext

import pytest

from seqks.stats.methods.one_sided_ks import PAIR_EQ
from seqks.stats.methods.one_sided_ks.core import (
    MAX_MIN_COUNT,
    find_min_count,
    log_b_down,
    log_b_up,
    min_count_valid,
    threshold,
    threshold_down,
    threshold_fast,
    threshold_up,
)

LOG_EPS = math.log(0.05)


def exact_threshold(n, min_count, log_eps):
    with localcontext() as ctx:
        ctx.prec = 60
        log_b = -Decimal(log_eps) - Decimal(min_count - 1).ln()
        f2 = Decimal(n + 1) * (2 * Decimal(n).ln() + log_b)
        return f2.sqrt() / Decimal(n)


# --- Min count policy ---


def test_find_min_count_for_five_percent():
    assert find_min_count(LOG_EPS) == 6
    assert not min_count_valid(5, LOG_EPS)
    assert min_count_valid(6, LOG_EPS)


def test_find_min_count_near_zero_log_eps():
    assert find_min_count(-1e-300) == 3


def test_find_min_count_saturates():
    assert find_min_count(-math.inf) == MAX_MIN_COUNT
    assert MAX_MIN_COUNT == 2**64 - 1


@pytest.mark.parametrize("log_eps", [-1e-3, -1.0, LOG_EPS, -10.0, -50.0, -700.0])
def test_find_min_count_is_smallest_valid(log_eps):
    m = find_min_count(log_eps)
    assert min_count_valid(m, log_eps)
    assert not min_count_valid(m - 1, log_eps)


def test_find_min_count_grows_as_eps_shrinks():
    counts = [find_min_count(log_eps) for log_eps in (-0.1, -1.0, -5.0, -20.0, -100.0)]
    assert counts == sorted(counts)


@pytest.mark.parametrize("min_count", [0, 1, 2])
def test_tiny_min_counts_are_invalid(min_count):
    assert not min_count_valid(min_count, -1e-300)


def test_min_count_validity_is_monotone():
    log_eps = math.log(1e-6)
    m = find_min_count(log_eps)
    assert all(min_count_valid(k, log_eps) for k in range(m, m + 200))


# --- Threshold function ---


@pytest.mark.parametrize("n", [6, 7, 10, 100, 1000, 10**6, 2**40])
def test_bounds_bracket_exact_threshold(n):
    exact = exact_threshold(n, 6, LOG_EPS)
    up = threshold_up(float(n), log_b_up(6, LOG_EPS))
    down = threshold_down(float(n), log_b_down(6, LOG_EPS))
    assert Decimal(down) <= exact <= Decimal(up)
    assert (up - down) / up < 1e-13


def test_threshold_matches_closed_form():
    expected = math.sqrt(101 * (2 * math.log(100) + math.log(4))) / 100
    assert threshold(100, 6, LOG_EPS) == pytest.approx(expected, rel=1e-14)
    assert threshold(100, 6, LOG_EPS) >= float(exact_threshold(100, 6, LOG_EPS))


@pytest.mark.parametrize("n", range(6, 100))
def test_threshold_golden_values(n):
    expected = math.sqrt((n + 1) * (2 * math.log(n) + math.log(4))) / n
    assert abs(threshold(n, 6, LOG_EPS) - expected) <= 1e-15


def test_threshold_does_not_grow_with_min_count():
    values = [threshold(1000, m, LOG_EPS) for m in range(6, 1001, 7)]
    assert all(a >= b for a, b in zip(values, values[1:]))


def test_threshold_is_infinite_before_min_count():
    assert threshold(0, 6, LOG_EPS) == math.inf
    assert threshold(5, 6, LOG_EPS) == math.inf
    assert math.isfinite(threshold(6, 6, LOG_EPS))


def test_threshold_decreases_with_n():
    values = [threshold(n, 6, LOG_EPS) for n in range(6, 3000, 7)]
    assert all(a > b for a, b in zip(values, values[1:]))


def test_threshold_grows_as_eps_shrinks():
    m = find_min_count(math.log(1e-6))
    assert threshold(10_000, m, math.log(1e-6)) > threshold(10_000, m, math.log(0.05))


def test_equality_family_is_stricter():
    log_eps = math.log(0.01)
    m = find_min_count(log_eps + PAIR_EQ)
    assert threshold(1000, m, log_eps + PAIR_EQ) > threshold(1000, m, log_eps)


def test_threshold_substitutes_invalid_min_count(caplog):
    with caplog.at_level(logging.DEBUG, logger="seqks.stats.methods.one_sided_ks.core"):
        healed = threshold(100, 2, LOG_EPS)
    assert healed == threshold(100, 6, LOG_EPS)
    assert "min_count=2 is invalid" in caplog.text


def test_threshold_uses_substituted_min_count_for_warmup():
    assert threshold(5, 3, LOG_EPS) == math.inf


def test_threshold_fast_trusts_caller():
    assert threshold_fast(100, 6, LOG_EPS) == threshold(100, 6, LOG_EPS)
    assert threshold_fast(1, 3, LOG_EPS) == math.inf
    assert math.isfinite(threshold_fast(100, 3, LOG_EPS))


def test_threshold_fast_rejects_singular_min_count():
    with pytest.raises(ValueError, match="min_count must be at least 2"):
        threshold_fast(10, 1, LOG_EPS)


@pytest.mark.parametrize("log_eps", [0.0, 0.5, math.inf, math.nan])
def test_non_negative_log_eps_is_rejected(log_eps):
    with pytest.raises(ValueError, match="log_eps must be negative"):
        threshold(100, 6, log_eps)
    with pytest.raises(ValueError, match="log_eps must be negative"):
        threshold_fast(100, 6, log_eps)
    with pytest.raises(ValueError, match="log_eps must be negative"):
        find_min_count(log_eps)
    with pytest.raises(ValueError, match="log_eps must be negative"):
        min_count_valid(6, log_eps)
