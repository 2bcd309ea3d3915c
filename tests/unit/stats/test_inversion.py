import math

import pytest

from seqks.stats.common.inversion import Rounding, invert_decreasing
from seqks.stats.common.rounding import DBL_MAX, next_down, next_up


def reciprocal(x):
    return 1.0 / x


@pytest.mark.parametrize("target", [0.3, 0.01, 0.7, 1e-5])
def test_round_up_returns_minimal_crossing(target):
    x = invert_decreasing(reciprocal, target, 1.0, 1e6, Rounding.UP)
    assert reciprocal(x) <= target
    assert reciprocal(next_down(x)) > target or reciprocal(x) == target


@pytest.mark.parametrize("target", [0.3, 0.01, 0.7, 1e-5])
def test_round_down_returns_maximal_crossing(target):
    x = invert_decreasing(reciprocal, target, 1.0, 1e6, Rounding.DOWN)
    assert reciprocal(x) >= target
    assert reciprocal(next_up(x)) < target or reciprocal(x) == target


@pytest.mark.parametrize("target", [0.3, 1.0 / 7.0])
def test_directions_are_adjacent(target):
    up = invert_decreasing(reciprocal, target, 1.0, 1e6, Rounding.UP)
    down = invert_decreasing(reciprocal, target, 1.0, 1e6, Rounding.DOWN)
    assert down <= up <= next_up(down)


def test_exact_hit_is_returned():
    assert invert_decreasing(reciprocal, 0.25, 1.0, 1e6, Rounding.UP) == 4.0
    assert invert_decreasing(reciprocal, 0.25, 1.0, 1e6, Rounding.DOWN) == 4.0


def test_target_above_range_returns_low():
    assert invert_decreasing(reciprocal, 2.0, 1.0, 1e6) == 1.0


def test_target_below_range_returns_high():
    assert invert_decreasing(reciprocal, 1e-9, 1.0, 1e6) == 1e6


def test_default_high_is_dbl_max():
    assert invert_decreasing(lambda x: 1.0, 0.5, 1.0) == 1.0
    assert invert_decreasing(lambda x: 2.0, 0.5, 1.0) == DBL_MAX


def test_nan_evaluations_move_low_up():
    def fn(x):
        return math.nan if x > 10.0 else 1.0 / x

    # The crossing lies in the NaN region, so the search never lowers high.
    assert invert_decreasing(fn, 0.05, 1.0, 1e6, Rounding.UP) == 1e6
    assert invert_decreasing(fn, 0.05, 1.0, 1e6, Rounding.DOWN) > 10.0


def test_plain_string_rounding():
    up = invert_decreasing(reciprocal, 0.3, 1.0, 1e6, "up")
    down = invert_decreasing(reciprocal, 0.3, 1.0, 1e6, "down")
    assert up == invert_decreasing(reciprocal, 0.3, 1.0, 1e6, Rounding.UP)
    assert down == invert_decreasing(reciprocal, 0.3, 1.0, 1e6, Rounding.DOWN)
