"""
Monte Carlo checks of the lifetime error guarantee.

Each trial feeds two streams of draws over 10 ordered categories, one pair
per step, and stops the first time the gap between their empirical CDFs
exceeds `threshold(n, 100, ln(0.01) + PAIR_EQ)`. Trials are simulated in
parallel with numpy, tracking `#{x <= k} - #{y <= k}` for every category k.
"""

import math

import numpy as np
import pytest

from seqks.stats.methods.one_sided_ks import PAIR_EQ, expected_iter, threshold

pytestmark = pytest.mark.slow

CATEGORIES = 10
MIN_COUNT = 100
LOG_EPS = math.log(0.01) + PAIR_EQ
DISCREPANCY = 0.025


def simulate(rng, n_trials, horizon, discrepancy=0.0, chunk=1000):
    """Return the step at which each trial rejects (0 if it never does)."""
    bounds = np.array(
        [threshold(n, MIN_COUNT, LOG_EPS) for n in range(1, horizon + 1)]
    )
    levels = np.arange(CATEGORIES)

    stops = np.zeros(n_trials, dtype=np.int64)
    gaps = np.zeros((n_trials, CATEGORIES), dtype=np.int64)
    active = np.arange(n_trials)

    for start in range(0, horizon, chunk):
        if active.size == 0:
            break
        size = min(chunk, horizon - start)

        x = rng.integers(0, CATEGORIES, size=(active.size, size))
        y = rng.integers(0, CATEGORIES, size=(active.size, size))
        if discrepancy > 0:
            skewed = rng.random((active.size, size)) < discrepancy
            y = np.where(skewed, CATEGORIES - 1, y)

        steps = (x[..., None] <= levels).astype(np.int64) - (y[..., None] <= levels)
        path = gaps[active][:, None, :] + np.cumsum(steps, axis=1)

        n = np.arange(start + 1, start + size + 1)
        delta = np.abs(path).max(axis=2) / n
        crossed = delta > bounds[start : start + size]

        hit = crossed.any(axis=1)
        stops[active[hit]] = start + crossed.argmax(axis=1)[hit] + 1
        gaps[active] = path[:, -1, :]
        active = active[~hit]

    return stops


@pytest.fixture(scope="module")
def shifted_stops():
    return simulate(np.random.default_rng(2), 500, 100_000, DISCREPANCY)


def test_identical_streams_rarely_reject():
    stops = simulate(np.random.default_rng(1), 1000, 20_000)
    assert np.mean(stops > 0) <= 0.01


def test_no_rejection_before_min_count():
    stops = simulate(np.random.default_rng(3), 200, 2_000, discrepancy=0.5)
    assert (stops > 0).all()
    assert stops.min() >= MIN_COUNT


def test_discrepant_streams_are_detected(shifted_stops):
    assert np.mean(shifted_stops > 0) >= 0.99


def test_typical_stop_is_within_expected_iter(shifted_stops):
    bound = expected_iter(MIN_COUNT, LOG_EPS, DISCREPANCY)
    early = (shifted_stops > 0) & (shifted_stops < bound)
    assert np.mean(early) >= 0.5
