import logging

import numpy as np
import pytest

from seqks.api import two_sample_monitoring
from seqks.core.ledger import Ledger, create_test_connection
from seqks.runtime import SequentialRunner


def shifted_batches(seed=11, n_batches=8, size=25, shift=2.0):
    rng = np.random.default_rng(seed)
    return [
        {"a": rng.normal(0.0, 1.0, size), "b": rng.normal(shift, 1.0, size)}
        for _ in range(n_batches)
    ]


def test_runner_requires_setup():
    runner = SequentialRunner(two_sample_monitoring("exp"))
    with pytest.raises(RuntimeError, match="Runner not setup"):
        runner.add_observations(pairs=[(0.0, 1.0)])
    with pytest.raises(RuntimeError, match="Runner not setup"):
        runner.analyze()
    with pytest.raises(RuntimeError, match="Runner not setup"):
        runner.run_simulation([])


def test_ledger_in_constructor_sets_up_template(ledger):
    template = two_sample_monitoring("exp")
    SequentialRunner(template, ledger)
    assert template.get_summary()["status"] == "ready"


def test_run_simulation_analyzes_every_batch(ledger):
    runner = SequentialRunner(two_sample_monitoring("exp"), ledger)

    results = runner.run_simulation(shifted_batches())

    assert list(results) == list(range(1, 9))
    assert [r.look_number for r in results.values()] == list(range(1, 9))
    assert [r.sample_size for r in results.values()] == [25 * i for i in range(1, 9)]
    assert runner.is_stopped
    assert len(runner.get_results_history()) == 8


def test_run_simulation_at_selected_batches(ledger):
    runner = SequentialRunner(two_sample_monitoring("exp"), ledger)

    results = runner.run_simulation(shifted_batches(), analyze_at=[2, 8])

    assert sorted(results) == [2, 8]
    assert results[2].sample_size == 50
    assert results[8].sample_size == 200
    assert results[8].look_number == 8


def test_history_is_a_copy(ledger):
    runner = SequentialRunner(two_sample_monitoring("exp"), ledger)
    runner.add_observations(pairs=[(0.0, 0.0)])
    runner.analyze()

    history = runner.get_results_history()
    history.clear()
    assert len(runner.get_results_history()) == 1


def test_stop_is_logged_once(ledger, caplog):
    runner = SequentialRunner(two_sample_monitoring("shift"), ledger)

    with caplog.at_level(logging.INFO, logger="seqks.runtime.runners"):
        runner.run_simulation(shifted_batches())

    stops = [r for r in caplog.records if "stop at look" in r.getMessage()]
    assert len(stops) == 1
    assert stops[0].getMessage().startswith("shift: stop at look")


def test_summary_and_reset(ledger):
    runner = SequentialRunner(two_sample_monitoring("exp"), ledger)
    runner.run_simulation(shifted_batches(n_batches=2))

    summary = runner.get_summary()
    assert summary["runner_type"] == "sequential"
    assert summary["total_looks"] == 2
    assert summary["current_look"] == 2
    assert summary["experiment_type"] == "sequential_ks"

    runner.reset()
    assert runner.get_summary()["total_looks"] == 0
    assert runner.get_summary()["current_look"] == 2
    assert not runner.is_stopped


def test_experiments_share_a_ledger():
    ledger = Ledger(create_test_connection("duckdb"), "shared")
    drifting = SequentialRunner(two_sample_monitoring("drifting"), ledger)
    steady = SequentialRunner(two_sample_monitoring("steady"), ledger)

    drifting.run_simulation(shifted_batches())
    steady.run_simulation(
        [{"a": np.arange(25.0), "b": np.arange(25.0)[::-1]} for _ in range(8)]
    )

    assert drifting.is_stopped
    assert not steady.is_stopped
    assert steady.get_results_history()[-1].sample_size == 200
