import json
import math

import numpy as np
import pytest

from seqks.core.names import Namespace
from seqks.stats.schemes.ks_streams.common import (
    KSObsBatchData,
    KSObsBatchHandler,
    KSObservation,
    ObservationBatch,
    reduce_values,
)


def test_paired_batch_validates():
    batch = ObservationBatch()
    batch.add_pairs([(0.1, 0.2), (0.3, 0.4)])
    assert batch.validate()
    assert batch.size() == 2
    assert batch.to_payload() == {"a": [0.1, 0.3], "b": [0.2, 0.4]}


def test_unpaired_batch_is_rejected():
    batch = ObservationBatch()
    batch.add_a_observations([1.0, 2.0])
    batch.add_b_observations([1.0])
    assert not batch.validate()
    assert "Streams must grow in pairs" in batch.validation_errors[0]


def test_non_finite_values_are_rejected():
    batch = ObservationBatch()
    batch.add_pairs([(math.nan, 0.0), (1.0, math.inf)])
    assert not batch.validate()
    assert batch.validation_errors == [
        "Stream A values must be finite",
        "Stream B values must be finite",
    ]


def test_reference_batch_takes_stream_a_only():
    batch = ObservationBatch(two_sample=False)
    batch.add_a_observations([0.5])
    assert batch.validate()

    batch.add_b_observations([0.5])
    assert not batch.validate()
    assert "fixed reference" in batch.validation_errors[0]


def test_validate_is_repeatable():
    batch = ObservationBatch()
    batch.add_a_observations([1.0])
    assert not batch.validate()
    batch.add_b_observations([2.0])
    assert batch.validate()
    assert batch.validation_errors == []


def test_reset_clears_batch():
    batch = ObservationBatch()
    batch.add_pairs([(1.0, 2.0)])
    batch.reset()
    assert batch.is_empty()


def test_register_batch_writes_observation_event(ledger):
    observer = KSObservation()
    batch = observer.create_batch()
    batch.add_pairs([(0.1, 0.9), (0.2, 0.8)])

    assert observer.register_batch(ledger, "exp", "look-1", "t1", batch)

    event = ledger.latest(namespace=Namespace.OBS, experiment_id="exp")
    assert event["kind"] == "observation"
    assert event["payload_type"] == "KSObsBatch"
    assert event["payload"] == KSObsBatchData(a=(0.1, 0.2), b=(0.9, 0.8))


def test_register_batch_refuses_invalid_and_empty_batches(ledger):
    observer = KSObservation()

    empty = observer.create_batch()
    assert not observer.register_batch(ledger, "exp", "look-1", "t1", empty)
    assert "Batch has no observations" in empty.validation_errors

    unpaired = observer.create_batch()
    unpaired.add_a_observations([1.0])
    assert not observer.register_batch(ledger, "exp", "look-1", "t1", unpaired)

    assert ledger.events(namespace=Namespace.OBS) == []


def test_step_registers_pending_batch(ledger):
    observer = KSObservation()
    observer.step(ledger, "exp", "look-1", "t1")
    assert ledger.events(namespace=Namespace.OBS) == []

    observer.current_batch = observer.create_batch()
    observer.current_batch.add_pairs([(1.0, 2.0)])
    observer.step(ledger, "exp", "look-1", "t1")
    assert observer.current_batch is None
    assert len(ledger.events(namespace=Namespace.OBS)) == 1

    observer.current_batch = observer.create_batch()
    observer.current_batch.add_a_observations([1.0])
    with pytest.raises(ValueError, match="Failed to register observations"):
        observer.step(ledger, "exp", "look-2", "t2")


def test_reduce_values_concatenates_per_experiment(ledger):
    observer = KSObservation()
    for exp, pairs in [
        ("exp", [(1.0, 2.0)]),
        ("other", [(9.0, 9.0)]),
        ("exp", [(3.0, 4.0), (5.0, 6.0)]),
    ]:
        batch = observer.create_batch()
        batch.add_pairs(pairs)
        observer.register_batch(ledger, exp, "look", "t", batch)

    a, b = reduce_values(ledger, "exp")
    np.testing.assert_array_equal(a, [1.0, 3.0, 5.0])
    np.testing.assert_array_equal(b, [2.0, 4.0, 6.0])


def test_reduce_values_without_observations(ledger):
    a, b = reduce_values(ledger, "missing")
    assert a.size == 0 and b.size == 0


def test_batch_handler_stands_alone():
    handler = KSObsBatchHandler()

    text = handler.wrap({"a": [0.5, 1.5]})

    assert json.loads(text) == {"a": [0.5, 1.5], "b": []}
    assert handler.unwrap(text) == KSObsBatchData(a=(0.5, 1.5), b=())
    assert handler.unwrap(handler.wrap(KSObsBatchData(a=(1.0,), b=(2.0,)))).b == (2.0,)
