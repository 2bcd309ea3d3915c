"""
seqks.runtime.experiment_template
=================================

Base classes for experiment templates.

A template bundles the design parameters, the component pipeline and the
interpretation of results for one kind of experiment, so the same
definition can be run against any ledger backend.

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> from seqks.runtime.experiment_template import ExperimentTemplate, AnalysisResult
>>>
>>> class MyTemplate(ExperimentTemplate):
...     def configure_components(self): return {}
...     def register_design(self, ledger): pass
...     def extract_results(self, ledger):
...         return AnalysisResult(should_stop=False, statistic_value=0.0,
...                               threshold_value=None, look_number=self._current_look)
...     def _populate_batch(self, batch, **kwargs): pass
>>>
>>> template = MyTemplate("test")
>>> template.get_summary()["status"]
'not_setup'
>>> template.setup(Ledger(create_test_connection("duckdb"), "test"))  # doctest: +SKIP
>>> template._is_setup  # doctest: +SKIP
True
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from seqks.core.ledger import Ledger
from seqks.core.names import Namespace


@dataclass
class AnalysisResult:
    """Results from a single analysis look."""

    # Core results
    should_stop: bool
    statistic_value: float
    threshold_value: Optional[float]
    look_number: int

    # Additional context
    sample_size: Optional[int] = None

    # Method-specific results
    additional_metrics: Dict[str, Any] = field(default_factory=dict)

    # Raw event data for advanced use
    statistic_event: Optional[Any] = None
    criteria_event: Optional[Any] = None
    signal_event: Optional[Any] = None


class ExperimentTemplate(ABC):
    """
    Base class for portable experiment templates.

    Encapsulates the logic for one type of experiment:
    - Design parameters and their registration
    - Observation ingestion and validation
    - Component configuration (observer, statistic, criteria, signaler)
    - Interpretation of the analysis results
    """

    def __init__(self, experiment_id: str):
        self.experiment_id = experiment_id
        self.ledger: Optional[Ledger] = None
        self.components: Dict[str, Any] = {}
        self._is_setup = False
        self._current_look = 0

    @abstractmethod
    def configure_components(self) -> Dict[str, Any]:
        """
        Configure the pipeline components.

        Returns
        -------
        Dict[str, Any]
            Components keyed by role ('observation', 'statistic', 'criteria',
            'signaler', optionally 'recommender'). They run in this order.
        """

    @abstractmethod
    def register_design(self, ledger: Ledger) -> None:
        """Register the experimental design to the ledger."""

    @abstractmethod
    def extract_results(self, ledger: Ledger) -> AnalysisResult:
        """Extract analysis results from ledger events."""

    @abstractmethod
    def _populate_batch(self, batch: Any, **kwargs: Any) -> None:
        """Populate the observation batch with data."""

    def setup(self, ledger: Ledger) -> None:
        """Setup the template with a specific ledger backend."""
        self.ledger = ledger
        self.components = self.configure_components()
        self.register_design(ledger)
        self._is_setup = True
        self._current_look = self._registered_looks()

    def _registered_looks(self) -> int:
        """Looks already in the ledger for this experiment (one OBS event each)."""
        if self.ledger is None:
            return 0
        return len(
            self.ledger.events(
                namespace=Namespace.OBS, experiment_id=str(self.experiment_id)
            )
        )

    def _require_setup(self) -> Ledger:
        if not self._is_setup or self.ledger is None:
            raise RuntimeError("Template not setup. Call setup(ledger) first.")
        return self.ledger

    def add_observations(self, **kwargs: Any) -> None:
        """Add a batch of observations using the configured observer."""
        ledger = self._require_setup()

        observer = self.components["observation"]
        batch = observer.create_batch()
        self._populate_batch(batch, **kwargs)

        look = self._current_look + 1
        if not observer.register_batch(
            ledger, str(self.experiment_id), f"look-{look}", f"t{look}", batch
        ):
            raise ValueError(
                f"Failed to register observations: {batch.validation_errors}"
            )
        self._current_look = look

    def analyze(self) -> AnalysisResult:
        """Run the component pipeline and return results."""
        ledger = self._require_setup()

        if self._current_look == 0:
            raise ValueError(
                "No observations registered yet. Call add_observations() first."
            )

        time_index = f"t{self._current_look}"
        step_key = f"look-{self._current_look}"

        for component in self.components.values():
            component.step(ledger, str(self.experiment_id), step_key, time_index)

        return self.extract_results(ledger)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the experiment state."""
        summary: Dict[str, Any] = {
            "experiment_id": str(self.experiment_id),
            "status": "ready" if self._is_setup else "not_setup",
            "current_look": self._current_look,
        }
        if self._is_setup:
            summary["components"] = list(self.components.keys())
        return summary

    def reset(self) -> None:
        """
        Drop in-memory state, keeping the configuration.

        The ledger is append-only, so observations already registered stay
        part of the experiment and look numbering resumes after them. Use a
        new experiment_id to start from scratch.
        """
        self._current_look = self._registered_looks()
