"""
seqks.runtime.runners
=====================

Runners that execute experiment templates.

Runners provide the execution environment while templates define the
experiment logic, so a template can be driven live (one batch at a time)
or replayed over recorded batches.

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> from seqks.runtime.runners import SequentialRunner
>>> from seqks.stats.schemes.ks_streams import TwoSampleKSTemplate
>>>
>>> runner = SequentialRunner(TwoSampleKSTemplate("exp"))
>>> runner.setup(Ledger(create_test_connection("duckdb")))  # doctest: +SKIP
>>> runner.add_observations(a=[0.1, 0.4], b=[0.3, 0.2])  # doctest: +SKIP
>>> runner.analyze().should_stop  # doctest: +SKIP
False
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional

from seqks.core.ledger import Ledger
from seqks.runtime.experiment_template import AnalysisResult, ExperimentTemplate

logger = logging.getLogger(__name__)


class SequentialRunner:
    """
    Sequential experiment runner.

    Observations arrive over time; analysis runs after each batch (or at
    chosen batches) and every result is kept in a history.
    """

    def __init__(self, template: ExperimentTemplate, ledger: Optional[Ledger] = None):
        self.template = template
        self._ledger = ledger
        self._results_history: List[AnalysisResult] = []

        if ledger is not None:
            self.setup(ledger)

    def setup(self, ledger: Ledger) -> None:
        """Setup the runner with a specific ledger backend."""
        self._ledger = ledger
        self.template.setup(ledger)

    def _require_setup(self) -> None:
        if self._ledger is None:
            raise RuntimeError(
                "Runner not setup. Call setup(ledger) first or provide ledger in constructor."
            )

    def add_observations(self, **kwargs: Any) -> None:
        """Add observations through the template."""
        self._require_setup()
        self.template.add_observations(**kwargs)

    def analyze(self) -> AnalysisResult:
        """Run analysis and store results."""
        self._require_setup()

        was_stopped = self.is_stopped
        result = self.template.analyze()
        self._results_history.append(result)

        if result.should_stop and not was_stopped:
            logger.info(
                "%s: stop at look %d (statistic=%.6g, threshold=%.6g, n=%s)",
                self.template.experiment_id,
                result.look_number,
                result.statistic_value,
                result.threshold_value,
                result.sample_size,
            )
        return result

    def run_simulation(
        self,
        observation_batches: Iterable[Dict[str, Any]],
        analyze_at: Optional[Iterable[int]] = None,
    ) -> Dict[int, AnalysisResult]:
        """
        Replay predefined observation batches.

        Parameters
        ----------
        observation_batches : Iterable[Dict[str, Any]]
            Keyword arguments for `add_observations`, one dict per batch.
        analyze_at : Iterable[int], optional
            1-based batch numbers to analyze at. If None, analyzes after
            each batch.

        Returns
        -------
        Dict[int, AnalysisResult]
            Analysis results keyed by batch number.
        """
        self._require_setup()
        looks = None if analyze_at is None else set(analyze_at)

        results: Dict[int, AnalysisResult] = {}
        for i, batch_kwargs in enumerate(observation_batches, 1):
            self.add_observations(**batch_kwargs)
            if looks is None or i in looks:
                results[i] = self.analyze()

        return results

    @property
    def is_stopped(self) -> bool:
        return any(r.should_stop for r in self._results_history)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary including template and runner state."""
        summary = self.template.get_summary()
        summary.update(
            {
                "runner_type": "sequential",
                "total_looks": len(self._results_history),
                "is_stopped": self.is_stopped,
            }
        )
        return summary

    def get_results_history(self) -> List[AnalysisResult]:
        """Get history of all analysis results."""
        return self._results_history.copy()

    def reset(self) -> None:
        """Reset both template and runner state."""
        self.template.reset()
        self._results_history.clear()
