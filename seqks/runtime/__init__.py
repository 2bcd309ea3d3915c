"""
seqks.runtime
=============

Runtime environment for executing seqks experiments.

Key Components
--------------
- `ExperimentTemplate`: Base class for all experiment definitions
- `AnalysisResult`: Standard result container for each analysis look
- `SequentialRunner`: Sequential execution and replay of experiment workflows
"""

from seqks.runtime.experiment_template import AnalysisResult, ExperimentTemplate
from seqks.runtime.runners import SequentialRunner

__all__ = ["AnalysisResult", "ExperimentTemplate", "SequentialRunner"]
