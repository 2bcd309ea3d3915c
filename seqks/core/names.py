"""
seqks.core.names
================

Typed names shared across the package.

- `Namespace`: an Enum for well-known ledger namespaces.
- `ExperimentId`, `StepKey`, `TimeIndex`: NewType wrappers for clarity.
- Common `Literal` tags for the sequential KS components.

Examples
--------
>>> from seqks.core.names import Namespace, ExperimentId
>>> Namespace.OBS.value
'obs'
>>> str(Namespace.CRITERIA)
'criteria'
>>> eid = ExperimentId("exp#1"); isinstance(eid, str)
True
"""

from __future__ import annotations
from enum import Enum
from typing import Literal, NewType


class Namespace(str, Enum):
    """Well-known ledger namespaces.

    - DESIGN: registered experiment designs
    - OBS: raw observations
    - STATS: statistics (derived)
    - CRITERIA: critical values / boundaries / thresholds
    - SIGNALS: emitted signals / decisions / recommendations
    """

    DESIGN = "design"
    OBS = "obs"
    STATS = "stats"
    CRITERIA = "criteria"
    SIGNALS = "signals"

    def __str__(self) -> str:
        return self.value


ExperimentId = NewType("ExperimentId", str)
StepKey = NewType("StepKey", str)
TimeIndex = NewType("TimeIndex", str)

KSDistanceTag = Literal["stat:ks_distance"]
KSThresholdTag = Literal["crit:ks_threshold"]
KSDecisionTag = Literal["ks:decision"]
KSHorizonTag = Literal["ks:horizon"]
