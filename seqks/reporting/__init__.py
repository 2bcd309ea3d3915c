"""
Reporting views over the ledger.

- `generic.LedgerReporter`: scheme-agnostic event counts and raw frames
- `ks.KSReporter`: per-look progress of sequential KS experiments
"""

from seqks.reporting.generic import LedgerReporter
from seqks.reporting.ks import KSReporter

__all__ = ["KSReporter", "LedgerReporter"]
