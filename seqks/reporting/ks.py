"""
seqks.reporting.ks
==================

Progress view for sequential KS experiments.

Payloads are unwrapped through the ledger and assembled into polars
frames, one row per analysis look.

Examples
--------
>>> from seqks.core.ledger import Ledger, create_test_connection
>>> from seqks.reporting.ks import KSReporter
>>> ledger = Ledger(create_test_connection("duckdb"), "test")  # doctest: +SKIP
>>> KSReporter(ledger, "exp").progress_table().columns  # doctest: +SKIP
['entity', 'look', 'time_index', 'n', 'statistic', 'd_plus', 'd_minus', 'threshold', 'min_count', 'action', 'reason']
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

import matplotlib.pyplot as plt
import polars as pl

from seqks.core.names import Namespace

if TYPE_CHECKING:
    from seqks.core.ledger import Ledger


_STAT_COLUMNS = {
    "n": pl.Int64,
    "statistic": pl.Float64,
    "d_plus": pl.Float64,
    "d_minus": pl.Float64,
}
_CRIT_COLUMNS = {"threshold": pl.Float64, "min_count": pl.Int64}
_SIGNAL_COLUMNS = {"action": pl.Utf8, "reason": pl.Utf8}

PROGRESS_COLUMNS = [
    "entity",
    "look",
    "time_index",
    *_STAT_COLUMNS,
    *_CRIT_COLUMNS,
    *_SIGNAL_COLUMNS,
]


@dataclass
class KSReporter:
    """Sequential KS progress view over a ledger.

    Attributes:
        ledger: The ledger to read
        experiment_id: Restrict the view to one experiment (default: all)
    """

    ledger: "Ledger"
    experiment_id: Optional[str] = None

    def _frame(
        self, namespace: Namespace, tag: str, columns: Dict[str, Any]
    ) -> pl.DataFrame:
        events = self.ledger.events(
            namespace=namespace, experiment_id=self.experiment_id, tag=tag
        )
        rows = [
            {
                "seq": int(e["seq"]),
                "entity": e["entity"],
                "time_index": e["time_index"],
                **{k: e["payload"].get(k) for k in columns},
            }
            for e in events
        ]
        schema = {"seq": pl.Int64, "entity": pl.Utf8, "time_index": pl.Utf8, **columns}
        # A look analysed more than once keeps only its last result.
        return (
            pl.DataFrame(rows, schema=schema)
            .sort("seq")
            .unique(subset=["entity", "time_index"], keep="last", maintain_order=True)
            .drop("seq")
        )

    def progress_table(self) -> pl.DataFrame:
        """
        One row per look with columns:
        entity, look, time_index, n, statistic, d_plus, d_minus,
        threshold (null before min_count), min_count, action, reason
        """
        keys = ["entity", "time_index"]
        stats = self._frame(Namespace.STATS, "stat:ks_distance", _STAT_COLUMNS)
        crit = self._frame(Namespace.CRITERIA, "crit:ks_threshold", _CRIT_COLUMNS)
        signals = self._frame(Namespace.SIGNALS, "ks:decision", _SIGNAL_COLUMNS)

        return (
            stats.join(crit, on=keys, how="left")
            .join(signals, on=keys, how="left")
            .with_columns(
                pl.col("time_index").str.strip_prefix("t").cast(pl.Int64).alias("look")
            )
            .select(PROGRESS_COLUMNS)
            .sort(["entity", "look"])
        )

    def stopped(self) -> bool:
        """Whether any look so far emitted a stop decision."""
        prog = self.progress_table()
        return prog.filter(pl.col("action") == "stop").height > 0

    def plot(self, show: bool = True, mark_stop: bool = True) -> Any:
        """
        Plot the observed CDF gap against the anytime-valid threshold.

        Returns the matplotlib Figure.
        """
        prog = self.progress_table()

        fig, ax = plt.subplots(figsize=(6.5, 4.2))
        if prog.is_empty():
            ax.set_title("Sequential KS progress (no looks yet)")
            return fig

        armed = prog.filter(pl.col("threshold").is_not_null())
        ax.plot(
            prog["n"].to_list(),
            prog["statistic"].to_list(),
            marker="o",
            label="Observed CDF gap",
        )
        ax.plot(
            armed["n"].to_list(),
            armed["threshold"].to_list(),
            linestyle="--",
            marker="s",
            markersize=4,
            label="Threshold",
        )

        if mark_stop:
            stops = prog.filter(pl.col("action") == "stop")
            if stops.height > 0:
                ax.scatter(
                    [stops["n"][0]],
                    [stops["statistic"][0]],
                    s=70,
                    color="red",
                    zorder=5,
                    label="Stop",
                )

        ax.set_xlabel("Observations (n)")
        ax.set_ylabel("sup |F_A - F_B|")
        ax.set_title("Sequential KS progress")
        ax.legend()
        fig.tight_layout()
        if show:
            plt.show()
        return fig
