"""
Metrics for table sync runs.

Tracks statements generated, rows scanned and run duration so batch runs
can be monitored through a Prometheus textfile collector.
"""

import logging
import time

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class SyncMetrics:
    """
    Prometheus metrics for one process.

    Each instance owns its registry unless one is passed in, so repeated
    runs in a single process (tests) never collide on metric names.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.runs_total = Counter(
            "tablesync_runs_total",
            "Total number of sync runs",
            ["table", "strategy", "status"],
            registry=self.registry,
        )

        self.statements_total = Counter(
            "tablesync_statements_total",
            "Statements generated, by kind",
            ["table", "kind"],
            registry=self.registry,
        )

        self.rows_scanned_total = Counter(
            "tablesync_rows_scanned_total",
            "Rows read from the database, by side",
            ["table", "side"],
            registry=self.registry,
        )

        self.run_duration_seconds = Histogram(
            "tablesync_run_duration_seconds",
            "Duration of sync runs in seconds",
            ["table", "strategy"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 300, 900, 3600),
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "tablesync_last_run_timestamp",
            "Unix timestamp of the last completed sync run",
            ["table"],
            registry=self.registry,
        )

    def record_statements(self, table: str, counts: dict[str, int]) -> None:
        for kind, count in counts.items():
            if count:
                self.statements_total.labels(table=table, kind=kind).inc(count)

    def record_rows(self, table: str, source_rows: int, target_rows: int) -> None:
        self.rows_scanned_total.labels(table=table, side="source").inc(source_rows)
        self.rows_scanned_total.labels(table=table, side="target").inc(target_rows)

    def record_run(self, table: str, strategy: str, success: bool, duration: float) -> None:
        status = "success" if success else "failed"
        self.runs_total.labels(table=table, strategy=strategy, status=status).inc()
        self.run_duration_seconds.labels(table=table, strategy=strategy).observe(duration)
        if success:
            self.last_run_timestamp.labels(table=table).set(time.time())

        logger.debug(
            f"Recorded sync run: table={table}, strategy={strategy}, "
            f"status={status}, duration={duration:.2f}s"
        )
