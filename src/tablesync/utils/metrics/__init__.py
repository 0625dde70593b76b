"""
Prometheus metrics for sync runs.

Usage:
    from tablesync.utils.metrics import SyncMetrics, write_metrics_file

    metrics = SyncMetrics()
    metrics.record_run("shop.orders", "buffered", success=True, duration=3.2)
    write_metrics_file("/var/lib/node_exporter/tablesync.prom", metrics.registry)
"""

from .publisher import write_metrics_file
from .sync import SyncMetrics

__all__ = [
    "SyncMetrics",
    "write_metrics_file",
]
