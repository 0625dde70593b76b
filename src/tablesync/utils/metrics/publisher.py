"""Publishing of collected metrics for batch runs."""

import logging
import os

from prometheus_client import CollectorRegistry, write_to_textfile

logger = logging.getLogger(__name__)


def write_metrics_file(path: str, registry: CollectorRegistry) -> None:
    """
    Write ``registry`` in the Prometheus text format to ``path``.

    The file is written atomically, as expected by node_exporter's textfile
    collector.
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    write_to_textfile(path, registry)
    logger.info(f"Metrics written to {path}")
