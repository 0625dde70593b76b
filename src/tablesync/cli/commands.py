"""
CLI command implementation.

Opens the connections, runs the sync, and writes the optional summary and
metrics files. Errors are not handled here; they propagate to ``main``.
"""

import argparse
import json
import logging
import sys
from contextlib import ExitStack
from pathlib import Path

from tablesync.db import MySQLConnection
from tablesync.sync import SyncSummary, run_sync
from tablesync.utils.metrics import SyncMetrics, write_metrics_file

from .credentials import resolve_config

logger = logging.getLogger(__name__)


def open_connections(args: argparse.Namespace, stack: ExitStack) -> tuple:
    """
    Open the source and target connections.

    With a single config both roles share one connection object, which is
    what selects the server-side strategy under ``--strategy auto``.
    """
    target_config = resolve_config(args.target_config, args.use_vault)
    source_config = (
        resolve_config(args.source_config, args.use_vault)
        if args.source_config is not None
        else None
    )

    target_conn = MySQLConnection.connect(target_config, name="target")
    stack.callback(target_conn.close)

    if source_config is None:
        return target_conn, target_conn

    source_conn = MySQLConnection.connect(source_config, name="source")
    stack.callback(source_conn.close)
    return source_conn, target_conn


def write_summary(summary: SyncSummary, path: str) -> None:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(summary.to_dict(), f, indent=2)
    logger.info(f"Summary saved to {output_path}")


def cmd_sync(args: argparse.Namespace) -> SyncSummary:
    """
    Generate the sync script described by ``args``.

    Args:
        args: Parsed arguments with positionals already split

    Returns:
        Summary of the run
    """
    metrics = SyncMetrics() if args.metrics_file else None

    with ExitStack() as stack:
        if args.output:
            output_path = Path(args.output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            out = stack.enter_context(open(output_path, "w", encoding="utf-8"))
        else:
            out = sys.stdout

        source_conn, target_conn = open_connections(args, stack)

        try:
            summary = run_sync(
                source_conn,
                target_conn,
                args.source_table,
                args.target_table,
                out,
                strategy=args.strategy,
                metrics=metrics,
            )
        finally:
            if metrics is not None:
                write_metrics_file(args.metrics_file, metrics.registry)

    if args.summary:
        write_summary(summary, args.summary)

    return summary
