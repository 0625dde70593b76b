"""
Sync run orchestration.

Checks that both tables share a schema, picks a diff strategy, and writes
each generated statement to the output as soon as it is produced. Nothing is
buffered: if the run fails midway, the statements already written remain in
the output and the plan is incomplete.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import closing
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from opentelemetry import trace

from tablesync.diff import DiffStats, build_snapshot, diff_buffered, diff_on_server
from tablesync.errors import UsageError
from tablesync.schema import TableSchema, check_compatible, introspect_table
from tablesync.sql import FragmentBuilder, Statement, StatementKind, render_statement, validate_table_name
from tablesync.utils.logging import ContextLogger
from tablesync.utils.metrics import SyncMetrics
from tablesync.utils.tracing import add_span_event, trace_operation

logger = logging.getLogger(__name__)

STRATEGIES = ("auto", "buffered", "server")


@dataclass
class SyncSummary:
    """Outcome of one sync run."""

    source_table: str
    target_table: str
    strategy: str
    inserts: int = 0
    updates: int = 0
    deletes: int = 0
    skipped: int = 0
    source_rows: int = 0
    target_rows: int = 0
    duration_seconds: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def total(self) -> int:
        return self.inserts + self.updates + self.deletes

    def count(self, kind: StatementKind) -> None:
        if kind is StatementKind.INSERT:
            self.inserts += 1
        elif kind is StatementKind.UPDATE:
            self.updates += 1
        else:
            self.deletes += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source_table": self.source_table,
            "target_table": self.target_table,
            "strategy": self.strategy,
            "statements": {
                "insert": self.inserts,
                "update": self.updates,
                "delete": self.deletes,
                "total": self.total,
                "skipped": self.skipped,
            },
            "rows_scanned": {
                "source": self.source_rows,
                "target": self.target_rows,
            },
            "duration_seconds": round(self.duration_seconds, 3),
            "started_at": self.started_at.isoformat(),
        }


def resolve_strategy(strategy: str, single_connection: bool) -> str:
    """
    Map the requested strategy to ``"buffered"`` or ``"server"``.

    ``auto`` runs on the server when both tables share one connection.

    Raises:
        UsageError: For unknown strategies, or ``server`` across two connections
    """
    if strategy not in STRATEGIES:
        raise UsageError(f"unknown strategy {strategy!r}", operation="select_strategy")

    if strategy == "auto":
        return "server" if single_connection else "buffered"

    if strategy == "server" and not single_connection:
        raise UsageError(
            "server-side diff needs both tables on one connection",
            operation="select_strategy",
        )
    return strategy


def load_schema(
    source_conn: Any, target_conn: Any, source_table: str, target_table: str
) -> TableSchema:
    """
    Introspect both tables and run the compatibility gate.

    Returns:
        The shared schema

    Raises:
        SchemaMismatchError: If the table definitions differ
    """
    target_schema = introspect_table(target_conn, target_table)
    source_schema = introspect_table(source_conn, source_table)
    check_compatible(source_schema, target_schema)
    add_span_event("schema_gate_passed", columns=target_schema.field_count)
    return target_schema


def generate_statements(
    source_conn: Any,
    target_conn: Any,
    schema: TableSchema,
    source_table: str,
    target_table: str,
    strategy: str,
    stats: DiffStats,
) -> Iterator[Statement]:
    """Run the resolved strategy and yield its statements."""
    if strategy == "server":
        return diff_on_server(target_conn, schema, source_table, target_table, stats)

    snapshot = build_snapshot(target_conn, schema, target_table, stats)
    return diff_buffered(source_conn, schema, source_table, snapshot, stats)


def run_sync(
    source_conn: Any,
    target_conn: Any,
    source_table: str,
    target_table: str,
    out: TextIO,
    strategy: str = "auto",
    metrics: SyncMetrics | None = None,
) -> SyncSummary:
    """
    Write the statements that make ``target_table`` match ``source_table``.

    Args:
        source_conn: Connection reaching the source table
        target_conn: Connection reaching the target table; pass the same
            object as ``source_conn`` when both tables live on one server
        source_table: Source table reference
        target_table: Target table reference, used in every statement
        out: Stream receiving one ``;``-terminated statement per line
        strategy: ``auto``, ``buffered`` or ``server``
        metrics: Metrics to record the run into (optional)

    Returns:
        Summary of the generated statements

    Raises:
        TableSyncError: On any fatal condition; no error is recovered
    """
    try:
        validate_table_name(source_table)
        validate_table_name(target_table)
    except ValueError as e:
        raise UsageError(str(e), operation="validate_table_name") from e

    resolved = resolve_strategy(strategy, source_conn is target_conn)
    summary = SyncSummary(source_table, target_table, resolved)
    stats = DiffStats()
    log = ContextLogger(__name__, target_table=target_table, strategy=resolved)
    started = time.monotonic()
    success = False

    try:
        with trace_operation(
            "run_sync",
            kind=trace.SpanKind.INTERNAL,
            source_table=source_table,
            target_table=target_table,
            strategy=resolved,
        ):
            log.info(f"Comparing {source_table} -> {target_table}")
            schema = load_schema(source_conn, target_conn, source_table, target_table)
            builder = FragmentBuilder(schema, target_conn)

            statements = generate_statements(
                source_conn, target_conn, schema, source_table, target_table, resolved, stats
            )
            with closing(statements):
                for statement in statements:
                    sql = render_statement(builder, target_table, statement)
                    if sql is None:
                        summary.skipped += 1
                        continue
                    out.write(sql + ";\n")
                    summary.count(statement.kind)

            out.flush()
            success = True
    finally:
        summary.duration_seconds = time.monotonic() - started
        summary.source_rows = stats.source_rows
        summary.target_rows = stats.target_rows
        if metrics is not None:
            metrics.record_run(target_table, resolved, success, summary.duration_seconds)
            metrics.record_rows(target_table, stats.source_rows, stats.target_rows)
            metrics.record_statements(
                target_table,
                {"insert": summary.inserts, "update": summary.updates, "delete": summary.deletes},
            )

    if summary.skipped:
        log.warning(f"Skipped {summary.skipped} statements that had no primary key to match on")

    log.info(
        f"Generated {summary.total} statements "
        f"({summary.inserts} insert, {summary.updates} update, {summary.deletes} delete) "
        f"in {summary.duration_seconds:.2f}s"
    )
    return summary
