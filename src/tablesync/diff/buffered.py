"""
Client-buffered diff strategy.

The target table is loaded into a :class:`Snapshot` keyed by primary key,
then the source table is streamed row by row and matched against it. Memory
use is bounded by the size of the target table alone, which makes this the
strategy for source and target living on different servers.
"""

import logging
from collections.abc import Iterator, Sequence
from typing import Any

from opentelemetry import trace

from tablesync.schema import TableSchema
from tablesync.sql import Statement
from tablesync.utils.logging import ContextLogger
from tablesync.utils.tracing import add_span_attributes, trace_operation

from .compare import DiffStats, PrimaryKey, changed_indexes, extract_key

logger = logging.getLogger(__name__)


class Snapshot:
    """
    Full in-memory copy of one table, keyed by primary key.

    The comparison pass removes matched entries; what remains afterwards is
    the set of rows present only in the snapshot's table.
    """

    def __init__(self, schema: TableSchema, table: str):
        self.schema = schema
        self.table = table
        self._rows: dict[PrimaryKey, tuple] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: PrimaryKey) -> bool:
        return key in self._rows

    def add(self, row: Sequence[Any]) -> bool:
        """
        Store ``row`` under its primary key.

        Returns:
            False if a row with the same key was already stored; the first
            row is kept.
        """
        self.schema.check_row(row, self.table)
        key = extract_key(self.schema, row)
        if key in self._rows:
            return False
        self._rows[key] = tuple(row)
        return True

    def pop(self, key: PrimaryKey) -> tuple | None:
        return self._rows.pop(key, None)

    def drain(self) -> Iterator[tuple]:
        """Remove and yield the remaining rows in ascending key order."""
        for key in sorted(self._rows):
            yield self._rows.pop(key)


def build_snapshot(
    connection: Any,
    schema: TableSchema,
    table: str,
    stats: DiffStats | None = None,
) -> Snapshot:
    """
    Load every row of ``table`` into a snapshot.

    The query is drained completely before this returns, so the connection
    is free for the next query. Without a primary key rows cannot be matched,
    so nothing is loaded.
    """
    log = ContextLogger(__name__, table=table)
    with trace_operation("build_snapshot", kind=trace.SpanKind.CLIENT, table=table):
        snapshot = Snapshot(schema, table)
        if not schema.primary_key:
            log.info("Skipping snapshot: no primary key")
            return snapshot

        duplicates = 0
        with connection.stream(f"SELECT * FROM {table}") as rows:
            for row in rows:
                if not snapshot.add(row):
                    duplicates += 1
                if stats is not None:
                    stats.target_rows += 1

        if duplicates:
            log.warning(f"{duplicates} rows share a primary key with an earlier row; kept the first")

        add_span_attributes(rows=len(snapshot))
        log.info(f"Loaded snapshot of {len(snapshot)} rows")
        return snapshot


def diff_buffered(
    connection: Any,
    schema: TableSchema,
    source_table: str,
    snapshot: Snapshot,
    stats: DiffStats | None = None,
) -> Iterator[Statement]:
    """
    Stream ``source_table`` against ``snapshot`` and yield the changes.

    INSERTs and UPDATEs come in source-stream order, followed by DELETEs for
    the unmatched snapshot rows in ascending primary-key order. The snapshot
    is empty when the generator is exhausted. A schema without a primary key
    yields nothing, as rows cannot be matched.
    """
    if not schema.primary_key:
        logger.info(f"Skipping comparison of {source_table}: no primary key")
        return

    with trace_operation(
        "diff_buffered",
        kind=trace.SpanKind.INTERNAL,
        source_table=source_table,
        target_table=snapshot.table,
    ):
        with connection.stream(f"SELECT * FROM {source_table}") as rows:
            for row in rows:
                schema.check_row(row, source_table)
                if stats is not None:
                    stats.source_rows += 1

                old = snapshot.pop(extract_key(schema, row))
                if old is None:
                    yield Statement.insert(row)
                    continue

                changed = changed_indexes(row, old, schema.all_indexes)
                if changed:
                    yield Statement.update(row, changed)

        logger.debug(f"{len(snapshot)} rows of {snapshot.table} have no match in {source_table}")
        for old in snapshot.drain():
            yield Statement.delete(old)
