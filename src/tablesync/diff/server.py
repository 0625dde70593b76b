"""
Server-side diff strategy.

When both tables are reachable from one connection, the comparison runs as
three join queries on the server and only result rows cross the wire: an
inner join for changed rows and two anti-joins for inserted and deleted rows.
Each pass is a separate query because each has its own projection width.
"""

import logging
from collections.abc import Iterator
from typing import Any

from opentelemetry import trace

from tablesync.schema import TableSchema
from tablesync.sql import FragmentBuilder, Statement, StatementBuffer
from tablesync.utils.tracing import trace_operation

from .compare import DiffStats, changed_indexes

logger = logging.getLogger(__name__)


def changed_rows_query(builder: FragmentBuilder, source_table: str, target_table: str) -> str | None:
    buf = StatementBuffer(f"SELECT s.*, t.* FROM {source_table} s JOIN {target_table} t USING (")
    if not builder.key_field_list(buf):
        return None
    buf.write(") WHERE ")
    if not builder.diff_list(buf):
        return None
    return str(buf)


def anti_join_query(
    builder: FragmentBuilder, kept_table: str, kept_alias: str, other_table: str
) -> str | None:
    """Rows of ``kept_table`` with no primary-key match in ``other_table``."""
    buf = StatementBuffer(
        f"SELECT {kept_alias}.* FROM {kept_table} {kept_alias} "
        f"LEFT JOIN {other_table} {builder.null_alias} USING ("
    )
    if not builder.key_field_list(buf):
        return None
    buf.write(") WHERE ")
    if not builder.null_key_list(buf):
        return None
    return str(buf)


def diff_changed_rows(
    connection: Any,
    builder: FragmentBuilder,
    source_table: str,
    target_table: str,
    stats: DiffStats | None = None,
) -> Iterator[Statement]:
    schema = builder.schema
    sql = changed_rows_query(builder, source_table, target_table)
    if sql is None:
        logger.info("Skipping changed-rows pass: no primary key or no non-key columns")
        return

    width = schema.field_count
    with trace_operation("diff_changed_rows", kind=trace.SpanKind.CLIENT, table=target_table):
        with connection.stream(sql) as rows:
            for row in rows:
                schema.check_row(row, f"{source_table} JOIN {target_table}", width=2 * width)
                if stats is not None:
                    stats.source_rows += 1
                    stats.target_rows += 1

                changed = changed_indexes(row[:width], row[width:], schema.non_key_indexes)
                if changed:
                    yield Statement.update(row[:width], changed)


def diff_new_rows(
    connection: Any,
    builder: FragmentBuilder,
    source_table: str,
    target_table: str,
    stats: DiffStats | None = None,
) -> Iterator[Statement]:
    sql = anti_join_query(builder, source_table, "s", target_table)
    if sql is None:
        logger.info("Skipping new-rows pass: no primary key")
        return

    with trace_operation("diff_new_rows", kind=trace.SpanKind.CLIENT, table=target_table):
        with connection.stream(sql) as rows:
            for row in rows:
                builder.schema.check_row(row, source_table)
                if stats is not None:
                    stats.source_rows += 1
                yield Statement.insert(row)


def diff_missing_rows(
    connection: Any,
    builder: FragmentBuilder,
    source_table: str,
    target_table: str,
    stats: DiffStats | None = None,
) -> Iterator[Statement]:
    sql = anti_join_query(builder, target_table, "t", source_table)
    if sql is None:
        logger.info("Skipping missing-rows pass: no primary key")
        return

    with trace_operation("diff_missing_rows", kind=trace.SpanKind.CLIENT, table=target_table):
        with connection.stream(sql) as rows:
            for row in rows:
                builder.schema.check_row(row, target_table)
                if stats is not None:
                    stats.target_rows += 1
                yield Statement.delete(row)


def diff_on_server(
    connection: Any,
    schema: TableSchema,
    source_table: str,
    target_table: str,
    stats: DiffStats | None = None,
    builder: FragmentBuilder | None = None,
) -> Iterator[Statement]:
    """
    Yield the changes turning ``target_table`` into ``source_table``.

    UPDATEs come first, then INSERTs, then DELETEs; within each pass the
    order is whatever the server returns. Each query is drained before the
    next one is issued on the shared connection.
    """
    if builder is None:
        builder = FragmentBuilder(schema, connection)

    yield from diff_changed_rows(connection, builder, source_table, target_table, stats)
    yield from diff_new_rows(connection, builder, source_table, target_table, stats)
    yield from diff_missing_rows(connection, builder, source_table, target_table, stats)
