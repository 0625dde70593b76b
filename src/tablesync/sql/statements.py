"""
Data-manipulation statements produced by a diff and their SQL rendering.

Differs yield :class:`Statement` objects; rendering is kept separate so the
same statement stream can be written out, counted, or applied to a model.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .fragments import FragmentBuilder, StatementBuffer


class StatementKind(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Statement:
    """
    One change to apply to the target table.

    ``row`` supplies the values: the full new row for INSERT and UPDATE, the
    old target row for DELETE. ``changed`` lists the positions an UPDATE sets.
    """

    kind: StatementKind
    row: tuple
    changed: tuple[int, ...] = ()

    @classmethod
    def insert(cls, row: Sequence[Any]) -> "Statement":
        return cls(StatementKind.INSERT, tuple(row))

    @classmethod
    def update(cls, row: Sequence[Any], changed: Sequence[int]) -> "Statement":
        return cls(StatementKind.UPDATE, tuple(row), tuple(changed))

    @classmethod
    def delete(cls, row: Sequence[Any]) -> "Statement":
        return cls(StatementKind.DELETE, tuple(row))


def render_insert(builder: FragmentBuilder, table: str, row: Sequence[Any]) -> str | None:
    buf = StatementBuffer(f"INSERT INTO {table} (")
    if not builder.field_list(buf):
        return None
    buf.write(") VALUES (")
    if not builder.value_list(buf, row):
        return None
    buf.write(")")
    return str(buf)


def render_update(
    builder: FragmentBuilder, table: str, row: Sequence[Any], changed: Sequence[int]
) -> str | None:
    buf = StatementBuffer(f"UPDATE {table} SET ")
    if not builder.update_list(buf, row, changed):
        return None
    buf.write(" WHERE ")
    if not builder.key_equality_list(buf, row):
        return None
    return str(buf)


def render_delete(builder: FragmentBuilder, table: str, row: Sequence[Any]) -> str | None:
    buf = StatementBuffer(f"DELETE FROM {table} WHERE ")
    if not builder.key_equality_list(buf, row):
        return None
    return str(buf)


def render_statement(
    builder: FragmentBuilder, table: str, statement: Statement
) -> str | None:
    """
    Render ``statement`` against ``table`` without the trailing semicolon.

    Returns:
        The SQL text, or None when a required clause would be empty (for
        example a DELETE on a table without a primary key)
    """
    if statement.kind is StatementKind.INSERT:
        return render_insert(builder, table, statement.row)
    if statement.kind is StatementKind.UPDATE:
        return render_update(builder, table, statement.row, statement.changed)
    return render_delete(builder, table, statement.row)
