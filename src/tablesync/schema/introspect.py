"""
Table schema introspection.

Reads a table's column layout and primary key from ``DESCRIBE <table>``,
keeping the column order reported by the server.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import trace

from tablesync.errors import RowWidthError, TableSyncError
from tablesync.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Column:
    """A column name and its 0-based position in the row layout."""

    name: str
    position: int


@dataclass(frozen=True)
class TableSchema:
    """Ordered columns of a table plus the positions of its primary key."""

    columns: tuple[Column, ...]
    primary_key: tuple[int, ...]
    non_key_indexes: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for index in self.primary_key:
            if not 0 <= index < len(self.columns):
                raise ValueError(f"primary key position {index} is outside the table")
        keys = set(self.primary_key)
        object.__setattr__(
            self,
            "non_key_indexes",
            tuple(i for i in range(len(self.columns)) if i not in keys),
        )

    @classmethod
    def from_names(cls, names: list[str], primary_key: list[int]) -> "TableSchema":
        """Build a schema from column names and primary-key positions."""
        columns = tuple(Column(name, i) for i, name in enumerate(names))
        return cls(columns=columns, primary_key=tuple(primary_key))

    @property
    def field_count(self) -> int:
        return len(self.columns)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def all_indexes(self) -> tuple[int, ...]:
        return tuple(range(len(self.columns)))

    def key_names(self) -> tuple[str, ...]:
        return tuple(self.columns[i].name for i in self.primary_key)

    def check_row(self, row: Any, table: str, width: int | None = None) -> None:
        """
        Ensure ``row`` has exactly the expected number of values.

        Raises:
            RowWidthError: If the width differs
        """
        expected = self.field_count if width is None else width
        if len(row) != expected:
            raise RowWidthError(table, expected, len(row))


def introspect_table(connection: Any, table: str) -> TableSchema:
    """
    Describe ``table`` and return its schema.

    Args:
        connection: Connection providing ``stream_dicts``
        table: Table reference, fully qualified when no default database is set

    Returns:
        The table's schema in server-reported column order

    Raises:
        DatabaseConnectionError: If the table does not exist or cannot be read
        TableSyncError: If the description is empty
    """
    with trace_operation(
        "introspect_table", kind=trace.SpanKind.CLIENT, table=table
    ):
        names = []
        primary_key = []
        with connection.stream_dicts(f"DESCRIBE {table}") as rows:
            for index, row in enumerate(rows):
                names.append(row["Field"])
                if row["Key"] == "PRI":
                    primary_key.append(index)

        if not names:
            raise TableSyncError(f"table {table} has no columns", operation="describe")

        schema = TableSchema.from_names(names, primary_key)
        logger.debug(
            f"Introspected {table}: {schema.field_count} columns, "
            f"primary key ({', '.join(schema.key_names())})"
        )
        return schema
