"""
Pytest configuration and fixtures for tablesync tests.

Provides an in-memory stand-in for :class:`tablesync.db.MySQLConnection`
that answers ``DESCRIBE`` and ``SELECT *`` from table definitions and any
other query from canned responses keyed by the exact SQL text.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import pytest

from tablesync.errors import ConnectionBusyError, DatabaseConnectionError
from tablesync.sql import MySQLQuoter


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: requires a MySQL server (MYSQL_TEST_HOST)")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@dataclass
class FakeTable:
    """Column names, primary-key column names and rows of one table."""

    columns: list[str]
    keys: list[str]
    rows: list[tuple] = field(default_factory=list)

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "Field": name,
                "Type": "varchar(255)",
                "Null": "NO" if name in self.keys else "YES",
                "Key": "PRI" if name in self.keys else "",
                "Default": None,
                "Extra": "",
            }
            for name in self.columns
        ]


class FakeConnection:
    """Connection double with the streaming and quoting surface of MySQLConnection."""

    def __init__(self, tables=None, responses=None, name: str = "fake"):
        self.tables: dict[str, FakeTable] = dict(tables or {})
        self.responses: dict[str, list] = dict(responses or {})
        self.name = name
        self.queries: list[str] = []
        self.quoter = MySQLQuoter()
        self.closed = False
        self._streaming = False

    def _rows_for(self, sql: str) -> list:
        if sql in self.responses:
            return list(self.responses[sql])
        if sql.startswith("DESCRIBE "):
            table = self.tables.get(sql[len("DESCRIBE "):])
            if table is not None:
                return table.describe()
        if sql.startswith("SELECT * FROM "):
            table = self.tables.get(sql[len("SELECT * FROM "):])
            if table is not None:
                return list(table.rows)
        raise DatabaseConnectionError(f"unexpected query {sql!r}", operation="query")

    @contextmanager
    def stream(self, sql: str):
        if self._streaming:
            raise ConnectionBusyError("stream already open", operation="query")
        self.queries.append(sql)
        rows = self._rows_for(sql)
        self._streaming = True
        try:
            yield iter(rows)
        finally:
            self._streaming = False

    stream_dicts = stream

    def quote_identifier(self, name: str) -> str:
        return self.quoter.quote_identifier(name)

    def quote_literal(self, value: Any) -> str:
        return self.quoter.quote_literal(value)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def people_columns() -> list[str]:
    return ["id", "name", "age"]


@pytest.fixture
def source_conn(people_columns) -> FakeConnection:
    """Source side of the worked example: ids 1 and 2."""
    return FakeConnection(
        {"source": FakeTable(people_columns, ["id"], [(1, "A", 30), (2, "B", 25)])},
        name="source",
    )


@pytest.fixture
def target_conn(people_columns) -> FakeConnection:
    """Target side of the worked example: ids 1 and 3."""
    return FakeConnection(
        {"target": FakeTable(people_columns, ["id"], [(1, "A", 20), (3, "C", 40)])},
        name="target",
    )


@pytest.fixture
def shared_conn(people_columns) -> FakeConnection:
    """One connection reaching both tables, with the server-side join results."""
    return FakeConnection(
        {
            "source": FakeTable(people_columns, ["id"], [(1, "A", 30), (2, "B", 25)]),
            "target": FakeTable(people_columns, ["id"], [(1, "A", 20), (3, "C", 40)]),
        },
        responses={
            "SELECT s.*, t.* FROM source s JOIN target t USING (`id`) "
            "WHERE (NOT BINARY s.`name` <=> t.`name`) OR (NOT BINARY s.`age` <=> t.`age`)": [
                (1, "A", 30, 1, "A", 20),
            ],
            "SELECT s.* FROM source s LEFT JOIN target j USING (`id`) "
            "WHERE j.`id` IS NULL": [(2, "B", 25)],
            "SELECT t.* FROM target t LEFT JOIN source j USING (`id`) "
            "WHERE j.`id` IS NULL": [(3, "C", 40)],
        },
        name="shared",
    )


WORKED_EXAMPLE_OUTPUT = (
    "UPDATE target SET `age`=30 WHERE `id`=1;\n"
    "INSERT INTO target (`id`,`name`,`age`) VALUES (2,'B',25);\n"
    "DELETE FROM target WHERE `id`=3;\n"
)


@pytest.fixture
def worked_example_output() -> str:
    return WORKED_EXAMPLE_OUTPUT
