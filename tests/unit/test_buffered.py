"""
Unit tests for tablesync.diff.buffered and tablesync.diff.compare

Tests the in-memory snapshot, the streaming comparison and the shared
equality policy.
"""

import logging

import pytest

from conftest import FakeConnection, FakeTable
from tablesync.diff import (
    DiffStats,
    Snapshot,
    build_snapshot,
    changed_indexes,
    diff_buffered,
    extract_key,
    key_text,
    values_differ,
)
from tablesync.errors import RowWidthError
from tablesync.schema import TableSchema
from tablesync.sql import Statement, StatementKind

COLUMNS = ["id", "name", "age"]


@pytest.fixture
def schema():
    return TableSchema.from_names(COLUMNS, [0])


def run_diff(schema, source_rows, target_rows, stats=None):
    target = FakeConnection({"target": FakeTable(COLUMNS, ["id"], target_rows)})
    source = FakeConnection({"source": FakeTable(COLUMNS, ["id"], source_rows)})
    snapshot = build_snapshot(target, schema, "target", stats)
    return list(diff_buffered(source, schema, "source", snapshot, stats)), snapshot


class TestKeyText:
    """Test key_text and extract_key functions"""

    def test_strings_unchanged(self):
        assert key_text("abc") == "abc"

    def test_numbers_use_str(self):
        assert key_text(42) == "42"

    def test_bytes_decoded(self):
        assert key_text(b"caf\xc3\xa9") == "café"

    def test_invalid_utf8_bytes_stay_distinct(self):
        assert key_text(b"\xff") != key_text(b"\xfe")

    def test_extract_key_follows_key_positions(self):
        schema = TableSchema.from_names(["v", "tenant", "id"], [1, 2])
        assert extract_key(schema, ("x", "acme", 7)) == ("acme", "7")


class TestEqualityPolicy:
    """Test values_differ and changed_indexes functions"""

    @pytest.mark.parametrize(
        "left,right,expected",
        [
            (None, None, False),
            (None, 1, True),
            ("a", None, True),
            (1, 1, False),
            (1, 2, True),
            ("a", "A", True),
            ("a ", "a", True),
        ],
    )
    def test_values_differ(self, left, right, expected):
        assert values_differ(left, right) is expected

    def test_changed_indexes_limited_to_given_positions(self):
        assert changed_indexes((1, "A", 30), (9, "A", 20), [1, 2]) == [2]
        assert changed_indexes((1, "A", 30), (9, "A", 20), [0, 1, 2]) == [0, 2]


class TestSnapshot:
    """Test Snapshot class"""

    def test_add_and_pop(self, schema):
        snapshot = Snapshot(schema, "target")

        assert snapshot.add((1, "A", 20)) is True
        assert ("1",) in snapshot
        assert len(snapshot) == 1
        assert snapshot.pop(("1",)) == (1, "A", 20)
        assert snapshot.pop(("1",)) is None
        assert len(snapshot) == 0

    def test_first_duplicate_wins(self, schema):
        snapshot = Snapshot(schema, "target")

        assert snapshot.add((1, "first", 1)) is True
        assert snapshot.add((1, "second", 2)) is False
        assert snapshot.pop(("1",)) == (1, "first", 1)

    def test_add_checks_width(self, schema):
        with pytest.raises(RowWidthError):
            Snapshot(schema, "target").add((1, "A"))

    def test_drain_in_ascending_key_order(self, schema):
        snapshot = Snapshot(schema, "target")
        for key in ["b", "c", "a"]:
            snapshot.add((key, None, None))

        assert [row[0] for row in snapshot.drain()] == ["a", "b", "c"]
        assert len(snapshot) == 0

    def test_drain_orders_textual_keys(self, schema):
        """Test that numeric keys sort by their text, as the key is text"""
        snapshot = Snapshot(schema, "target")
        for key in [9, 10, 2]:
            snapshot.add((key, None, None))

        assert [row[0] for row in snapshot.drain()] == [10, 2, 9]


class TestBuildSnapshot:
    """Test build_snapshot function"""

    def test_loads_every_row(self, schema):
        conn = FakeConnection({"target": FakeTable(COLUMNS, ["id"], [(1, "A", 20), (3, "C", 40)])})
        stats = DiffStats()

        snapshot = build_snapshot(conn, schema, "target", stats)

        assert len(snapshot) == 2
        assert stats.target_rows == 2
        assert conn.queries == ["SELECT * FROM target"]

    def test_duplicates_are_logged(self, schema, caplog):
        conn = FakeConnection({"target": FakeTable(COLUMNS, ["id"], [(1, "A", 1), (1, "B", 2)])})

        with caplog.at_level(logging.WARNING, logger="tablesync.diff.buffered"):
            snapshot = build_snapshot(conn, schema, "target")

        assert len(snapshot) == 1
        assert "1 rows share a primary key" in caplog.text


class TestDiffBuffered:
    """Test diff_buffered function"""

    def test_worked_example(self, schema):
        statements, snapshot = run_diff(
            schema,
            [(1, "A", 30), (2, "B", 25)],
            [(1, "A", 20), (3, "C", 40)],
        )

        assert statements == [
            Statement.update((1, "A", 30), [2]),
            Statement.insert((2, "B", 25)),
            Statement.delete((3, "C", 40)),
        ]
        assert len(snapshot) == 0

    def test_identical_tables_produce_nothing(self, schema):
        rows = [(1, "A", 20), (2, None, None)]
        statements, _ = run_diff(schema, rows, list(rows))
        assert statements == []

    def test_null_transitions_are_changes(self, schema):
        statements, _ = run_diff(
            schema,
            [(1, None, 20), (2, "B", None)],
            [(1, "A", 20), (2, "B", 5)],
        )

        assert statements == [
            Statement.update((1, None, 20), [1]),
            Statement.update((2, "B", None), [2]),
        ]

    def test_empty_target_inserts_everything(self, schema):
        statements, _ = run_diff(schema, [(2, "B", 1), (1, "A", 2)], [])

        assert [s.kind for s in statements] == [StatementKind.INSERT, StatementKind.INSERT]
        assert [s.row[0] for s in statements] == [2, 1]

    def test_empty_source_deletes_everything_sorted(self, schema):
        statements, _ = run_diff(schema, [], [(3, "C", 1), (1, "A", 2), (2, "B", 3)])

        assert all(s.kind is StatementKind.DELETE for s in statements)
        assert [s.row[0] for s in statements] == [1, 2, 3]

    def test_deletes_follow_inserts_and_updates(self, schema):
        statements, _ = run_diff(
            schema,
            [(5, "E", 1), (1, "A", 9)],
            [(0, "Z", 0), (1, "A", 1)],
        )

        assert [s.kind for s in statements] == [
            StatementKind.INSERT,
            StatementKind.UPDATE,
            StatementKind.DELETE,
        ]

    def test_counts_rows_on_both_sides(self, schema):
        stats = DiffStats()
        run_diff(schema, [(1, "A", 1), (2, "B", 2)], [(1, "A", 1)], stats)

        assert stats.source_rows == 2
        assert stats.target_rows == 1

    def test_source_row_width_checked(self, schema):
        target = FakeConnection({"target": FakeTable(COLUMNS, ["id"], [])})
        source = FakeConnection(responses={"SELECT * FROM source": [(1, "A")]})
        snapshot = build_snapshot(target, schema, "target")

        with pytest.raises(RowWidthError):
            list(diff_buffered(source, schema, "source", snapshot))

    def test_statements_are_produced_lazily(self, schema):
        target = FakeConnection({"target": FakeTable(COLUMNS, ["id"], [])})
        source = FakeConnection({"source": FakeTable(COLUMNS, ["id"], [(1, "A", 1)])})
        snapshot = build_snapshot(target, schema, "target")

        statements = diff_buffered(source, schema, "source", snapshot)

        assert source.queries == []
        assert next(statements) == Statement.insert((1, "A", 1))


class TestWithoutPrimaryKey:
    """Test that tables without a primary key are not compared row by row"""

    @pytest.fixture
    def schema(self):
        return TableSchema.from_names(["k", "v"], [])

    def test_snapshot_not_loaded(self, schema):
        conn = FakeConnection({"target": FakeTable(["k", "v"], [], [("x", 1), ("y", 2)])})
        stats = DiffStats()

        snapshot = build_snapshot(conn, schema, "target", stats)

        assert len(snapshot) == 0
        assert stats.target_rows == 0
        assert conn.queries == []

    def test_identical_rows_produce_nothing(self, schema):
        rows = [("x", 1), ("y", 2), ("z", 3)]
        target = FakeConnection({"target": FakeTable(["k", "v"], [], rows)})
        source = FakeConnection({"source": FakeTable(["k", "v"], [], list(rows))})
        snapshot = build_snapshot(target, schema, "target")

        assert list(diff_buffered(source, schema, "source", snapshot)) == []
        assert source.queries == []
