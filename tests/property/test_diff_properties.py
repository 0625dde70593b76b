"""
Property-based tests for the diff strategies using Hypothesis.

Tests invariants that should hold for all table contents:
- Applying the generated statements to the target yields the source
- Identical tables produce no statements
- Exactly one statement per inserted, changed or removed row
- DELETEs come last, in ascending primary-key order
- Rendered statements are single-line and semicolon-free
"""

import io
import os

from hypothesis import given, settings, strategies as st

from conftest import FakeConnection, FakeTable
from tablesync.diff import build_snapshot, diff_buffered, key_text
from tablesync.schema import TableSchema
from tablesync.sql import FragmentBuilder, MySQLQuoter, Statement, StatementKind, render_statement
from tablesync.sync import run_sync

COLUMNS = ["id", "name", "age"]
SCHEMA = TableSchema.from_names(COLUMNS, [0])

values = st.tuples(
    st.one_of(st.none(), st.text(max_size=6)),
    st.one_of(st.none(), st.integers(min_value=-3, max_value=3)),
)
tables = st.dictionaries(keys=st.integers(min_value=0, max_value=40), values=values, max_size=25)


def to_rows(table: dict) -> list[tuple]:
    return [(key, *rest) for key, rest in table.items()]


def diff(source: dict, target: dict) -> list:
    target_conn = FakeConnection({"target": FakeTable(COLUMNS, ["id"], to_rows(target))})
    source_conn = FakeConnection({"source": FakeTable(COLUMNS, ["id"], to_rows(source))})
    snapshot = build_snapshot(target_conn, SCHEMA, "target")
    return list(diff_buffered(source_conn, SCHEMA, "source", snapshot))


def apply(statements, target: dict) -> dict:
    """Apply statements to a key -> values model of the target table."""
    model = {key: (key, *rest) for key, rest in target.items()}
    for statement in statements:
        key = statement.row[0]
        if statement.kind is StatementKind.INSERT:
            assert key not in model
            model[key] = statement.row
        elif statement.kind is StatementKind.UPDATE:
            old = model[key]
            model[key] = tuple(
                statement.row[i] if i in statement.changed else old[i] for i in range(len(old))
            )
        else:
            del model[key]
    return {key: row[1:] for key, row in model.items()}


@given(source=tables, target=tables)
def test_applying_statements_reproduces_source(source, target):
    """Round trip: target plus the generated changes equals the source."""
    assert apply(diff(source, target), target) == source


@given(table=tables)
def test_identical_tables_produce_no_statements(table):
    assert diff(table, dict(table)) == []


@given(source=tables, target=tables)
def test_one_statement_per_differing_row(source, target):
    """Completeness and minimality: one statement per row that needs one."""
    statements = diff(source, target)

    inserted = {s.row[0] for s in statements if s.kind is StatementKind.INSERT}
    updated = {s.row[0] for s in statements if s.kind is StatementKind.UPDATE}
    deleted = {s.row[0] for s in statements if s.kind is StatementKind.DELETE}

    assert inserted == source.keys() - target.keys()
    assert deleted == target.keys() - source.keys()
    assert updated == {k for k in source.keys() & target.keys() if source[k] != target[k]}
    assert len(statements) == len(inserted) + len(updated) + len(deleted)


@given(source=tables, target=tables)
def test_updates_set_only_changed_columns(source, target):
    for statement in diff(source, target):
        if statement.kind is StatementKind.UPDATE:
            old = (statement.row[0], *target[statement.row[0]])
            assert statement.changed
            assert all(statement.row[i] != old[i] for i in statement.changed)


@given(source=tables, target=tables)
def test_deletes_last_in_key_order(source, target):
    statements = diff(source, target)
    kinds = [s.kind for s in statements]

    deletes = [s for s in statements if s.kind is StatementKind.DELETE]
    assert kinds[len(kinds) - len(deletes):] == [StatementKind.DELETE] * len(deletes)

    keys = [key_text(s.row[0]) for s in deletes]
    assert keys == sorted(keys)


@settings(max_examples=50)
@given(source=tables, target=tables)
def test_rendered_output_one_statement_per_line(source, target):
    source_conn = FakeConnection({"source": FakeTable(COLUMNS, ["id"], to_rows(source))})
    target_conn = FakeConnection({"target": FakeTable(COLUMNS, ["id"], to_rows(target))})
    out = io.StringIO()

    summary = run_sync(source_conn, target_conn, "source", "target", out)

    text = out.getvalue()
    assert text.count("\n") == summary.total
    assert text.count(";\n") == summary.total


@given(name=st.text(max_size=20))
def test_literals_never_break_out_of_quotes(name):
    """A rendered INSERT always has exactly the expected structure."""
    builder = FragmentBuilder(SCHEMA, MySQLQuoter())

    sql = render_statement(builder, "target", Statement.insert((1, name, None)))

    assert sql.startswith("INSERT INTO target (`id`,`name`,`age`) VALUES (1,'")
    assert sql.endswith("',NULL)")
    assert "\n" not in sql


# Configuration for hypothesis
settings.register_profile("ci", max_examples=100, deadline=1000)
settings.register_profile("dev", max_examples=20, deadline=500)
settings.register_profile("thorough", max_examples=500, deadline=2000)

# Load default profile, overridable with HYPOTHESIS_PROFILE
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))
