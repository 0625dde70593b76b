"""
SQL fragment rendering shared by both diff strategies.

All identifier lists, literal lists and predicates are rendered here so that
quoting and column ordering are identical no matter which strategy produced
a statement. Each operation appends to a :class:`StatementBuffer`.
"""

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

from tablesync.schema import TableSchema

from .quoting import Quoter


class Fragment(Enum):
    """Kinds of per-column fragments a list can be rendered from."""

    FIELD = "field"          # `col`
    VALUE = "value"          # 'literal'
    EQUAL = "equal"          # `col`='literal'
    NULL_KEY = "null_key"    # j.`col` IS NULL
    DIFF = "diff"            # (NOT BINARY s.`col` <=> t.`col`)


class StatementBuffer:
    """A statement built up incrementally from text parts."""

    def __init__(self, text: str = ""):
        self._parts: list[str] = [text] if text else []

    def write(self, text: str) -> "StatementBuffer":
        self._parts.append(text)
        return self

    def __str__(self) -> str:
        return "".join(self._parts)

    def __repr__(self) -> str:
        return f"StatementBuffer({str(self)!r})"


class FragmentBuilder:
    """
    Renders column-level SQL fragments for one table schema.

    The builder holds no state besides the schema and the quoting primitives,
    so one instance serves every statement of a run.
    """

    def __init__(
        self,
        schema: TableSchema,
        quoter: Quoter,
        null_alias: str = "j",
        left_alias: str = "s",
        right_alias: str = "t",
    ):
        """
        Args:
            schema: Schema shared by source and target
            quoter: Identifier and literal quoting primitives
            null_alias: Alias tested by anti-join ``IS NULL`` predicates
            left_alias: Alias of the source side in diff predicates
            right_alias: Alias of the target side in diff predicates
        """
        self.schema = schema
        self.quoter = quoter
        self.null_alias = null_alias
        self.left_alias = left_alias
        self.right_alias = right_alias

    # ------------------------------------------------------------ single fragments

    def identifier(self, buf: StatementBuffer, index: int) -> None:
        buf.write(self.quoter.quote_identifier(self.schema.columns[index].name))

    def literal(self, buf: StatementBuffer, row: Sequence[Any], index: int) -> None:
        buf.write(self.quoter.quote_literal(row[index]))

    def equality_predicate(self, buf: StatementBuffer, row: Sequence[Any], index: int) -> None:
        self.identifier(buf, index)
        buf.write("=")
        self.literal(buf, row, index)

    def null_predicate(self, buf: StatementBuffer, index: int) -> None:
        buf.write(f"{self.null_alias}.")
        self.identifier(buf, index)
        buf.write(" IS NULL")

    def diff_predicate(self, buf: StatementBuffer, index: int) -> None:
        """NULL-safe, collation-independent inequality of one column across aliases."""
        buf.write(f"(NOT BINARY {self.left_alias}.")
        self.identifier(buf, index)
        buf.write(f" <=> {self.right_alias}.")
        self.identifier(buf, index)
        buf.write(")")

    def render(
        self, fragment: Fragment, buf: StatementBuffer, row: Sequence[Any], index: int
    ) -> None:
        """Render one fragment of the given kind."""
        if fragment is Fragment.FIELD:
            self.identifier(buf, index)
        elif fragment is Fragment.VALUE:
            self.literal(buf, row, index)
        elif fragment is Fragment.EQUAL:
            self.equality_predicate(buf, row, index)
        elif fragment is Fragment.NULL_KEY:
            self.null_predicate(buf, index)
        elif fragment is Fragment.DIFF:
            self.diff_predicate(buf, index)
        else:
            raise ValueError(f"Unknown fragment kind: {fragment!r}")

    # ------------------------------------------------------------ lists

    def render_list(
        self,
        fragment: Fragment,
        buf: StatementBuffer,
        row: Sequence[Any],
        indexes: Iterable[int],
        delimiter: str,
    ) -> bool:
        """
        Render ``fragment`` for each index, separated by ``delimiter``.

        Returns:
            False if nothing was written, in which case the caller must drop
            the statement rather than emit a dangling clause.
        """
        written = False
        for index in indexes:
            if written:
                buf.write(delimiter)
            self.render(fragment, buf, row, index)
            written = True
        return written

    def equality_list(
        self,
        buf: StatementBuffer,
        row: Sequence[Any],
        indexes: Iterable[int],
        delimiter: str,
    ) -> bool:
        return self.render_list(Fragment.EQUAL, buf, row, indexes, delimiter)

    def key_equality_list(self, buf: StatementBuffer, row: Sequence[Any]) -> bool:
        """``WHERE`` body matching the row's primary key."""
        return self.equality_list(buf, row, self.schema.primary_key, " AND ")

    def update_list(
        self, buf: StatementBuffer, row: Sequence[Any], indexes: Iterable[int]
    ) -> bool:
        """``SET`` body for the given changed positions."""
        return self.equality_list(buf, row, indexes, ",")

    def field_list(self, buf: StatementBuffer) -> bool:
        return self.render_list(Fragment.FIELD, buf, (), self.schema.all_indexes, ",")

    def value_list(self, buf: StatementBuffer, row: Sequence[Any]) -> bool:
        return self.render_list(Fragment.VALUE, buf, row, self.schema.all_indexes, ",")

    def key_field_list(self, buf: StatementBuffer) -> bool:
        """Primary-key columns for a ``USING (...)`` clause."""
        return self.render_list(Fragment.FIELD, buf, (), self.schema.primary_key, ",")

    def null_key_list(self, buf: StatementBuffer) -> bool:
        """Anti-join condition: every key column of the joined side is NULL."""
        return self.render_list(Fragment.NULL_KEY, buf, (), self.schema.primary_key, " AND ")

    def diff_list(self, buf: StatementBuffer) -> bool:
        """Join condition selecting rows where any non-key column differs."""
        return self.render_list(Fragment.DIFF, buf, (), self.schema.non_key_indexes, " OR ")
