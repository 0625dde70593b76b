"""
MySQL quoting primitives for identifiers and literal values.

Identifiers are quoted with backticks. Literals are escaped by PyMySQL's
converters, so the rendered statements use exactly the escaping rules of the
client library that would later apply them.
"""

import re
from typing import Any, Protocol

from pymysql import converters


# Unquoted parts follow MySQL's permitted characters; quoted parts may
# contain anything except a lone backtick.
_TABLE_PART = r"(?:[A-Za-z0-9_$]+|`(?:[^`]|``)+`)"
VALID_TABLE_NAME = re.compile(rf"^{_TABLE_PART}(?:\.{_TABLE_PART})?$")


class Quoter(Protocol):
    """Quoting primitives supplied by the connection layer."""

    def quote_identifier(self, name: str) -> str: ...

    def quote_literal(self, value: Any) -> str: ...


def validate_table_name(table: str) -> str:
    """
    Validate a table reference of the form ``table`` or ``schema.table``.

    Parts may be bare or backtick-quoted. The reference is returned unchanged
    so it can be written verbatim into statements.

    Raises:
        ValueError: If the reference is empty or malformed
    """
    if not table:
        raise ValueError("Table name cannot be empty")

    if not VALID_TABLE_NAME.match(table):
        raise ValueError(
            f"Invalid table name: {table!r}. "
            "Expected table or schema.table, optionally quoted with backticks."
        )
    return table


def quote_identifier(name: str) -> str:
    """Quote a column name with backticks, doubling embedded backticks."""
    if not name:
        raise ValueError("SQL identifier cannot be empty")
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: Any, charset: str = "utf8mb4") -> str:
    """Render ``value`` as an escaped MySQL literal (``NULL`` for None)."""
    return converters.escape_item(value, charset)


class MySQLQuoter:
    """
    Connection-independent quoting primitives.

    Used for rendering without a live server, where the server's
    NO_BACKSLASH_ESCAPES mode cannot be consulted.
    """

    def __init__(self, charset: str = "utf8mb4"):
        self.charset = charset

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(name)

    def quote_literal(self, value: Any) -> str:
        return quote_literal(value, self.charset)
