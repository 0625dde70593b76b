"""
SQL rendering: quoting primitives, column fragments and full statements.
"""

from .fragments import Fragment, FragmentBuilder, StatementBuffer
from .quoting import MySQLQuoter, Quoter, quote_identifier, quote_literal, validate_table_name
from .statements import (
    Statement,
    StatementKind,
    render_delete,
    render_insert,
    render_statement,
    render_update,
)

__all__ = [
    "Fragment",
    "FragmentBuilder",
    "StatementBuffer",
    "MySQLQuoter",
    "Quoter",
    "quote_identifier",
    "quote_literal",
    "validate_table_name",
    "Statement",
    "StatementKind",
    "render_statement",
    "render_insert",
    "render_update",
    "render_delete",
]
