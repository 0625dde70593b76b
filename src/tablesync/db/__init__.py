"""
Database access layer.

Wraps a PyMySQL connection with forward-only streaming cursors and the
quoting primitives used to render statements.
"""

from .connection import DatabaseConfig, MySQLConnection

__all__ = [
    "DatabaseConfig",
    "MySQLConnection",
]
