"""
Table schema introspection and compatibility checks.

Both sides of a sync must share column names, column order and primary key
positions before any data is compared.
"""

from .compat import check_compatible, describe_mismatch
from .introspect import Column, TableSchema, introspect_table

__all__ = [
    "Column",
    "TableSchema",
    "introspect_table",
    "check_compatible",
    "describe_mismatch",
]
