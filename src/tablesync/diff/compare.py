"""
Row matching and column comparison shared by both diff strategies.

Equality policy: two NULLs are equal, NULL against a value is a change, and
any other pair is compared with ``!=`` on the values the driver returned.
Strings compare byte-for-byte, matching the server-side ``BINARY`` test.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from tablesync.schema import TableSchema

PrimaryKey = tuple[str, ...]


def key_text(value: Any) -> str:
    """Canonical text of one primary-key value."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "surrogateescape")
    return str(value)


def extract_key(schema: TableSchema, row: Sequence[Any]) -> PrimaryKey:
    """Primary key of ``row`` as text, in primary-key position order."""
    return tuple(key_text(row[i]) for i in schema.primary_key)


def values_differ(left: Any, right: Any) -> bool:
    if left is None and right is None:
        return False
    if left is None or right is None:
        return True
    return left != right


def changed_indexes(
    new_row: Sequence[Any],
    old_row: Sequence[Any],
    indexes: Iterable[int],
) -> list[int]:
    """Positions among ``indexes`` whose values differ between the two rows."""
    return [i for i in indexes if values_differ(new_row[i], old_row[i])]


@dataclass
class DiffStats:
    """Row counters filled in while a diff runs."""

    source_rows: int = 0
    target_rows: int = 0
