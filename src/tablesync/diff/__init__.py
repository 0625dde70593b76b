"""
Table diff strategies.

- buffered: target loaded into memory, source streamed against it
- server: three join queries run on a single server

Both yield :class:`tablesync.sql.Statement` objects lazily.
"""

from .buffered import Snapshot, build_snapshot, diff_buffered
from .compare import DiffStats, changed_indexes, extract_key, key_text, values_differ
from .server import diff_on_server

__all__ = [
    "Snapshot",
    "build_snapshot",
    "diff_buffered",
    "diff_on_server",
    "DiffStats",
    "changed_indexes",
    "extract_key",
    "key_text",
    "values_differ",
]
