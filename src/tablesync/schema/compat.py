"""Schema compatibility gate run before any statement is produced."""

import logging

from tablesync.errors import SchemaMismatchError

from .introspect import TableSchema

logger = logging.getLogger(__name__)


def describe_mismatch(source: TableSchema, target: TableSchema) -> str | None:
    """
    Describe the first structural difference between two schemas.

    Returns:
        None when the schemas are compatible, otherwise a short explanation
    """
    if source.names != target.names:
        if source.field_count != target.field_count:
            return (
                f"source has {source.field_count} columns, "
                f"target has {target.field_count}"
            )
        for s, t in zip(source.names, target.names):
            if s != t:
                return f"column {s!r} in source, {t!r} in target"

    if source.primary_key != target.primary_key:
        return (
            f"primary key ({', '.join(source.key_names())}) in source, "
            f"({', '.join(target.key_names())}) in target"
        )

    return None


def check_compatible(source: TableSchema, target: TableSchema) -> None:
    """
    Require equal column-name sequences and equal primary-key positions.

    Raises:
        SchemaMismatchError: If the table definitions differ
    """
    reason = describe_mismatch(source, target)
    if reason is not None:
        raise SchemaMismatchError(
            f"table definitions differ: {reason}", operation="compare_schemas"
        )

    if not target.primary_key:
        logger.warning(
            "Tables have no primary key; rows cannot be matched and no statements will be generated"
        )
