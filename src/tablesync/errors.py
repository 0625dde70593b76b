"""
Error hierarchy for table synchronization runs.

Every error is fatal for the current run: nothing is retried and nothing is
recovered locally. Errors propagate to the CLI entry point, which reports
them on stderr and exits with status 1.
"""


class TableSyncError(Exception):
    """Base exception for all table synchronization errors."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        message = super().__str__()
        if self.operation:
            return f"{self.operation}: {message}"
        return message


class UsageError(TableSyncError):
    """Raised for invalid command-line usage or strategy selection."""

    pass


class ConfigError(TableSyncError):
    """Raised when a configuration source is unreadable or incomplete."""

    pass


class DatabaseConnectionError(TableSyncError):
    """Raised when the database is unreachable or a query fails."""

    pass


class SchemaMismatchError(TableSyncError):
    """Raised when source and target table definitions differ."""

    pass


class InternalConsistencyError(TableSyncError):
    """Raised when data read from the database contradicts its own schema."""

    pass


class RowWidthError(InternalConsistencyError):
    """Raised when a fetched row does not have the expected number of values."""

    def __init__(self, table: str, expected: int, actual: int):
        super().__init__(
            f"row from {table} has {actual} values, expected {expected}",
            operation="fetch_row",
        )
        self.table = table
        self.expected = expected
        self.actual = actual


class ConnectionBusyError(InternalConsistencyError):
    """Raised when a second streaming cursor is opened on one connection."""

    pass
