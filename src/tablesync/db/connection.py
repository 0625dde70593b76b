"""MySQL connection wrapper providing streaming cursors and quoting."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import pymysql
import pymysql.cursors
from opentelemetry import trace

from tablesync.errors import ConnectionBusyError, DatabaseConnectionError
from tablesync.sql.quoting import quote_identifier
from tablesync.utils.tracing import trace_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings resolved from a configuration source."""

    host: str
    user: str
    password: str
    database: str = ""
    port: int | None = None

    def describe(self) -> str:
        """Render a password-free description for log messages."""
        location = f"{self.host}:{self.port}" if self.port else self.host
        if self.database:
            return f"{self.user}@{location}/{self.database}"
        return f"{self.user}@{location}"


class MySQLConnection:
    """
    A single MySQL connection used for forward-only streaming queries.

    Only one streaming cursor may be open at a time: unbuffered results must
    be drained or closed before the connection can run the next query.
    """

    def __init__(self, connection: Any, name: str = "mysql"):
        """
        Wrap an open PyMySQL connection.

        Args:
            connection: Open ``pymysql.connections.Connection``
            name: Label used in logs and spans
        """
        self._conn = connection
        self.name = name
        self._streaming = False

    @classmethod
    def connect(cls, config: DatabaseConfig, name: str = "mysql") -> "MySQLConnection":
        """
        Open a connection described by ``config``.

        Raises:
            DatabaseConnectionError: If the server is unreachable or refuses the login
        """
        with trace_operation(
            "mysql_connect",
            kind=trace.SpanKind.CLIENT,
            db_host=config.host,
            db_name=config.database,
        ):
            kwargs: dict[str, Any] = {
                "host": config.host,
                "user": config.user,
                "password": config.password,
                "charset": "utf8mb4",
                "connect_timeout": 10,
            }
            if config.database:
                kwargs["database"] = config.database
            if config.port:
                kwargs["port"] = config.port

            try:
                conn = pymysql.connect(**kwargs)
            except pymysql.MySQLError as e:
                raise DatabaseConnectionError(
                    f"cannot connect to {config.describe()}: {e}",
                    operation="connect",
                ) from e

        logger.info(f"Connected to {config.describe()} as '{name}'")
        return cls(conn, name=name)

    @contextmanager
    def stream(self, sql: str) -> Iterator[Iterator[tuple]]:
        """
        Run ``sql`` and yield an iterator over its rows as tuples.

        Rows are fetched one at a time from an unbuffered cursor. The cursor
        is closed when the block exits, draining any unread rows.

        Raises:
            ConnectionBusyError: If another stream is still open
            DatabaseConnectionError: If the query fails
        """
        with self._open_cursor(sql, pymysql.cursors.SSCursor) as rows:
            yield rows

    @contextmanager
    def stream_dicts(self, sql: str) -> Iterator[Iterator[dict[str, Any]]]:
        """Like :meth:`stream`, but rows are dictionaries keyed by column name."""
        with self._open_cursor(sql, pymysql.cursors.SSDictCursor) as rows:
            yield rows

    @contextmanager
    def _open_cursor(self, sql: str, cursor_class: type) -> Iterator[Iterator[Any]]:
        if self._streaming:
            raise ConnectionBusyError(
                f"connection '{self.name}' already has an open streaming cursor",
                operation="query",
            )

        logger.debug(f"[{self.name}] {sql}")
        self._streaming = True
        cursor = self._conn.cursor(cursor_class)
        try:
            try:
                cursor.execute(sql)
            except pymysql.MySQLError as e:
                raise DatabaseConnectionError(str(e), operation=f"query {sql!r}") from e
            yield self._iterate(cursor, sql)
        except BaseException:
            self._discard_cursor(cursor)
            raise
        else:
            self._close_cursor(cursor)
        finally:
            self._streaming = False

    def _close_cursor(self, cursor: Any) -> None:
        """Close ``cursor``, draining unread rows."""
        try:
            cursor.close()
        except pymysql.MySQLError as e:
            raise DatabaseConnectionError(str(e), operation="close cursor") from e

    def _discard_cursor(self, cursor: Any) -> None:
        """Close ``cursor`` while another error propagates; close errors are only logged."""
        try:
            cursor.close()
        except pymysql.MySQLError as e:
            logger.warning(f"[{self.name}] error closing cursor after failure: {e}")

    @staticmethod
    def _iterate(cursor: Any, sql: str) -> Iterator[Any]:
        while True:
            try:
                row = cursor.fetchone()
            except pymysql.MySQLError as e:
                raise DatabaseConnectionError(str(e), operation=f"fetch {sql!r}") from e
            if row is None:
                return
            yield row

    def quote_identifier(self, name: str) -> str:
        return quote_identifier(name)

    def quote_literal(self, value: Any) -> str:
        """Escape ``value`` honouring the server's SQL mode."""
        return self._conn.escape(value)

    def close(self) -> None:
        """Close the underlying connection."""
        if self._conn is not None and self._conn.open:
            self._conn.close()
            logger.debug(f"Closed connection '{self.name}'")
