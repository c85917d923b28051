"""SQL Server client for mssql-tool.

Wraps pyodbc connections with lazy connect, per-statement timeout,
scoped session options, and exception mapping to the MssqlToolError
hierarchy. One client owns one connection; use one client per thread.
"""

from __future__ import annotations

import math
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import pyodbc
import sentry_sdk
import structlog

from mssql_tool.core.exceptions import (
    DatabaseError,
    NetworkError,
    TimeoutError,
)
from mssql_tool.core.models import ColumnMeta, ResultSet

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from mssql_tool.core.config import ResolvedConfig

# Session options the client is willing to toggle on a caller's behalf.
SESSION_OPTIONS = frozenset({"SHOWPLAN_ALL", "STATISTICS IO", "STATISTICS TIME"})

_TIMEOUT_STATES = frozenset({"HYT00", "HYT01"})


def _odbc_value(value: str) -> str:
    return "{" + value.replace("}", "}}") + "}"


def build_connection_string(config: ResolvedConfig) -> str:
    """Assemble an ODBC connection string; values are brace-escaped."""
    parts = [
        f"DRIVER={_odbc_value(config.driver)}",
        f"SERVER={_odbc_value(f'{config.host},{config.port}')}",
        f"DATABASE={_odbc_value(config.database)}",
    ]
    if config.user:
        parts.append(f"UID={_odbc_value(config.user)}")
        parts.append(f"PWD={_odbc_value(config.password or '')}")
    else:
        parts.append("Trusted_Connection=yes")
    parts.append(f"Encrypt={'yes' if config.encrypt else 'no'}")
    parts.append(
        f"TrustServerCertificate={'yes' if config.trust_server_certificate else 'no'}"
    )
    parts.append(f"APP={_odbc_value(config.application_name)}")
    parts.append("ApplicationIntent=ReadOnly")
    return ";".join(parts)


def _sqlstate(exc: pyodbc.Error) -> str:
    return str(exc.args[0]) if exc.args else ""


def _error_text(exc: pyodbc.Error) -> str:
    if len(exc.args) > 1:
        return str(exc.args[1])
    return str(exc)


def _drain_messages(cur: pyodbc.Cursor) -> list[str]:
    return [str(text) for _, text in (cur.messages or [])]


class MssqlClient:
    """Synchronous SQL Server client using pyodbc."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self._connection: pyodbc.Connection | None = None

    def __enter__(self) -> MssqlClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.closed

    def connect(self) -> pyodbc.Connection:
        if self._connection is not None and not self._connection.closed:
            return self._connection

        log = structlog.get_logger()
        try:
            connection = pyodbc.connect(
                build_connection_string(self.config),
                autocommit=True,
                timeout=self.config.connect_timeout,
            )
        except pyodbc.Error as e:
            msg = (
                f"Connection failed to {self.config.host}:{self.config.port} "
                f"database '{self.config.database}': {_error_text(e)}"
            )
            raise NetworkError(msg) from e

        # pyodbc takes whole seconds; 0 disables the limit.
        connection.timeout = math.ceil(self.config.default_timeout)
        self._connection = connection
        log.debug(
            "connected",
            host=self.config.host,
            port=self.config.port,
            database=self.config.database,
        )
        return connection

    def ensure_connected(self) -> pyodbc.Connection:
        """Connect lazily on first use; reuse the live connection afterwards."""
        return self.connect()

    def run_query(self, sql: str, params: Sequence[Any] | None = None) -> ResultSet:
        """Execute SQL and return the first result set plus engine messages."""
        log = structlog.get_logger()
        conn = self.ensure_connected()

        sql_normalized = " ".join(sql.split())
        span_description = sql_normalized[:100]
        log.debug("executing query", sql=sql_normalized)
        with sentry_sdk.start_span(op="db.query", description=span_description) as span:
            start_time = time.monotonic()
            try:
                cur = conn.cursor()
                try:
                    if params:
                        cur.execute(sql, list(params))
                    else:
                        cur.execute(sql)

                    messages = _drain_messages(cur)
                    # Skip statements that produce no rows (SET, DECLARE).
                    while cur.description is None and cur.nextset():
                        messages.extend(_drain_messages(cur))

                    columns: list[ColumnMeta] = []
                    rows: list[tuple[Any, ...]] = []
                    if cur.description:
                        columns = [
                            ColumnMeta(
                                name=desc[0] or "",
                                type_name=getattr(desc[1], "__name__", str(desc[1])),
                            )
                            for desc in cur.description
                        ]
                        rows = [tuple(row) for row in cur.fetchall()]
                        messages.extend(_drain_messages(cur))
                        while cur.nextset():
                            messages.extend(_drain_messages(cur))
                finally:
                    cur.close()

                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("row_count", len(rows))
                span.set_data("duration_ms", duration_ms)
                log.debug(
                    "query complete",
                    duration_ms=f"{duration_ms:.1f}",
                    row_count=len(rows),
                )
                return ResultSet(columns=columns, rows=rows, messages=messages)

            except pyodbc.Error as e:
                duration_ms = (time.monotonic() - start_time) * 1000
                span.set_data("duration_ms", duration_ms)
                state = _sqlstate(e)
                if state in _TIMEOUT_STATES:
                    span.set_status("deadline_exceeded")
                    log.error(
                        "query timeout",
                        sql=sql_normalized,
                        duration_ms=f"{duration_ms:.1f}",
                    )
                    msg = (
                        f"Query timed out after {self.config.default_timeout}s: "
                        f"{_error_text(e)}"
                    )
                    raise TimeoutError(msg) from e
                if state.startswith("08") or isinstance(e, pyodbc.InterfaceError):
                    span.set_status("unavailable")
                    log.error("connection error", sql=sql_normalized, error=str(e))
                    raise NetworkError(f"Database error: {_error_text(e)}") from e
                span.set_status("internal_error")
                log.error("query error", sql=sql_normalized, error=str(e))
                raise DatabaseError(f"SQL error: {_error_text(e)}") from e

    @contextmanager
    def session_options(self, *options: str) -> Iterator[None]:
        """Turn session options ON for the block, OFF again on every exit path.

        All toggles run on the same connection. If resetting an option
        fails, the connection is discarded so the option cannot stay on.
        """
        unknown = [opt for opt in options if opt not in SESSION_OPTIONS]
        if unknown:
            msg = f"Unsupported session option: {', '.join(unknown)}"
            raise ValueError(msg)

        conn = self.ensure_connected()
        enabled: list[str] = []
        try:
            for option in options:
                self.run_query(f"SET {option} ON")
                enabled.append(option)
            yield
        finally:
            self._reset_options(conn, enabled)

    def _reset_options(self, conn: pyodbc.Connection, enabled: list[str]) -> None:
        log = structlog.get_logger()
        for option in reversed(enabled):
            if self._connection is not conn or not self.is_connected():
                # Session already gone; nothing left to reset.
                return
            try:
                self.run_query(f"SET {option} OFF")
            except DatabaseError as e:
                log.warning(
                    "session option reset failed, discarding connection",
                    option=option,
                    error=e.message,
                )
                try:
                    self.close()
                except pyodbc.Error:
                    log.warning("closing broken connection failed")
                return

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            connection.close()

    disconnect = close
