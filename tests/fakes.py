"""In-memory stand-in for MssqlClient.

Subclasses the real client so session_options() and its reset logic run
unchanged; only the connection and the round-trip are faked.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from mssql_tool.core.client import MssqlClient
from mssql_tool.core.config import ResolvedConfig
from mssql_tool.core.models import ColumnMeta, ResultSet


def result_set(
    columns: list[str], rows: list[tuple[Any, ...]], messages: list[str] | None = None
) -> ResultSet:
    return ResultSet(
        columns=[ColumnMeta(name=name, type_name="str") for name in columns],
        rows=rows,
        messages=messages or [],
    )


EMPTY = result_set([], [])


class FakeClient(MssqlClient):
    """Answers run_query() from (substring, response) rules, first match wins.

    A response may be a ResultSet, an exception instance (raised), or a
    callable taking (sql, params) and returning either.
    """

    def __init__(self, rules: list[tuple[str, Any]] | None = None) -> None:
        super().__init__(ResolvedConfig())
        self.rules = list(rules or [])
        self.queries: list[str] = []
        self.params: list[Any] = []
        self.connect_count = 0

    def connect(self) -> Any:
        if not self.is_connected():
            self._connection = SimpleNamespace(closed=False)
            self.connect_count += 1
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.closed = True
            self._connection = None

    def run_query(self, sql: str, params: Any = None) -> ResultSet:
        self.ensure_connected()
        self.queries.append(sql)
        self.params.append(params)
        for needle, response in self.rules:
            if needle in sql:
                if callable(response):
                    response = response(sql, params)
                if isinstance(response, Exception):
                    raise response
                return response
        return EMPTY

    def queries_matching(self, needle: str) -> list[str]:
        return [sql for sql in self.queries if needle in sql]
