"""Query execution on top of the gatekeeper.

Every entry point runs the gatekeeper first and never reaches the
database with a rejected query. Engine failures are re-raised as the
same DatabaseError subclass with the elapsed time attached.
"""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING, Any

import structlog

from mssql_tool.core.exceptions import DatabaseError, PolicyViolationError
from mssql_tool.core.gatekeeper import DEFAULT_MAX_ROWS, evaluate
from mssql_tool.core.models import ExecutionStats, PlanRow, QueryResult, QueryVerdict

if TYPE_CHECKING:
    from mssql_tool.core.client import MssqlClient
    from mssql_tool.core.models import ResultSet

_LOGICAL_READS = re.compile(r"(?<!lob )logical reads (\d+)", re.IGNORECASE)
_PHYSICAL_READS = re.compile(r"(?<!lob )physical reads (\d+)", re.IGNORECASE)
_EXECUTION_CPU = re.compile(
    r"SQL Server Execution Times:\s*CPU time = (\d+) ms", re.IGNORECASE
)


def _elapsed_ms(start_time: float) -> int:
    return max(0, round((time.monotonic() - start_time) * 1000))


def _approve(query_text: str, max_rows: int = DEFAULT_MAX_ROWS) -> QueryVerdict:
    log = structlog.get_logger()
    verdict = evaluate(query_text, max_rows)
    if not verdict.allowed:
        reason = verdict.reason or ""
        log.warning("query rejected", reason=reason, sql=query_text[:200])
        raise PolicyViolationError(reason)
    if verdict.has_comments:
        log.warning("query contains comments, review for security", sql=query_text[:200])
    return verdict


def unique_column_names(names: list[str]) -> list[str]:
    """Name unnamed columns column<N> and suffix duplicates with _<N>.

    N is the 1-based position of the column in the result.
    """
    result: list[str] = []
    seen: set[str] = set()
    for position, name in enumerate(names, start=1):
        candidate = name or f"column{position}"
        if candidate in seen:
            candidate = f"{candidate}_{position}"
        seen.add(candidate)
        result.append(candidate)
    return result


def _rows_as_dicts(columns: list[str], rows: list[tuple[Any, ...]]) -> list[dict[str, Any]]:
    return [dict(zip(columns, row, strict=True)) for row in rows]


def shape_result(result_set: ResultSet, execution_time_ms: int) -> QueryResult:
    columns = unique_column_names([col.name for col in result_set.columns])
    rows = _rows_as_dicts(columns, result_set.rows)
    return QueryResult(
        columns=columns,
        rows=rows,
        row_count=len(rows),
        execution_time_ms=execution_time_ms,
    )


def _with_elapsed(error: DatabaseError, start_time: float, action: str) -> DatabaseError:
    elapsed_ms = _elapsed_ms(start_time)
    return type(error)(f"{action} failed ({elapsed_ms}ms): {error.message}", elapsed_ms)


def execute(
    client: MssqlClient, query_text: str, max_rows: int = DEFAULT_MAX_ROWS
) -> QueryResult:
    """Run an approved query with its row cap applied."""
    verdict = _approve(query_text, max_rows)

    start_time = time.monotonic()
    try:
        result_set = client.run_query(verdict.rewritten_text)
    except DatabaseError as e:
        raise _with_elapsed(e, start_time, "Query execution") from e

    return shape_result(result_set, _elapsed_ms(start_time))


def explain(
    client: MssqlClient, query_text: str, max_rows: int = DEFAULT_MAX_ROWS
) -> list[PlanRow]:
    """Return the estimated plan (SHOWPLAN_ALL rows) without running the query."""
    verdict = _approve(query_text, max_rows)

    start_time = time.monotonic()
    try:
        with client.session_options("SHOWPLAN_ALL"):
            result_set = client.run_query(verdict.rewritten_text)
    except DatabaseError as e:
        raise _with_elapsed(e, start_time, "Execution plan") from e

    columns = unique_column_names([col.name for col in result_set.columns])
    return _rows_as_dicts(columns, result_set.rows)


def parse_statistics_messages(messages: list[str]) -> tuple[int, int, int]:
    """Sum logical reads, physical reads and execution CPU ms from engine messages.

    Parse/compile times are not counted. Returns zeros for anything absent.
    """
    logical_reads = 0
    physical_reads = 0
    cpu_time_ms = 0
    for message in messages:
        logical_reads += sum(int(n) for n in _LOGICAL_READS.findall(message))
        physical_reads += sum(int(n) for n in _PHYSICAL_READS.findall(message))
        cpu_time_ms += sum(int(n) for n in _EXECUTION_CPU.findall(message))
    return logical_reads, physical_reads, cpu_time_ms


def statistics(client: MssqlClient, query_text: str) -> ExecutionStats:
    """Run the query with STATISTICS IO/TIME on and report what was captured."""
    verdict = _approve(query_text)

    start_time = time.monotonic()
    try:
        with client.session_options("STATISTICS IO", "STATISTICS TIME"):
            query_start = time.monotonic()
            result_set = client.run_query(verdict.rewritten_text)
            elapsed_time_ms = _elapsed_ms(query_start)
    except DatabaseError as e:
        raise _with_elapsed(e, start_time, "Query statistics") from e

    logical_reads, physical_reads, cpu_time_ms = parse_statistics_messages(
        result_set.messages
    )
    return ExecutionStats(
        logical_reads=logical_reads,
        physical_reads=physical_reads,
        cpu_time_ms=cpu_time_ms,
        elapsed_time_ms=elapsed_time_ms,
    )
