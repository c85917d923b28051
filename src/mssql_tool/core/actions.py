"""Named actions exposed to the outer surface.

Framework-agnostic: each action takes a client, makes sure it is
connected, and returns pydantic models. The CLI in cli/ renders them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from mssql_tool.core.exceptions import DatabaseError
from mssql_tool.core.executor import execute, explain, statistics
from mssql_tool.core.gatekeeper import DEFAULT_MAX_ROWS
from mssql_tool.core.models import QueryAnalysis, QueryResponse
from mssql_tool.core.schema import get_table_schema, search_tables

if TYPE_CHECKING:
    from mssql_tool.core.client import MssqlClient
    from mssql_tool.core.models import TableRef, TableSchema


def recommend(query_text: str) -> list[str]:
    """Lexical tuning hints for a query. Does not look at the plan."""
    lowered = query_text.lower()
    recommendations: list[str] = []

    if "select *" in lowered:
        recommendations.append(
            "Consider selecting only the columns you need instead of using SELECT *"
        )
    if "where" not in lowered and "top" not in lowered:
        recommendations.append(
            "Consider adding WHERE clause or TOP clause to limit results"
        )
    if "order by" in lowered and "top" not in lowered:
        recommendations.append(
            "ORDER BY without TOP/LIMIT can be expensive on large tables"
        )
    return recommendations


def run_query(
    client: MssqlClient,
    query_text: str,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    include_execution_plan: bool = False,
) -> QueryResponse:
    """Execute a bounded read query, optionally with its estimated plan.

    A failure to produce the plan does not fail the query; it is reported
    in execution_plan_error instead.
    """
    client.ensure_connected()
    result = execute(client, query_text, max_rows)
    if not include_execution_plan:
        return QueryResponse(result=result)

    try:
        plan = explain(client, query_text, max_rows)
    except DatabaseError as e:
        structlog.get_logger().warning("execution plan failed", error=e.message)
        return QueryResponse(result=result, execution_plan_error=e.message)
    return QueryResponse(result=result, execution_plan=plan)


def describe_table(client: MssqlClient, schema_name: str, table_name: str) -> TableSchema:
    client.ensure_connected()
    return get_table_schema(client, schema_name, table_name)


def find_tables(client: MssqlClient, search_term: str = "") -> list[TableRef]:
    client.ensure_connected()
    return search_tables(client, search_term)


def analyze_query(client: MssqlClient, query_text: str) -> QueryAnalysis:
    """Run the query with statistics, then attach its plan and tuning hints."""
    client.ensure_connected()
    stats = statistics(client, query_text)
    plan = explain(client, query_text)
    return QueryAnalysis(
        query=query_text,
        statistics=stats,
        execution_plan=plan,
        recommendations=recommend(query_text),
    )
