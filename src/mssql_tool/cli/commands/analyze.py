from __future__ import annotations

from typing import Annotated, Any

import typer

from mssql_tool.cli.commands._shared import (
    current_format,
    get_client,
    output_model,
    output_records,
)
from mssql_tool.cli.commands.query import echo_plan, read_query
from mssql_tool.cli.output import OutputFormat
from mssql_tool.core.actions import analyze_query


def analyze_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to analyze"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Analyze inline SQL query"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Query timeout in seconds"),
    ] = None,
) -> None:
    """
    Analyze a read-only query: statistics, estimated plan, and recommendations.

    The query is executed once with STATISTICS IO/TIME enabled. Reads and CPU
    time of 0 mean the engine did not report them.
    """
    sql = read_query(execute, file, ctx)

    with get_client(ctx, timeout=timeout) as client:
        analysis = analyze_query(client, sql)

    fmt = current_format(ctx)
    if fmt is OutputFormat.JSON:
        output_model(ctx, analysis)
        return

    stats = analysis.statistics
    rows: list[dict[str, Any]] = [
        {"property": "logical_reads", "value": stats.logical_reads},
        {"property": "physical_reads", "value": stats.physical_reads},
        {"property": "cpu_time_ms", "value": stats.cpu_time_ms},
        {"property": "elapsed_time_ms", "value": stats.elapsed_time_ms},
    ]
    rows.extend(
        {"property": "recommendation", "value": text}
        for text in analysis.recommendations
    )
    output_records(ctx, ["property", "value"], rows)
    if fmt is OutputFormat.TABLE:
        echo_plan(analysis.execution_plan)
