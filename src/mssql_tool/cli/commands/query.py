from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Annotated

import typer

from mssql_tool.cli.commands._shared import (
    current_format,
    get_config,
    output_model,
    output_result,
)
from mssql_tool.cli.output import OutputFormat
from mssql_tool.core.actions import run_query
from mssql_tool.core.client import MssqlClient
from mssql_tool.core.exceptions import InputError
from mssql_tool.core.exit_codes import ExitCode
from mssql_tool.core.query_source import resolve_query_source

if TYPE_CHECKING:
    from mssql_tool.core.models import PlanRow


def echo_plan(plan: list[PlanRow]) -> None:
    typer.echo("Execution plan:", err=True)
    for row in plan:
        typer.echo(f"  {str(row.get('StmtText', '')).strip()}", err=True)


def read_query(execute: str | None, file: str | None, ctx: typer.Context) -> str:
    try:
        is_tty = sys.stdin.isatty()
    except (ValueError, AttributeError):
        is_tty = False
    if execute is None and file is None and is_tty:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        return resolve_query_source(inline=execute, file_path=file)
    except InputError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(ExitCode.INPUT_ERROR) from exc


def query_command(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Argument(help="SQL file to execute"),
    ] = None,
    execute: Annotated[
        str | None,
        typer.Option("--execute", "-e", help="Execute inline SQL query"),
    ] = None,
    max_rows: Annotated[
        int | None,
        typer.Option("--max-rows", "-n", min=1, help="Row cap (hard limit 1000)"),
    ] = None,
    plan: Annotated[
        bool,
        typer.Option("--plan", help="Include the estimated execution plan"),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Query timeout in seconds"),
    ] = None,
) -> None:
    """Execute a read-only SELECT query from file, inline (-e), or stdin."""
    sql = read_query(execute, file, ctx)
    config = get_config(ctx, timeout=timeout, max_rows=max_rows)

    with MssqlClient(config) as client:
        response = run_query(
            client,
            sql,
            max_rows=config.default_max_rows,
            include_execution_plan=plan,
        )

    fmt = current_format(ctx)
    if plan and fmt is OutputFormat.JSON:
        output_model(ctx, response)
        return

    output_result(ctx, response.result)
    if fmt is OutputFormat.TABLE:
        typer.echo(
            f"({response.result.row_count} rows, "
            f"{response.result.execution_time_ms} ms)",
            err=True,
        )
    if response.execution_plan is not None:
        echo_plan(response.execution_plan)
    elif response.execution_plan_error is not None:
        typer.echo(f"Execution plan unavailable: {response.execution_plan_error}", err=True)
