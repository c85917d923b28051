"""Config, client and output helpers shared by the command modules."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mssql_tool.cli.output import OutputFormat, emit_document, emit_lines, render, resolve_format
from mssql_tool.core.client import MssqlClient
from mssql_tool.core.config import load_config, resolve_config
from mssql_tool.core.exceptions import InputError
from mssql_tool.core.models import QueryResult

if TYPE_CHECKING:
    import typer
    from pydantic import BaseModel

    from mssql_tool.core.config import ResolvedConfig

DEFAULT_SCHEMA = "dbo"


def get_config(
    ctx: typer.Context,
    timeout: float | None = None,
    max_rows: int | None = None,
) -> ResolvedConfig:
    """Resolve the effective configuration for this invocation.

    Also remembers a config-file default_format so output helpers can
    honor it when no --format was given.
    """
    obj = ctx.ensure_object(dict)
    overrides = {k: v for k, v in obj.get("overrides", {}).items() if v is not None}
    if timeout is not None:
        overrides["timeout"] = timeout
    if max_rows is not None:
        overrides["max_rows"] = max_rows

    resolved = resolve_config(
        load_config(obj.get("config_file")),
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **overrides,
    )
    if resolved.sources.get("default_format") == "config":
        obj["configured_format"] = resolved.default_format
    return resolved


def get_client(ctx: typer.Context, timeout: float | None = None) -> MssqlClient:
    return MssqlClient(get_config(ctx, timeout=timeout))


def current_format(ctx: typer.Context) -> OutputFormat:
    obj = ctx.ensure_object(dict)
    return resolve_format(obj.get("format"), obj.get("configured_format"))


def output_result(ctx: typer.Context, result: QueryResult) -> None:
    obj = ctx.ensure_object(dict)
    emit_lines(
        render(
            result,
            current_format(ctx),
            compact=obj.get("compact", False),
            width=obj.get("width", 40),
            no_header=obj.get("no_header", False),
        )
    )


def output_model(ctx: typer.Context, model: BaseModel) -> None:
    emit_document(model.model_dump(), compact=ctx.ensure_object(dict).get("compact", False))


def output_records(ctx: typer.Context, columns: list[str], rows: list[dict[str, Any]]) -> None:
    """Render locally built records (settings, inventories) like query rows."""
    output_result(
        ctx,
        QueryResult(columns=columns, rows=rows, row_count=len(rows), execution_time_ms=0),
    )


def override_output(ctx: typer.Context, **options: Any) -> None:
    """Apply command-level output options on top of the global ones.

    Only options the user actually passed (truthy, or a format) are applied.
    """
    obj = ctx.ensure_object(dict)
    fmt = options.pop("format", None)
    if options.pop("table", False):
        fmt = OutputFormat.TABLE
    if fmt is not None:
        obj["format"] = OutputFormat(fmt).value
    for key, value in options.items():
        if value:
            obj[key] = value


def parse_table_arg(table_arg: str) -> tuple[str, str]:
    """Split SCHEMA.TABLE; a bare name is looked up in the dbo schema."""
    schema, dot, table = table_arg.rpartition(".")
    if not dot:
        return DEFAULT_SCHEMA, table_arg
    if not schema or not table:
        msg = f"Invalid table reference: '{table_arg}'. Use SCHEMA.TABLE"
        raise InputError(msg)
    return schema, table
