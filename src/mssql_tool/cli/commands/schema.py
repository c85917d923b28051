"""tables and schema commands: catalog inventory and per-table metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import typer

from mssql_tool.cli.commands._shared import (
    current_format,
    get_client,
    output_model,
    output_records,
    override_output,
    parse_table_arg,
)
from mssql_tool.cli.output import OutputFormat
from mssql_tool.core.actions import describe_table, find_tables

if TYPE_CHECKING:
    from mssql_tool.core.models import TableSchema

COLUMN_FIELDS = [
    "name",
    "data_type",
    "max_length",
    "nullable",
    "is_primary_key",
    "is_foreign_key",
    "default_value",
    "description",
]

FormatOption = Annotated[
    OutputFormat | None,
    typer.Option("--format", "-f", help="Output format: table|json|csv"),
]
TableOption = Annotated[bool, typer.Option("--table", help="Shorthand for --format table")]
CompactOption = Annotated[
    bool, typer.Option("--compact", help="Compact JSON output (no indentation)")
]


def tables_command(
    ctx: typer.Context,
    search: Annotated[
        str,
        typer.Argument(help="Filter by table or schema name (case-insensitive)"),
    ] = "",
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Suppress header row in CSV output"),
    ] = False,
) -> None:
    """List user tables and views, sorted by schema and name."""
    override_output(ctx, format=format, table=table, compact=compact, no_header=no_header)

    with get_client(ctx) as client:
        tables = find_tables(client, search)

    output_records(
        ctx,
        ["schema", "name", "kind"],
        [
            {"schema": ref.schema_name, "name": ref.table_name, "kind": ref.kind.value}
            for ref in tables
        ],
    )


def _print_sections(ctx: typer.Context, table_schema: TableSchema) -> None:
    if table_schema.indexes:
        typer.echo("Indexes:", err=True)
        output_records(
            ctx,
            ["name", "columns", "is_unique", "is_primary_key"],
            [
                {
                    "name": index.name,
                    "columns": ", ".join(index.columns),
                    "is_unique": index.is_unique,
                    "is_primary_key": index.is_primary_key,
                }
                for index in table_schema.indexes
            ],
        )
    if table_schema.foreign_keys:
        typer.echo("Foreign keys:", err=True)
        output_records(
            ctx,
            ["name", "column", "references"],
            [
                {
                    "name": fk.name,
                    "column": fk.column,
                    "references": (
                        f"{fk.referenced_schema}.{fk.referenced_table}.{fk.referenced_column}"
                    ),
                }
                for fk in table_schema.foreign_keys
            ],
        )


def schema_command(
    ctx: typer.Context,
    table_ref: Annotated[
        str,
        typer.Argument(metavar="SCHEMA.TABLE", help="Table or view; bare names use dbo"),
    ],
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: Annotated[
        int | None,
        typer.Option("--width", help="Column width for table format"),
    ] = None,
) -> None:
    """
    Describe a table or view: columns, indexes, and foreign keys.

    JSON output is the complete schema document. Table output prints the
    columns followed by index and foreign key sections; CSV prints columns only.
    """
    override_output(ctx, format=format, table=table, compact=compact, width=width)
    schema_name, table_name = parse_table_arg(table_ref)

    with get_client(ctx) as client:
        table_schema = describe_table(client, schema_name, table_name)

    fmt = current_format(ctx)
    if fmt is OutputFormat.JSON:
        output_model(ctx, table_schema)
        return

    if fmt is OutputFormat.TABLE:
        ref = table_schema.table
        summary = f"{ref.kind.value.title()}: {ref.qualified_name}"
        if ref.row_count is not None:
            summary += f" ({ref.row_count} rows)"
        typer.echo(summary, err=True)

    output_records(
        ctx,
        COLUMN_FIELDS,
        [column.model_dump(include=set(COLUMN_FIELDS)) for column in table_schema.columns],
    )
    if fmt is OutputFormat.TABLE:
        _print_sections(ctx, table_schema)
