"""Output format selection and writing to stdout."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from mssql_tool.formatters import create_formatter, dumps

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mssql_tool.core.models import QueryResult


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def stdout_is_terminal() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, configured: str | None = None) -> OutputFormat:
    """Pick the output format.

    An explicit --format wins, then a default_format set in the config
    file; otherwise table on a terminal and csv when piped.
    """
    chosen = format_flag or configured
    if chosen is None:
        chosen = OutputFormat.TABLE if stdout_is_terminal() else OutputFormat.CSV
    return OutputFormat(chosen)


def render(
    result: QueryResult,
    fmt: OutputFormat,
    *,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Iterable[str]:
    options: dict[str, Any] = {
        OutputFormat.TABLE: {"width": width},
        OutputFormat.JSON: {"compact": compact},
        OutputFormat.CSV: {"no_header": no_header},
    }[fmt]
    return create_formatter(fmt.value, **options).format(result)


def emit_lines(lines: Iterable[str]) -> None:
    for line in lines:
        sys.stdout.write(f"{line}\n")


def emit_document(data: Any, *, compact: bool = False) -> None:
    """Write a whole model dump as one JSON document."""
    sys.stdout.write(dumps(data, compact) + "\n")
