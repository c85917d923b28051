"""Rich table output for terminals."""

from __future__ import annotations

import shutil
import sys
from decimal import Decimal
from io import StringIO
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from mssql_tool.formatters.base import register, text_value

if TYPE_CHECKING:
    from collections.abc import Iterator

    from mssql_tool.core.models import QueryResult

EMPTY_MESSAGE = "No results"


def _is_numeric(values: list[Any]) -> bool:
    present = [v for v in values if v is not None]
    return bool(present) and all(
        isinstance(v, (int, float, Decimal)) and not isinstance(v, bool) for v in present
    )


@register("table")
class TableFormatter:
    """Box table; numeric columns right-aligned, NULL shown dimmed.

    Cells wider than ``width`` are cut with an ellipsis.
    """

    def __init__(self, width: int = 40, null: str = "NULL") -> None:
        self.width = width
        self.null = null

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.rows:
            yield EMPTY_MESSAGE
            return

        table = Table(header_style="bold")
        for col in result.columns:
            values = [row.get(col) for row in result.rows]
            table.add_column(
                col,
                justify="right" if _is_numeric(values) else "left",
                max_width=self.width,
                overflow="ellipsis",
                no_wrap=True,
            )
        for row in result.rows:
            table.add_row(*(self._cell(row.get(col)) for col in result.columns))

        buffer = StringIO()
        console = Console(
            file=buffer,
            width=shutil.get_terminal_size((120, 24)).columns,
            force_terminal=sys.stdout.isatty(),
            highlight=False,
        )
        console.print(table)
        yield buffer.getvalue().rstrip("\n")

    def _cell(self, value: Any) -> Text:
        if value is None:
            return Text(self.null, style="dim")
        return Text(text_value(value))
