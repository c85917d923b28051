"""CSV output (RFC 4180 quoting, one record per yielded line)."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING, Any

from mssql_tool.formatters.base import register, text_value

if TYPE_CHECKING:
    from collections.abc import Iterator

    from mssql_tool.core.models import QueryResult


@register("csv")
class CSVFormatter:
    def __init__(self, no_header: bool = False, null: str = "") -> None:
        self.no_header = no_header
        self.null = null

    def format(self, result: QueryResult) -> Iterator[str]:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="")

        def record(values: list[Any]) -> str:
            buffer.seek(0)
            buffer.truncate()
            writer.writerow(values)
            return buffer.getvalue()

        if not self.no_header:
            yield record(result.columns)
        for row in result.rows:
            yield record([text_value(row.get(col), self.null) for col in result.columns])
