"""JSON output: an array of row objects in column order."""

from __future__ import annotations

import datetime as dt
import json
from typing import TYPE_CHECKING, Any

from mssql_tool.formatters.base import register

if TYPE_CHECKING:
    from collections.abc import Iterator

    from mssql_tool.core.models import QueryResult


def json_value(value: Any) -> Any:
    """Map a driver value onto JSON.

    Decimal and UUID become strings (no precision loss), date/time values
    ISO 8601 strings, varbinary 0x-prefixed hex.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex().upper()
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return str(value)


def dumps(data: Any, compact: bool = False) -> str:
    if compact:
        return json.dumps(data, default=json_value, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(data, default=json_value, ensure_ascii=False, indent=2)


@register("json")
class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        records = [{col: row.get(col) for col in result.columns} for row in result.rows]
        yield dumps(records, self.compact)
