"""Formatter protocol, registry, and value rendering shared by formatters.

Formatters turn a QueryResult into output lines. They are registered by
format name with the @register decorator when their module is imported.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from mssql_tool.core.exceptions import InputError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from mssql_tool.core.models import QueryResult


@runtime_checkable
class Formatter(Protocol):
    def format(self, result: QueryResult) -> Iterator[str]: ...


_formatters: dict[str, type[Formatter]] = {}


def register(name: str) -> Callable[[type[Formatter]], type[Formatter]]:
    def decorator(cls: type[Formatter]) -> type[Formatter]:
        _formatters[name] = cls
        return cls

    return decorator


def available_formats() -> list[str]:
    return sorted(_formatters)


def create_formatter(name: str, **options: Any) -> Formatter:
    """Instantiate the formatter registered under name.

    Raises InputError for an unknown format name.
    """
    try:
        cls = _formatters[name]
    except KeyError:
        msg = f"Unknown output format '{name}'. Available: {', '.join(available_formats())}"
        raise InputError(msg) from None
    return cls(**options)


def text_value(value: Any, null: str = "") -> str:
    """Render one column value as display text.

    varbinary values become 0x-prefixed hex, date/time values ISO 8601
    with a space separator (as SQL Server prints them).
    """
    if value is None:
        return null
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex().upper()
    if isinstance(value, dt.datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, (dt.date, dt.time)):
        return value.isoformat()
    return str(value)
