"""Where the SQL text of a query/analyze invocation comes from.

Inline text (-e) wins over a file argument, which wins over piped stdin.
"""

from __future__ import annotations

import sys
from pathlib import Path

from mssql_tool.core.exceptions import InputError


def _read_file(file_path: str) -> str:
    path = Path(file_path)
    if not path.is_file():
        msg = (
            f"Query file not found: {file_path}\n"
            "Use -e for inline queries or pipe query via stdin."
        )
        raise InputError(msg)
    return path.read_text(encoding="utf-8-sig")


def resolve_query_source(inline: str | None, file_path: str | None) -> str:
    """Return the query text; InputError if there is none or it is blank."""
    if inline is not None:
        sql = inline
    elif file_path is not None:
        sql = _read_file(file_path)
    elif sys.stdin.isatty():
        msg = "No query provided. Use -e, file path, or pipe to stdin."
        raise InputError(msg)
    else:
        sql = sys.stdin.read()

    if not sql.strip():
        raise InputError("Query is empty.")
    return sql
