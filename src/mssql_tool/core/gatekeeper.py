"""Read-only query gatekeeper.

Decides whether caller-supplied SQL text may run and produces the exact
text to execute. This is a conservative policy filter, not a parser:
keywords are matched as plain substrings of the lowercased text, so some
harmless queries are rejected (a string literal containing "update", a
column named "created_at") while no mutating statement gets through.

Evaluation is pure: no I/O, deterministic for a given (text, max_rows).
"""

from __future__ import annotations

import re

from mssql_tool.core.exceptions import InputError
from mssql_tool.core.models import QueryVerdict

MAX_ROWS = 1000
DEFAULT_MAX_ROWS = 100

FORBIDDEN_KEYWORDS: tuple[str, ...] = (
    "insert",
    "update",
    "delete",
    "drop",
    "create",
    "alter",
    "truncate",
    "merge",
    "exec",
    "execute",
    "sp_",
    "xp_",
    "bulk",
    "openrowset",
    "opendatasource",
)

ALLOWED_LEADING_KEYWORDS = frozenset({"select", "with"})

_LINE_COMMENT = re.compile(r"--.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LEADING_SELECT = re.compile(r"^(\s*select\s+)", re.IGNORECASE)
_STARTS_WITH_SELECT = re.compile(r"^select\s")


def clamp_max_rows(max_rows: int) -> int:
    """Clamp a caller-requested row cap to MAX_ROWS.

    Raises InputError for a non-positive request.
    """
    if max_rows < 1:
        msg = f"Invalid max rows: {max_rows}. Must be a positive integer"
        raise InputError(msg)
    return min(max_rows, MAX_ROWS)


def strip_comments(sql: str) -> str:
    """Remove -- line comments and non-nesting /* */ block comments."""
    result = _LINE_COMMENT.sub("", sql)
    return _BLOCK_COMMENT.sub("", result)


def find_forbidden_keyword(sql: str) -> str | None:
    lowered = sql.lower()
    for keyword in FORBIDDEN_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def leading_keyword(sql: str) -> str:
    stripped = strip_comments(sql).strip().lower()
    if not stripped:
        return ""
    return stripped.split(maxsplit=1)[0]


def has_row_limit(sql: str) -> bool:
    # Only "top " and "top(" count; "top\t5" is not seen as a limit and gets a second TOP.
    lowered = sql.lower()
    return "top " in lowered or "top(" in lowered


def add_row_limit(sql: str, max_rows: int) -> str:
    """Insert TOP <max_rows> after the leading SELECT keyword.

    Queries that already contain a TOP clause, and queries that do not
    literally start with SELECT (CTEs, leading comments), are returned
    unchanged.
    """
    if has_row_limit(sql):
        return sql
    if not _STARTS_WITH_SELECT.match(sql.strip().lower()):
        return sql
    return _LEADING_SELECT.sub(lambda m: f"{m.group(1)}TOP {max_rows} ", sql, count=1)


def evaluate(query_text: str, max_rows: int = DEFAULT_MAX_ROWS) -> QueryVerdict:
    """Approve or reject query_text and produce the text to execute."""
    effective_rows = clamp_max_rows(max_rows)
    has_comments = "--" in query_text or "/*" in query_text

    keyword = find_forbidden_keyword(query_text)
    if keyword is not None:
        return QueryVerdict(
            allowed=False,
            rewritten_text=query_text,
            reason=(
                f"Query contains forbidden keyword: {keyword}. "
                "Only SELECT statements are allowed."
            ),
            max_rows=effective_rows,
            has_comments=has_comments,
        )

    if leading_keyword(query_text) not in ALLOWED_LEADING_KEYWORDS:
        return QueryVerdict(
            allowed=False,
            rewritten_text=query_text,
            reason="Only SELECT statements and CTEs (WITH clause) are allowed.",
            max_rows=effective_rows,
            has_comments=has_comments,
        )

    return QueryVerdict(
        allowed=True,
        rewritten_text=add_row_limit(query_text, effective_rows),
        max_rows=effective_rows,
        has_comments=has_comments,
    )
