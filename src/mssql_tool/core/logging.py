"""structlog setup for mssql-tool.

Everything is logged to stderr; stdout is reserved for result rows.
Query rejections and comment-bearing queries are logged at warning, so
the default level keeps them visible as an audit trail.
"""

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL_ENV = "MSSQL_TOOL_LOG_LEVEL"

DEFAULT_LEVEL = "warning"


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Looked up per logger: CliRunner replaces sys.stderr on every invoke.
    return structlog.PrintLogger(file=sys.stderr)


def _level_number(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        return logging.WARNING
    return level


def setup_logging(verbose: bool = False, level: str | None = None) -> None:
    """Configure structlog.

    The level is, in order of preference: ``level``, ``debug`` when
    ``verbose`` is set, the MSSQL_TOOL_LOG_LEVEL environment variable,
    then warning. Unknown level names fall back to warning.
    """
    if level is None:
        level = "debug" if verbose else os.environ.get(LOG_LEVEL_ENV, DEFAULT_LEVEL)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
