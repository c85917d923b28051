"""Sentry integration for error tracking and round-trip tracing.

Disabled unless MSSQL_TOOL_SENTRY_DSN is set.
"""

import os

import sentry_sdk

from mssql_tool.__about__ import __version__

SENTRY_DSN_ENV = "MSSQL_TOOL_SENTRY_DSN"


def setup_sentry(environment: str = "local") -> bool:
    """Initialize Sentry when a DSN is configured. Returns True if enabled."""
    dsn = os.environ.get(SENTRY_DSN_ENV)
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.03,
        environment=environment,
        release=__version__,
        attach_stacktrace=True,
        send_default_pii=False,
    )
    return True
