"""Exception hierarchy for mssql-tool.

All exceptions carry an exit_code for CLI return value mapping.
Database failures additionally carry the elapsed time of the round-trip
that produced them, when one was attempted.
"""

from __future__ import annotations

from mssql_tool.core.exit_codes import ExitCode


class MssqlToolError(Exception):
    """Base exception for all mssql-tool errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PolicyViolationError(MssqlToolError):
    """Query rejected by the read-only gatekeeper."""

    exit_code: int = ExitCode.POLICY_VIOLATION

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class NotFoundError(MssqlToolError):
    """Requested schema/table pair does not exist."""

    exit_code: int = ExitCode.NOT_FOUND


class DatabaseError(MssqlToolError):
    """Engine-side failure such as a syntax or permission error."""

    exit_code: int = ExitCode.DATABASE_ERROR

    def __init__(self, message: str, elapsed_ms: int | None = None) -> None:
        self.elapsed_ms = elapsed_ms
        super().__init__(message)


class NetworkError(DatabaseError):
    """Server unreachable or connection dropped mid-query."""

    exit_code: int = ExitCode.NETWORK_ERROR


class TimeoutError(NetworkError):
    """Round-trip exceeded the statement or login timeout."""

    exit_code: int = ExitCode.TIMEOUT


class SchemaInconsistencyError(MssqlToolError):
    """Catalog returned contradictory metadata for a single table."""

    exit_code: int = ExitCode.SCHEMA_INCONSISTENCY


class InputError(MssqlToolError):
    """Missing or blank query, or a malformed argument."""

    exit_code: int = ExitCode.INPUT_ERROR


class ConfigError(MssqlToolError):
    """Malformed config file or unknown profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
