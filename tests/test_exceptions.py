"""Tests for the exception hierarchy and exit codes."""

import pytest

from mssql_tool.core.exceptions import (
    ConfigError,
    DatabaseError,
    InputError,
    MssqlToolError,
    NetworkError,
    NotFoundError,
    PolicyViolationError,
    SchemaInconsistencyError,
    TimeoutError,
)
from mssql_tool.core.exit_codes import ExitCode


@pytest.mark.unit
@pytest.mark.parametrize(
    ("exc_class", "code"),
    [
        (MssqlToolError, ExitCode.GENERAL_ERROR),
        (PolicyViolationError, ExitCode.POLICY_VIOLATION),
        (NotFoundError, ExitCode.NOT_FOUND),
        (DatabaseError, ExitCode.DATABASE_ERROR),
        (NetworkError, ExitCode.NETWORK_ERROR),
        (TimeoutError, ExitCode.TIMEOUT),
        (SchemaInconsistencyError, ExitCode.SCHEMA_INCONSISTENCY),
        (InputError, ExitCode.INPUT_ERROR),
        (ConfigError, ExitCode.CONFIG_ERROR),
    ],
)
def test_exit_codes(exc_class, code):
    assert exc_class("boom").exit_code == code


@pytest.mark.unit
def test_exit_code_values_are_distinct():
    values = [code.value for code in ExitCode]
    assert len(values) == len(set(values))
    assert ExitCode.SUCCESS == 0


@pytest.mark.unit
def test_policy_violation_keeps_reason():
    exc = PolicyViolationError("Only SELECT statements and CTEs (WITH clause) are allowed.")
    assert exc.reason == exc.message == str(exc)


@pytest.mark.unit
def test_database_error_elapsed_time():
    assert DatabaseError("x").elapsed_ms is None
    assert DatabaseError("x", 12).elapsed_ms == 12


@pytest.mark.unit
def test_timeout_is_a_database_error():
    exc = TimeoutError("slow", 30000)
    assert isinstance(exc, NetworkError)
    assert isinstance(exc, DatabaseError)
    assert exc.elapsed_ms == 30000
