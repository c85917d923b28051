"""Shared test fixtures for mssql-tool."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from mssql_tool.cli.main import app
from tests.fakes import FakeClient


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_client():
    """Factory for FakeClient instances with the given rules."""

    def make(rules=None):
        return FakeClient(rules)

    return make


@pytest.fixture(autouse=True)
def isolated_env(request, monkeypatch, tmp_path):
    """Keep host DB_* variables and config files out of unit tests."""
    if request.node.get_closest_marker("integration"):
        return
    for var in (
        "DB_SERVER",
        "DB_PORT",
        "DB_DATABASE",
        "DB_USERNAME",
        "DB_PASSWORD",
        "DB_ENCRYPT",
        "DB_TRUST_SERVER_CERTIFICATE",
        "MSSQL_PROFILE",
        "MSSQL_TOOL_SENTRY_DSN",
        "MSSQL_TOOL_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(
        "mssql_tool.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )
