"""Tests for the query and analyze commands."""

import json
from unittest.mock import patch

import pytest

from mssql_tool.core.exceptions import PolicyViolationError
from mssql_tool.core.exit_codes import ExitCode
from tests.fakes import FakeClient, result_set
from tests.integration_config import PROFILE_ARGS

_USERS = result_set(["id", "name"], [(1, "alice"), (2, "bob")])


@pytest.fixture
def client():
    return FakeClient([("FROM users", _USERS)])


@pytest.fixture
def invoke(cli_runner, client):
    def run(*args, **kwargs):
        with (
            patch("mssql_tool.cli.commands.query.MssqlClient", return_value=client),
            patch("mssql_tool.cli.commands.analyze.get_client", return_value=client),
        ):
            return cli_runner(*args, **kwargs)

    return run


@pytest.mark.unit
def test_query_json(invoke, client):
    result = invoke("--format", "json", "query", "-e", "SELECT id, name FROM users")

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [
        {"id": 1, "name": "alice"},
        {"id": 2, "name": "bob"},
    ]
    assert client.queries == ["SELECT TOP 100 id, name FROM users"]


@pytest.mark.unit
def test_query_defaults_to_csv_when_piped(invoke):
    result = invoke("query", "-e", "SELECT id, name FROM users")
    assert result.stdout.splitlines() == ["id,name", "1,alice", "2,bob"]


@pytest.mark.unit
def test_query_uses_configured_default_format(invoke, temp_dir):
    config_path = temp_dir / "config.toml"
    config_path.write_text('default_format = "json"\n')
    result = invoke("--config", str(config_path), "query", "-e", "SELECT id FROM users")
    assert json.loads(result.stdout)[0] == {"id": 1, "name": "alice"}


@pytest.mark.unit
def test_query_max_rows_clamped(invoke, client):
    invoke("query", "-n", "5000", "-e", "SELECT id FROM users")
    assert client.queries == ["SELECT TOP 1000 id FROM users"]


@pytest.mark.unit
def test_query_from_file(invoke, client, temp_dir):
    sql_file = temp_dir / "q.sql"
    sql_file.write_text("SELECT name FROM users")
    result = invoke("query", str(sql_file))
    assert result.exit_code == 0
    assert client.queries == ["SELECT TOP 100 name FROM users"]


@pytest.mark.unit
def test_query_from_stdin(invoke, client):
    result = invoke("query", input="SELECT name FROM users")
    assert result.exit_code == 0
    assert client.queries == ["SELECT TOP 100 name FROM users"]


@pytest.mark.unit
def test_query_empty_stdin(invoke):
    result = invoke("query", input="")
    assert result.exit_code == ExitCode.INPUT_ERROR
    assert "Query is empty." in result.output


@pytest.mark.unit
def test_query_policy_violation_runs_nothing(invoke, client):
    result = invoke("query", "-e", "DELETE FROM users")
    assert isinstance(result.exception, PolicyViolationError)
    assert client.queries == []


@pytest.mark.unit
def test_query_with_plan_json(invoke, client):
    result = invoke("-f", "json", "query", "--plan", "-e", "SELECT id FROM users")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["result"]["row_count"] == 2
    assert payload["execution_plan"] is not None
    assert payload["execution_plan_error"] is None
    assert client.queries_matching("SHOWPLAN_ALL") == [
        "SET SHOWPLAN_ALL ON",
        "SET SHOWPLAN_ALL OFF",
    ]


@pytest.mark.unit
def test_analyze_json(invoke):
    result = invoke("-f", "json", "analyze", "-e", "SELECT * FROM users")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["query"] == "SELECT * FROM users"
    assert payload["statistics"]["logical_reads"] == 0
    assert len(payload["recommendations"]) == 2


@pytest.mark.unit
def test_analyze_csv_rows(invoke):
    result = invoke("analyze", "-e", "SELECT * FROM users")
    lines = result.stdout.splitlines()
    assert lines[0] == "property,value"
    assert lines[1] == "logical_reads,0"
    assert lines[-1].startswith("recommendation,")


# -- Live server --


@pytest.mark.integration
def test_e2e_query_json(runner):
    from mssql_tool.cli.main import app

    result = runner.invoke(app, [*PROFILE_ARGS, "-f", "json", "query", "-e", "SELECT 1 AS id"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == [{"id": 1}]


@pytest.mark.integration
def test_e2e_query_rejects_writes(runner):
    from mssql_tool.cli.main import app

    result = runner.invoke(app, [*PROFILE_ARGS, "query", "-e", "DROP TABLE dbo.x"])
    assert isinstance(result.exception, PolicyViolationError)
