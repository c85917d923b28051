"""Tests for the config command group."""

import csv
import io
import json

import pytest

_CONFIG_TOML = """\
default_format = "json"

[profiles.dev]
host = "dev-sql"
database = "devdb"

[profiles.prod]
host = "prod-sql"
user = "svc"
encrypt = false
"""


@pytest.fixture
def config_file(temp_dir):
    path = temp_dir / "config.toml"
    path.write_text(_CONFIG_TOML)
    return path


def _settings(stdout):
    return {row["setting"]: row for row in csv.DictReader(io.StringIO(stdout))}


@pytest.mark.unit
def test_config_show_sources(cli_runner, monkeypatch):
    monkeypatch.setenv("DB_DATABASE", "envdb")
    result = cli_runner(
        "--host", "cli-sql", "--password", "secret", "--no-encrypt", "config", "show"
    )

    assert result.exit_code == 0
    settings = _settings(result.stdout)
    assert settings["host"] == {"setting": "host", "value": "cli-sql", "source": "cli: --host"}
    assert settings["database"]["source"] == "env: DB_DATABASE"
    assert settings["port"]["source"] == "default"
    assert settings["password"]["value"] == "***"
    assert settings["encrypt"]["value"] == "False"
    assert settings["profile"]["source"] == "none"
    assert "secret" not in result.stdout


@pytest.mark.unit
def test_config_show_profile_uses_configured_format(cli_runner, config_file):
    result = cli_runner("--config", str(config_file), "--profile", "dev", "config", "show")

    assert result.exit_code == 0
    settings = {row["setting"]: row for row in json.loads(result.stdout)}
    assert settings["host"]["value"] == "dev-sql"
    assert settings["host"]["source"] == "profile: dev"
    assert settings["profile"]["value"] == "dev"
    assert settings["default_format"]["source"] == "config"


@pytest.mark.unit
def test_config_profiles(cli_runner, config_file):
    result = cli_runner(
        "--config", str(config_file), "--profile", "prod", "-f", "csv", "config", "profiles"
    )

    assert result.exit_code == 0
    rows = list(csv.DictReader(io.StringIO(result.stdout)))
    assert [row["profile"] for row in rows] == ["dev", "prod"]
    assert rows[1]["active"] == "True"
    assert rows[1]["user"] == "svc"
    assert rows[1]["encrypt"] == "False"
    assert rows[0]["user"] == ""


@pytest.mark.unit
def test_config_profiles_empty(cli_runner):
    result = cli_runner("config", "profiles")
    assert result.exit_code == 0
    assert "No profiles configured" in result.output


@pytest.mark.unit
def test_invalid_default_format(cli_runner, temp_dir):
    path = temp_dir / "config.toml"
    path.write_text('default_format = "xml"\n')
    result = cli_runner("--config", str(path), "config", "show")
    assert "Invalid default_format" in str(result.exception)
