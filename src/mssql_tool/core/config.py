"""Configuration management for mssql-tool.

Handles TOML config files, environment variables, named profiles,
and configuration precedence resolution.

Precedence order (highest to lowest):
1. CLI flags (--host, --port, etc.)
2. --dsn flag (parsed into components)
3. Environment variables (DB_SERVER, DB_PORT, DB_DATABASE, DB_USERNAME, ...)
4. Named profile (--profile or MSSQL_PROFILE env var)
5. Config file defaults
6. Built-in defaults
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from pydantic import BaseModel, field_validator, model_validator

from mssql_tool.core.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "mssql-tool" / "config.toml"

DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"

_ENV_VARS: dict[str, str] = {
    "DB_SERVER": "host",
    "DB_PORT": "port",
    "DB_DATABASE": "database",
    "DB_USERNAME": "user",
    "DB_PASSWORD": "password",  # pragma: allowlist secret
    "DB_ENCRYPT": "encrypt",
    "DB_TRUST_SERVER_CERTIFICATE": "trust_server_certificate",
}

_BOOL_FIELDS = frozenset({"encrypt", "trust_server_certificate"})

_FORMATS = ("table", "json", "csv")

_PROFILE_DEFAULTS: dict[str, Any] = {
    "host": "localhost",
    "port": 1433,
    "database": "master",
    "user": None,
    "password": None,
    "encrypt": True,
    "trust_server_certificate": False,
    "driver": DEFAULT_DRIVER,
    "connect_timeout": 15,
    "application_name": "mssql-tool",
}


def parse_bool(value: str) -> bool:
    """Parse a config/env flag. Only 'true'/'false' style values are accepted."""
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    msg = f"Invalid boolean value: '{value}'. Expected true or false"
    raise ConfigError(msg)


def parse_dsn(dsn: str) -> dict[str, Any]:
    """Supports mssql:// and sqlserver:// schemes with query params."""
    parsed = urlparse(dsn)
    if parsed.scheme not in ("mssql", "sqlserver"):
        msg = f"Invalid DSN scheme: '{parsed.scheme}'. Expected 'mssql' or 'sqlserver'"
        raise ConfigError(msg)

    result: dict[str, Any] = {}
    if parsed.hostname:
        result["host"] = parsed.hostname
    if parsed.port:
        result["port"] = parsed.port
    if parsed.path and parsed.path.strip("/"):
        result["database"] = unquote(parsed.path.strip("/"))
    if parsed.username:
        result["user"] = unquote(parsed.username)
    if parsed.password:
        result["password"] = unquote(parsed.password)
    query_params = parse_qs(parsed.query)
    for flag in _BOOL_FIELDS:
        if flag in query_params:
            result[flag] = parse_bool(query_params[flag][0])
    if "driver" in query_params:
        result["driver"] = query_params["driver"][0]
    if "connect_timeout" in query_params:
        result["connect_timeout"] = int(query_params["connect_timeout"][0])
    if "application_name" in query_params:
        result["application_name"] = query_params["application_name"][0]
    return result


class MssqlProfile(BaseModel):
    dsn: str | None = None
    host: str = "localhost"
    port: int = 1433
    database: str = "master"
    user: str | None = None
    password: str | None = None
    encrypt: bool = True
    trust_server_certificate: bool = False
    driver: str = DEFAULT_DRIVER
    connect_timeout: int = 15
    application_name: str = "mssql-tool"

    @model_validator(mode="before")
    @classmethod
    def parse_dsn_into_components(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("dsn"):
            dsn_fields = parse_dsn(data["dsn"])
            for key, value in dsn_fields.items():
                if key not in data:
                    data[key] = value
        return data

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            msg = f"Invalid port: {v}. Must be 1-65535"
            raise ValueError(msg)
        return v


class AppConfig(BaseModel):
    default_timeout: float = 30.0
    default_format: str = "table"
    default_max_rows: int = 100
    default_profile: str | None = None
    profiles: dict[str, MssqlProfile] = {}

    @field_validator("default_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in _FORMATS:
            msg = f"Invalid default_format: '{v}'. Expected one of: {', '.join(_FORMATS)}"
            raise ValueError(msg)
        return v

    @field_validator("default_max_rows")
    @classmethod
    def validate_max_rows(cls, v: int) -> int:
        if v < 1:
            msg = f"Invalid default_max_rows: {v}. Must be positive"
            raise ValueError(msg)
        return v


class ResolvedConfig(BaseModel):
    host: str = "localhost"
    port: int = 1433
    database: str = "master"
    user: str | None = None
    password: str | None = None
    encrypt: bool = True
    trust_server_certificate: bool = False
    driver: str = DEFAULT_DRIVER
    connect_timeout: int = 15
    application_name: str = "mssql-tool"
    default_timeout: float = 30.0
    default_format: str = "table"
    default_max_rows: int = 100
    active_profile: str | None = None
    sources: dict[str, str] = {}


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except ConfigError:
        raise
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def _coerce_env(env_var: str, field_name: str, value: str) -> Any:
    if field_name == "port":
        try:
            return int(value)
        except ValueError:
            msg = f"Invalid {env_var} value: '{value}'. Must be an integer"
            raise ConfigError(msg) from None
    if field_name in _BOOL_FIELDS:
        return parse_bool(value)
    return value


# CLI override name -> ResolvedConfig field.
_CLI_FIELDS: dict[str, str] = {
    "host": "host",
    "port": "port",
    "database": "database",
    "user": "user",
    "password": "password",  # pragma: allowlist secret
    "driver": "driver",
    "encrypt": "encrypt",
    "trust_server_certificate": "trust_server_certificate",
    "timeout": "default_timeout",
    "max_rows": "default_max_rows",
}

_GENERAL_DEFAULTS: dict[str, Any] = {
    "default_timeout": 30.0,
    "default_format": "table",
    "default_max_rows": 100,
}


def _select_profile(config: AppConfig, profile_name: str | None) -> str | None:
    name = profile_name or os.environ.get("MSSQL_PROFILE") or config.default_profile
    if name and name not in config.profiles:
        available = ", ".join(sorted(config.profiles)) or "none"
        msg = f"Unknown profile: '{name}'. Available profiles: {available}"
        raise ConfigError(msg)
    return name or None


def _environment_layer() -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for env_var, field_name in _ENV_VARS.items():
        value = os.environ.get(env_var)
        if value is not None:
            layer[field_name] = (_coerce_env(env_var, field_name, value), f"env: {env_var}")
    return layer


def resolve_config(
    config: AppConfig,
    profile_name: str | None = None,
    dsn: str | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Merge every configuration layer into one ResolvedConfig.

    Layers are applied lowest first: built-ins, config file defaults,
    profile, environment, --dsn, CLI flags. ``sources`` records which
    layer supplied each value.
    """
    resolved: dict[str, Any] = {**_PROFILE_DEFAULTS, **_GENERAL_DEFAULTS}
    sources = dict.fromkeys(resolved, "default")

    def apply(values: dict[str, Any], source: str) -> None:
        for key, value in values.items():
            if key in resolved:
                resolved[key] = value
                sources[key] = source

    configured = config.model_fields_set & _GENERAL_DEFAULTS.keys()
    apply({key: getattr(config, key) for key in configured}, "config")

    active_profile = _select_profile(config, profile_name)
    if active_profile:
        profile = config.profiles[active_profile]
        apply(
            {key: getattr(profile, key) for key in profile.model_fields_set - {"dsn"}},
            f"profile: {active_profile}",
        )

    for field_name, (value, source) in _environment_layer().items():
        apply({field_name: value}, source)

    if dsn:
        apply(parse_dsn(dsn), "dsn")

    for cli_name, field_name in _CLI_FIELDS.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            apply({field_name: value}, f"cli: --{cli_name.replace('_', '-')}")

    return ResolvedConfig(**resolved, active_profile=active_profile, sources=sources)
