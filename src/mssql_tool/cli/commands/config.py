"""config command group: inspect resolved settings and profiles."""

from __future__ import annotations

from typing import Any

import typer

from mssql_tool.cli.commands._shared import get_config, output_records
from mssql_tool.core import config as config_module

config_app = typer.Typer(help="Inspect connection settings and profiles")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _config_path(ctx: typer.Context) -> Any:
    return ctx.obj.get("config_file") or config_module.DEFAULT_CONFIG_PATH


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show each resolved setting with the layer it came from.

    The password is never printed.
    """
    resolved = get_config(ctx)
    settings = [
        ("host", resolved.host),
        ("port", resolved.port),
        ("database", resolved.database),
        ("user", resolved.user),
        ("password", None if resolved.password is None else "***"),
        ("encrypt", resolved.encrypt),
        ("trust_server_certificate", resolved.trust_server_certificate),
        ("driver", resolved.driver),
        ("connect_timeout", resolved.connect_timeout),
        ("application_name", resolved.application_name),
        ("default_timeout", resolved.default_timeout),
        ("default_max_rows", resolved.default_max_rows),
        ("default_format", resolved.default_format),
    ]
    rows = [
        {"setting": name, "value": value, "source": resolved.sources.get(name, "default")}
        for name, value in settings
    ]
    rows.append(
        {
            "setting": "profile",
            "value": resolved.active_profile,
            "source": "active" if resolved.active_profile else "none",
        }
    )
    rows.append({"setting": "config_file", "value": str(_config_path(ctx)), "source": "path"})
    output_records(ctx, ["setting", "value", "source"], rows)


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List connection profiles from the config file."""
    app_config = config_module.load_config(ctx.obj.get("config_file"))
    if not app_config.profiles:
        typer.echo(f"No profiles configured in {_config_path(ctx)}", err=True)
        return

    active = ctx.obj.get("profile") or app_config.default_profile
    output_records(
        ctx,
        ["profile", "host", "port", "database", "user", "encrypt", "active"],
        [
            {
                "profile": name,
                "host": profile.host,
                "port": profile.port,
                "database": profile.database,
                "user": profile.user,
                "encrypt": profile.encrypt,
                "active": name == active,
            }
            for name, profile in sorted(app_config.profiles.items())
        ],
    )
