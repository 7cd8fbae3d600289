"""Config command group for repo-acp CLI.

Provides configuration management subcommands.
"""

from __future__ import annotations

__all__ = ["config"]

import json
import sys
from pathlib import Path

import click

from repo_acp.config import AppConfig, default_config_path
from repo_acp.exceptions import ConfigurationError

from ..styling import style_error, style_header, style_success

_path_option = click.option(
    "--path",
    "-p",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file to use instead of the default location",
)


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
def config_path_cmd() -> None:
    """Show the default config file path."""
    path = default_config_path()
    click.echo(str(path))
    if not path.exists():
        click.echo("(file does not exist - run 'repo-acp config init' to create)", err=True)


@config.command("init")
@_path_option
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(config_path: Path | None, force: bool) -> None:
    """Write a configuration file with default settings."""
    path = config_path or default_config_path()
    if path.exists() and not force:
        click.echo(style_error(f"Config already exists: {path} (use --force to overwrite)"), err=True)
        sys.exit(1)
    AppConfig().save_to_file(path)
    click.echo(style_success(f"Configuration written: {path}"))


@config.command("show")
@_path_option
def config_show(config_path: Path | None) -> None:
    """Show the effective configuration, defaults included."""
    path = config_path or default_config_path()
    try:
        app_config = AppConfig.load_from_file(path) if path.exists() else AppConfig()
    except ConfigurationError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    click.echo(style_header("Configuration"))
    click.echo(f"Source: {path if path.exists() else '(built-in defaults)'}")
    click.echo(json.dumps(app_config.model_dump(), indent=2))


@config.command("validate")
@_path_option
def config_validate(config_path: Path | None) -> None:
    """Validate a configuration file.

    Exit codes:
        0: Configuration is valid
        1: Configuration is invalid or not found
    """
    path = config_path or default_config_path()
    try:
        AppConfig.load_from_file(path)
    except ConfigurationError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)
    click.echo(style_success(f"Configuration valid: {path}"))
