"""CLI commands for inspecting configuration."""

import sys
from pathlib import Path

import click
import yaml

from shoptrace.cli.utils.logging import logger
from shoptrace.config import get_config_file, load_settings, set_setting
from shoptrace.exceptions import ConfigurationError


@click.group(name="config")
@click.pass_context
def config(ctx):
    """Inspect shoptrace configuration."""
    ctx.ensure_object(dict)


@config.command("show")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: the user config file).",
)
@click.pass_context
def show(ctx, config_file):
    """Print the effective settings as YAML."""
    path = Path(config_file) if config_file else get_config_file()
    try:
        settings = load_settings(path)
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    click.echo(f"# {path}" + ("" if path.exists() else " (not found, using defaults)"))
    click.echo(
        yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False).rstrip()
    )


@config.command("set")
@click.argument("section")
@click.argument("key")
@click.argument("value")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: the user config file).",
)
@click.pass_context
def set_value(ctx, section, key, value, config_file):
    """Set one value, e.g. ``shoptrace config set session timeout_seconds 120``."""
    path = Path(config_file) if config_file else get_config_file()
    try:
        existed = set_setting(section, key, value, path)
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    click.echo(f"{'Updated' if existed else 'Added'} [{section}] {key} = {value} in {path}")
