"""CLI command for validating scenario files."""

import sys
from pathlib import Path

import click

from shoptrace.cli.utils.logging import logger
from shoptrace.exceptions import ScenarioError
from shoptrace.scenario import Scenario


@click.command(name="validate")
@click.argument("scenario_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, scenario_file: str):
    """Validate a scenario YAML file.

    Checks:
    - YAML syntax is valid
    - Every step names a known action
    - Each action has the fields it needs (email and password for login,
      product_id for product and cart steps, seconds for idle)
    """
    ctx.ensure_object(dict)
    logger.info(f"Validating scenario: {scenario_file}")

    try:
        scenario = Scenario.from_yaml(Path(scenario_file))
    except ScenarioError as e:
        logger.error(f"Error: {e.message}")
        click.echo(f"Invalid scenario: {scenario_file}", err=True)
        sys.exit(1)

    click.echo(f"Scenario '{scenario.name}' is valid ({len(scenario.steps)} steps).")
