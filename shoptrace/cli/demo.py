"""CLI command that plays a scenario through the instrumented storefront."""

import random
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shoptrace.cli.utils.logging import logger
from shoptrace.config import ExporterEnum, load_settings
from shoptrace.dashboard import build_dashboard, render_dashboard
from shoptrace.engine import TelemetryEngine
from shoptrace.exceptions import ConfigurationError, ScenarioError
from shoptrace.scenario import Scenario, ScenarioRunner, default_scenario
from shoptrace.storefront import Storefront


def _outcome_table(outcomes) -> Table:
    table = Table(title="Scenario Steps", show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Result")
    table.add_column("Details", overflow="fold")
    for outcome in outcomes:
        status = "[green]ok[/green]" if outcome.ok else "[red]failed[/red]"
        table.add_row(str(outcome.index), outcome.step.describe(), status, outcome.message)
    return table


@click.command(name="demo")
@click.option(
    "--scenario",
    "-s",
    "scenario_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Scenario YAML file (default: built-in scenario).",
)
@click.option("--seed", type=int, default=None, help="Seed for simulated failures.")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: the user config file).",
)
@click.option(
    "--exporter",
    "-e",
    type=click.Choice([e.value for e in ExporterEnum], case_sensitive=False),
    default=None,
    help="Where to write finished spans.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Span output file for the console and jsonl exporters.",
)
@click.option(
    "--dashboard/--no-dashboard",
    default=True,
    help="Show the session and metrics dashboard at the end.",
)
@click.pass_context
def demo(ctx, scenario_file, seed, config_file, exporter, output, dashboard):
    """Run a storefront scenario and report its telemetry.

    Every step goes through the instrumented login, catalog, cart and
    checkout workflows. Spans go to the configured exporter; the
    dashboard summarises sessions and business metrics.
    """
    ctx.ensure_object(dict)

    telemetry = {}
    if exporter is not None:
        telemetry["exporter"] = exporter.lower()
    if output is not None:
        telemetry["output"] = output

    try:
        settings = load_settings(
            Path(config_file) if config_file else None, telemetry=telemetry
        )
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    try:
        if scenario_file:
            scenario = Scenario.from_yaml(Path(scenario_file))
        else:
            scenario = default_scenario()
    except ScenarioError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    if seed is None:
        seed = scenario.seed
    console = Console()

    with TelemetryEngine.from_settings(settings) as engine:
        shop = Storefront(engine, rng=random.Random(seed))
        try:
            outcomes = ScenarioRunner(shop).run(scenario)
        finally:
            shop.shutdown()
        engine.flush()

        console.print(_outcome_table(outcomes))
        if dashboard:
            render_dashboard(build_dashboard(engine.sessions, engine.metrics), console)

    if settings.telemetry.output is not None:
        logger.info(f"Spans written to: {settings.telemetry.output}")
