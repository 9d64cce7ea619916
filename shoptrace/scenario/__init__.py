"""Scripted storefront scenarios loaded from YAML."""

from .model import DEFAULT_SCENARIO_YAML, ActionEnum, Scenario, Step, default_scenario
from .runner import ScenarioRunner, StepOutcome

__all__ = [
    "ActionEnum",
    "DEFAULT_SCENARIO_YAML",
    "Scenario",
    "ScenarioRunner",
    "Step",
    "StepOutcome",
    "default_scenario",
]
