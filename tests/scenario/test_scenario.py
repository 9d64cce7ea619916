"""Tests for scenario files and the scenario runner."""

import pytest

from shoptrace.config import StorefrontSettings
from shoptrace.exceptions import ScenarioError
from shoptrace.scenario import (
    ActionEnum,
    Scenario,
    ScenarioRunner,
    default_scenario,
)
from shoptrace.storefront import Storefront

SHOPPING = """
name: shopping
seed: 3
steps:
  - action: login
    email: test@test.com
    password: "123456"
  - action: add_to_cart
    product_id: 1
  - action: idle
    seconds: 2.5
  - action: update_quantity
    product_id: "1"
    quantity: 3
"""


@pytest.mark.short
def test_from_yaml_content():
    scenario = Scenario.from_yaml(SHOPPING)

    assert scenario.name == "shopping"
    assert scenario.seed == 3
    assert [s.action for s in scenario.steps] == [
        ActionEnum.login,
        ActionEnum.add_to_cart,
        ActionEnum.idle,
        ActionEnum.update_quantity,
    ]
    assert scenario.steps[1].product_id == "1"
    assert scenario.steps[2].describe() == "idle(seconds=2.5)"


@pytest.mark.short
def test_from_yaml_file(tmp_path):
    path = tmp_path / "shopping.yaml"
    path.write_text(SHOPPING)

    assert Scenario.from_yaml(path).name == "shopping"


@pytest.mark.short
def test_default_scenario_is_valid():
    scenario = default_scenario()
    assert scenario.name == "default"
    assert scenario.steps[0].action == ActionEnum.login


@pytest.mark.short
@pytest.mark.parametrize(
    "content, message",
    [
        ("name: x\nsteps:\n  - action: dance\n", "action"),
        ("name: x\nsteps:\n  - action: login\n    email: a@b.c\n", "password"),
        ("name: x\nsteps:\n  - action: add_to_cart\n", "product_id"),
        ("name: x\nsteps:\n  - action: idle\n", "seconds"),
        (
            "name: x\nsteps:\n  - action: update_quantity\n    product_id: '1'\n    quantity: 0\n",
            "quantity",
        ),
        ("name: x\nsteps: []\n", "steps"),
        ("- just\n- a list\n", "mapping"),
        ("name: [unclosed\nsteps: []\n", "Invalid YAML"),
    ],
)
def test_invalid_scenarios(content, message):
    with pytest.raises(ScenarioError, match=message):
        Scenario.from_yaml(content)


@pytest.mark.short
def test_missing_file():
    with pytest.raises(ScenarioError, match="Cannot read scenario"):
        Scenario.from_yaml("does-not-exist.yaml")


@pytest.mark.short
def test_runner_records_outcomes(engine, rng):
    slept = []
    shop = Storefront(
        engine, settings=StorefrontSettings(payment_success_rate=0.0), rng=rng
    )
    scenario = Scenario.from_yaml(
        """
name: outcomes
steps:
  - action: login
    email: test@test.com
    password: wrong
  - action: login
    email: test@test.com
    password: "123456"
  - action: remove_from_cart
    product_id: "2"
  - action: pay
  - action: add_to_cart
    product_id: "2"
  - action: view_cart
  - action: checkout
  - action: pay
  - action: idle
    seconds: 1
  - action: clear_cart
  - action: logout
"""
    )

    outcomes = ScenarioRunner(shop, sleep=slept.append).run(scenario)
    shop.shutdown()

    assert [o.status for o in outcomes] == [
        "failed",
        "ok",
        "failed",
        "failed",
        "ok",
        "ok",
        "ok",
        "failed",
        "ok",
        "ok",
        "ok",
    ]
    assert outcomes[0].message == "Invalid credentials"
    assert outcomes[1].message == "logged in as Test User"
    assert "not in the cart" in outcomes[2].message
    assert outcomes[3].message == "Cannot check out an empty cart"
    assert outcomes[7].message == "Payment failed: Card declined"
    assert outcomes[9].message == "1 line(s) cleared"
    assert slept == [1.0]
    assert engine.sessions.current_session is None
