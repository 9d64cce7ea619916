"""Pydantic model of scripted storefront scenarios."""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from shoptrace.exceptions import ScenarioError


class ActionEnum(str, Enum):
    """What a scenario step does."""

    login = "login"
    logout = "logout"
    load_products = "load_products"
    view_product = "view_product"
    add_to_cart = "add_to_cart"
    remove_from_cart = "remove_from_cart"
    update_quantity = "update_quantity"
    clear_cart = "clear_cart"
    view_cart = "view_cart"
    checkout = "checkout"
    pay = "pay"
    idle = "idle"


_REQUIRED_FIELDS = {
    ActionEnum.login: ("email", "password"),
    ActionEnum.view_product: ("product_id",),
    ActionEnum.add_to_cart: ("product_id",),
    ActionEnum.remove_from_cart: ("product_id",),
    ActionEnum.update_quantity: ("product_id", "quantity"),
    ActionEnum.idle: ("seconds",),
}


class Step(BaseModel):
    """One user interaction."""

    action: ActionEnum = Field(..., description="Interaction to perform")
    email: Optional[str] = Field(None, description="Login email")
    password: Optional[str] = Field(None, description="Login password")
    product_id: Optional[str] = Field(None, description="Catalog product id")
    quantity: Optional[int] = Field(None, ge=1, description="New cart quantity")
    seconds: Optional[float] = Field(None, ge=0, description="Idle time")

    @field_validator("product_id", mode="before")
    @classmethod
    def coerce_product_id(cls, v):
        # YAML reads `product_id: 1` as an int
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def validate_required_fields(self) -> "Step":
        missing = [
            name
            for name in _REQUIRED_FIELDS.get(self.action, ())
            if getattr(self, name) is None
        ]
        if missing:
            raise ValueError(
                f"action '{self.action.value}' requires: {', '.join(missing)}"
            )
        return self

    def describe(self) -> str:
        details = [
            f"{name}={getattr(self, name)}"
            for name in ("email", "product_id", "quantity", "seconds")
            if getattr(self, name) is not None
        ]
        return f"{self.action.value}({', '.join(details)})"


class Scenario(BaseModel):
    """A named, optionally seeded list of steps."""

    name: str = Field(..., description="Scenario name")
    description: Optional[str] = Field(None, description="What the scenario shows")
    seed: Optional[int] = Field(None, description="Seed for simulated failures")
    steps: List[Step] = Field(..., min_length=1, description="Steps to run in order")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @classmethod
    def from_yaml(cls, path_or_content: Union[str, Path]) -> "Scenario":
        """
        Load a scenario from a YAML file or string content.

        Raises:
            ScenarioError: if the file is missing, is not YAML, or fails validation.
        """
        source = ""
        try:
            if isinstance(path_or_content, Path) or "\n" not in str(path_or_content):
                # Treat as file path
                source = str(path_or_content)
                with open(path_or_content, "r") as f:
                    data = yaml.safe_load(f)
            else:
                data = yaml.safe_load(str(path_or_content))
        except OSError as e:
            raise ScenarioError(f"Cannot read scenario: {e}", source=source) from e
        except yaml.YAMLError as e:
            raise ScenarioError(f"Invalid YAML: {e}", source=source) from e

        if not isinstance(data, dict):
            raise ScenarioError("Scenario must be a YAML mapping", source=source)

        try:
            return cls(**data)
        except ValidationError as e:
            raise ScenarioError(str(e), source=source) from e

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(mode="json", exclude_none=True), sort_keys=False
        )


DEFAULT_SCENARIO_YAML = """\
name: default
description: Two shoppers, a failed login, a cart change and a checkout each
seed: 7
steps:
  - action: login
    email: test@test.com
    password: wrong
  - action: login
    email: test@test.com
    password: "123456"
  - action: load_products
  - action: view_product
    product_id: "1"
  - action: add_to_cart
    product_id: "1"
  - action: view_product
    product_id: "4"
  - action: add_to_cart
    product_id: "4"
  - action: update_quantity
    product_id: "4"
    quantity: 2
  - action: view_cart
  - action: checkout
  - action: pay
  - action: logout
  - action: login
    email: sarah@example.com
    password: sarah2024
  - action: load_products
  - action: view_product
    product_id: "3"
  - action: add_to_cart
    product_id: "3"
  - action: add_to_cart
    product_id: "6"
  - action: remove_from_cart
    product_id: "6"
  - action: checkout
  - action: pay
  - action: logout
"""


def default_scenario() -> Scenario:
    return Scenario.from_yaml(DEFAULT_SCENARIO_YAML)
