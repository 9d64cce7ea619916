"""Plays a Scenario against a Storefront, one step at a time."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List

from shoptrace.storefront import Storefront, StorefrontError

from .model import ActionEnum, Scenario, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    index: int
    step: Step
    ok: bool
    message: str = ""

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"


class ScenarioRunner:
    """
    Runs every step of a scenario and records how each one went.

    Simulated business failures (bad credentials, catalog outage, declined
    payment, unknown cart line) become failed outcomes and the run goes on.
    Anything else propagates.
    """

    def __init__(self, storefront: Storefront, sleep: Callable[[float], None] = time.sleep):
        self.storefront = storefront
        self._sleep = sleep

    def run(self, scenario: Scenario) -> List[StepOutcome]:
        logger.info(f"Running scenario '{scenario.name}' ({len(scenario.steps)} steps)")
        outcomes = []
        for index, step in enumerate(scenario.steps, start=1):
            outcome = self.run_step(index, step)
            level = logging.DEBUG if outcome.ok else logging.INFO
            logger.log(
                level,
                f"Step {index} {step.describe()}: {outcome.status}"
                + (f" - {outcome.message}" if outcome.message else ""),
            )
            outcomes.append(outcome)
        failed = sum(1 for outcome in outcomes if not outcome.ok)
        logger.info(
            f"Scenario '{scenario.name}' finished: {len(outcomes) - failed} ok, {failed} failed"
        )
        return outcomes

    def run_step(self, index: int, step: Step) -> StepOutcome:
        try:
            message = self._dispatch(step)
        except KeyError as e:
            return StepOutcome(index, step, False, str(e.args[0]) if e.args else str(e))
        except StorefrontError as e:
            return StepOutcome(index, step, False, str(e))
        return StepOutcome(index, step, True, message or "")

    def _dispatch(self, step: Step):
        shop = self.storefront
        action = step.action

        if action == ActionEnum.login:
            user = shop.login(step.email, step.password)
            if user is None:
                raise StorefrontError("Invalid credentials")
            return f"logged in as {user.name}"
        if action == ActionEnum.logout:
            shop.logout()
        elif action == ActionEnum.load_products:
            return f"{len(shop.load_products())} products"
        elif action == ActionEnum.view_product:
            return shop.view_product(step.product_id).name
        elif action == ActionEnum.add_to_cart:
            return shop.add_to_cart(step.product_id).name
        elif action == ActionEnum.remove_from_cart:
            shop.remove_from_cart(step.product_id)
        elif action == ActionEnum.update_quantity:
            shop.update_quantity(step.product_id, step.quantity)
        elif action == ActionEnum.clear_cart:
            return f"{shop.clear_cart()} line(s) cleared"
        elif action == ActionEnum.view_cart:
            shop.view_cart()
            return f"{len(shop.cart.items)} line(s), total {shop.cart.total:.2f}"
        elif action == ActionEnum.checkout:
            shop.checkout()
        elif action == ActionEnum.pay:
            order = shop.pay()
            return f"order {order.id[:8]} total {order.total:.2f}"
        elif action == ActionEnum.idle:
            self._sleep(step.seconds)
        return None
