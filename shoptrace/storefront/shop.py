"""The storefront as one object: every workflow over a single engine."""

import logging
import random
import time
from typing import Callable, List, Optional

from shoptrace.config import StorefrontSettings
from shoptrace.engine import TelemetryEngine

from .auth import AuthWorkflow
from .cart import CartWorkflow
from .catalog import CatalogWorkflow
from .checkout import CheckoutWorkflow
from .exceptions import EmptyCartError
from .models import Order, Product, User, find_product

logger = logging.getLogger(__name__)


class Storefront:
    """
    The screens of the demo shop, reduced to method calls.

    Usage:
        with TelemetryEngine(settings) as engine:
            shop = Storefront(engine, rng=random.Random(7))
            shop.login("test@test.com", "123456")
            shop.add_to_cart("1")
            shop.checkout()
            shop.pay()
    """

    def __init__(
        self,
        engine: TelemetryEngine,
        settings: Optional[StorefrontSettings] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.settings = settings or engine.settings.storefront
        self.rng = rng or random.Random()
        common = dict(
            rng=self.rng, sleep=sleep, latency_scale=self.settings.latency_scale
        )
        self.auth = AuthWorkflow(engine, **common)
        self.catalog = CatalogWorkflow(
            engine, failure_rate=self.settings.catalog_failure_rate, **common
        )
        self.cart = CartWorkflow(
            engine, abandonment_seconds=self.settings.cart_abandonment_seconds, **common
        )
        self.checkout_flow = CheckoutWorkflow(
            engine, success_rate=self.settings.payment_success_rate, **common
        )
        self.orders: List[Order] = []

    @property
    def user(self) -> Optional[User]:
        return self.auth.user

    def login(self, email: str, password: str) -> Optional[User]:
        return self.auth.login(email, password)

    def logout(self) -> None:
        self.auth.logout()

    def load_products(self) -> List[Product]:
        return self.catalog.load_products()

    def view_product(self, product_id: str) -> Product:
        product = find_product(product_id)
        self.catalog.view_product(product)
        return product

    def add_to_cart(self, product_id: str) -> Product:
        product = find_product(product_id)
        self.cart.add(product)
        return product

    def remove_from_cart(self, product_id: str) -> None:
        self.cart.remove(product_id)

    def update_quantity(self, product_id: str, quantity: int) -> None:
        self.cart.update_quantity(product_id, quantity)

    def clear_cart(self) -> int:
        return self.cart.clear()

    def view_cart(self) -> None:
        self.engine.sessions.track_action("cart_viewed")

    def checkout(self) -> None:
        self.engine.sessions.track_action("checkout_button_clicked")
        self.checkout_flow.initiate()

    def pay(self) -> Order:
        """
        Pay for the current cart contents; the cart is cleared on success.

        Raises:
            EmptyCartError: if there is nothing to pay for.
            PaymentDeclinedError: if the payment is declined; the cart is kept.
        """
        items = self.cart.items
        if not items:
            raise EmptyCartError()
        order = self.checkout_flow.process_payment(items, self.cart.total)
        self.orders.append(order)
        self.cart.clear()
        return order

    def shutdown(self) -> None:
        self.cart.shutdown()
