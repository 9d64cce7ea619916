"""Shopping cart with an abandonment timer."""

import logging
import threading
from typing import List

from shoptrace.metrics import (
    CART_ABANDONED,
    CART_ITEMS_ADDED,
    CART_ITEMS_REMOVED,
    CART_UPDATED,
    CART_VALUE,
)
from shoptrace.session import InactivityTimer

from .base import Workflow
from .models import CartItem, Product

logger = logging.getLogger(__name__)

DEFAULT_ABANDONMENT_SECONDS = 300.0


class CartWorkflow(Workflow):
    """
    Cart contents plus the instrumentation around every change.

    Adding an item (re)starts the abandonment timer; clearing the cart
    stops it. When the timer runs out the cart is reported as abandoned,
    but its contents are kept.
    """

    def __init__(self, *args, abandonment_seconds: float = DEFAULT_ABANDONMENT_SECONDS, **kwargs):
        super().__init__(*args, **kwargs)
        self._lock = threading.RLock()
        self._items: List[CartItem] = []
        self._abandonment = InactivityTimer(
            abandonment_seconds,
            self._on_abandoned,
            lock=self._lock,
            name="shoptrace-cart-abandonment",
        )

    @property
    def items(self) -> List[CartItem]:
        with self._lock:
            return [CartItem(item.product, item.quantity) for item in self._items]

    @property
    def total(self) -> float:
        with self._lock:
            return self._total_locked()

    @property
    def abandonment_armed(self) -> bool:
        return self._abandonment.armed

    def add(self, product: Product) -> None:
        with self._lock, self.tracer.span("add_to_cart") as span:
            self.sessions.track_action(
                "add_to_cart",
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_price": product.price,
                },
            )
            span.set_attributes(
                {
                    "product.id": product.id,
                    "product.name": product.name,
                    "product.price": product.price,
                }
            )

            existing = self._find_locked(product.id)
            if existing is not None:
                existing.quantity += 1
                span.add_event("quantity_updated")
            else:
                self._items.append(CartItem(product))
                span.add_event("new_item_added")

            total = self._total_locked()
            span.set_attributes(
                {"cart.item_count": len(self._items), "cart.total_value": total}
            )
            self.metrics.increment_counter(CART_ITEMS_ADDED)
            self.metrics.set_gauge(CART_VALUE, total)
            self.metrics.increment_counter(CART_UPDATED)
            span.add_event("cart_updated")

            self._abandonment.arm()

    def remove(self, product_id: str) -> None:
        """Remove a line from the cart; KeyError if it is not there."""
        with self._lock, self.tracer.span("remove_from_cart") as span:
            item = self._find_locked(product_id)
            if item is None:
                raise KeyError(f"Product {product_id} is not in the cart")

            self.sessions.track_action(
                "remove_from_cart",
                {"product_id": item.product.id, "product_name": item.product.name},
            )
            self._items.remove(item)
            total = self._total_locked()

            span.set_attributes(
                {
                    "product.id": product_id,
                    "cart.remaining_items": len(self._items),
                    "cart.total_value": total,
                }
            )
            self.metrics.increment_counter(CART_ITEMS_REMOVED)
            self.metrics.set_gauge(CART_VALUE, total)
            span.add_event("item_removed_from_cart")

    def update_quantity(self, product_id: str, quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f"quantity must be a positive integer, got {quantity!r}")

        with self._lock, self.tracer.span("update_cart_quantity") as span:
            item = self._find_locked(product_id)
            if item is None:
                raise KeyError(f"Product {product_id} is not in the cart")

            old_quantity = item.quantity
            item.quantity = quantity
            self.sessions.track_action(
                "cart_quantity_updated",
                {
                    "product_id": item.product.id,
                    "product_name": item.product.name,
                    "old_quantity": old_quantity,
                    "new_quantity": quantity,
                },
            )
            total = self._total_locked()
            span.set_attributes(
                {
                    "product.id": product_id,
                    "quantity.old": old_quantity,
                    "quantity.new": quantity,
                    "cart.total_value": total,
                }
            )
            self.metrics.set_gauge(CART_VALUE, total)
            span.add_event("quantity_updated")

    def clear(self) -> int:
        """Empty the cart and stop the abandonment timer; returns the cleared line count."""
        with self._lock, self.tracer.span("clear_cart") as span:
            count = len(self._items)
            self._items.clear()
            self._abandonment.cancel()

            self.sessions.track_action("cart_cleared", {"items_cleared": count})
            span.set_attribute("items.cleared", count)
            self.metrics.set_gauge(CART_VALUE, 0.0)
            span.add_event("cart_cleared")
            return count

    def shutdown(self) -> None:
        self._abandonment.cancel()

    def _find_locked(self, product_id: str):
        for item in self._items:
            if item.product.id == product_id:
                return item
        return None

    def _total_locked(self) -> float:
        return sum(item.subtotal for item in self._items)

    def _on_abandoned(self) -> None:
        # Runs under self._lock via InactivityTimer
        count = len(self._items)
        value = self._total_locked()
        logger.info(f"Cart abandoned with {count} item(s) worth {value:.2f}")
        with self.tracer.span("cart_abandoned") as span:
            self.sessions.track_action(
                "cart_abandoned", {"abandoned_items": count, "abandoned_value": value}
            )
            span.set_attributes(
                {"cart.abandoned_items": count, "cart.abandoned_value": value}
            )
            span.add_event("cart_abandoned")
            self.metrics.increment_counter(CART_ABANDONED)
