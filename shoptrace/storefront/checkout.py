"""Checkout initiation and simulated payment processing."""

import logging
import uuid
from typing import List

from shoptrace.metrics import (
    CHECKOUT_INITIATED,
    ORDERS_COMPLETED,
    PAYMENTS_FAILED,
    PAYMENTS_SUCCESSFUL,
)
from shoptrace.session.models import utcnow

from .base import Workflow
from .exceptions import PaymentDeclinedError
from .models import CartItem, Order

logger = logging.getLogger(__name__)


class CheckoutWorkflow(Workflow):
    def __init__(self, *args, success_rate: float = 0.7, **kwargs):
        super().__init__(*args, **kwargs)
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.success_rate = success_rate

    def initiate(self) -> None:
        with self.tracer.span("checkout_initiated") as span:
            self.sessions.track_action("checkout_initiated")
            span.add_event("checkout_process_started")
            self.metrics.increment_counter(CHECKOUT_INITIATED)

    def process_payment(self, items: List[CartItem], total: float) -> Order:
        """
        Charge ``total`` for ``items`` and place the order.

        Produces the span tree checkout_process > payment_processing >
        order_completion. A declined payment is recorded on both checkout
        spans before it propagates.

        Raises:
            PaymentDeclinedError: when the simulated provider declines.
        """
        with self.tracer.span("checkout_process") as parent:
            self.sessions.track_action(
                "payment_attempted", {"total_amount": total, "item_count": len(items)}
            )
            parent.set_attributes(
                {"order.item_count": len(items), "order.total_amount": total}
            )

            with self.tracer.span("payment_processing") as payment:
                payment.add_event("payment_started")
                self._simulate_latency(1000, 3000)

                if self.rng.random() >= self.success_rate:
                    error = PaymentDeclinedError()
                    self.sessions.track_action(
                        "payment_failed", {"reason": error.reason, "total_amount": total}
                    )
                    payment.record_exception(error)
                    payment.add_event("payment_failed", {"failure.reason": error.reason})
                    self.metrics.increment_counter(PAYMENTS_FAILED)
                    logger.warning(f"Checkout failed: {error}")
                    raise error

                payment.add_event("payment_success")
                self.metrics.increment_counter(PAYMENTS_SUCCESSFUL)

                with self.tracer.span("order_completion") as completion:
                    order = Order(
                        id=str(uuid.uuid4()),
                        items=[CartItem(item.product, item.quantity) for item in items],
                        total=total,
                        timestamp=utcnow(),
                    )
                    self.sessions.track_action(
                        "order_completed",
                        {
                            "order_id": order.id,
                            "order_total": order.total,
                            "item_count": len(order.items),
                        },
                    )
                    completion.set_attributes(
                        {
                            "order.id": order.id,
                            "order.timestamp": order.timestamp.isoformat(),
                        }
                    )
                    completion.add_event("order_placed")
                    self.metrics.increment_counter(ORDERS_COMPLETED)

            logger.info(f"Checkout success - Order ID: {order.id}")
            return order
