"""Product catalog loading and product views."""

import logging
import time
from typing import List

from shoptrace.metrics import (
    PRODUCT_LOAD_ERRORS,
    PRODUCTS_AVAILABLE,
    PRODUCTS_LOADED,
    PRODUCTS_VIEWED,
)

from .base import Workflow
from .exceptions import CatalogUnavailableError
from .models import MOCK_PRODUCTS, Product

logger = logging.getLogger(__name__)


class CatalogWorkflow(Workflow):
    def __init__(self, *args, failure_rate: float = 0.1, **kwargs):
        super().__init__(*args, **kwargs)
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self.failure_rate = failure_rate
        self.products: List[Product] = []
        self._requests = 0

    def load_products(self) -> List[Product]:
        """
        Fetch the product list from the simulated API.

        Raises:
            CatalogUnavailableError: when the simulated network call fails.
        """
        with self.tracer.span("fetch_products") as span:
            self._requests += 1
            self.sessions.track_action("product_catalog_viewed")
            span.set_attribute("products.request_count", self._requests)

            started = time.perf_counter()
            self._simulate_latency(500, 1500)

            if self.rng.random() < self.failure_rate:
                error = CatalogUnavailableError()
                span.record_exception(error)
                self.metrics.increment_counter(PRODUCT_LOAD_ERRORS)
                self.sessions.track_action("product_load_error", {"error": str(error)})
                logger.warning(f"Product load failed: {error}")
                raise error

            response_ms = (time.perf_counter() - started) * 1000.0
            self.products = list(MOCK_PRODUCTS)
            self.metrics.record_response_time(response_ms)
            self.metrics.increment_counter(PRODUCTS_LOADED)
            self.metrics.set_gauge(PRODUCTS_AVAILABLE, len(self.products))
            span.set_attributes(
                {
                    "products.loaded_count": len(self.products),
                    "api.response_time_ms": round(response_ms, 3),
                }
            )
            span.add_event("products_loaded_successfully")
            logger.debug(f"Loaded {len(self.products)} products in {response_ms:.1f}ms")
            return list(self.products)

    def view_product(self, product: Product) -> None:
        with self.tracer.span("product_viewed") as span:
            span.set_attributes(
                {
                    "product.id": product.id,
                    "product.name": product.name,
                    "product.price": product.price,
                    "product.category": product.category,
                }
            )
            self.sessions.track_action(
                "product_viewed",
                {
                    "product_id": product.id,
                    "product_name": product.name,
                    "product_price": product.price,
                    "product_category": product.category,
                },
            )
            self.metrics.increment_counter(PRODUCTS_VIEWED)
