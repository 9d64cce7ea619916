"""Process-lifetime metrics: counters, gauges and response-time samples."""

import logging
import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from shoptrace.exceptions import InvalidMetricError

logger = logging.getLogger(__name__)

# Counter names reported by the storefront
LOGIN_ATTEMPTS = "login_attempts"
LOGIN_SUCCESS = "login_success"
LOGIN_FAILURES = "login_failures"
LOGOUT_SUCCESS = "logout_success"
PRODUCTS_LOADED = "products_loaded"
PRODUCT_LOAD_ERRORS = "product_load_errors"
PRODUCTS_VIEWED = "products_viewed"
CART_ITEMS_ADDED = "cart_items_added"
CART_ITEMS_REMOVED = "cart_items_removed"
CART_UPDATED = "cart_updated"
CART_ABANDONED = "cart_abandoned"
CHECKOUT_INITIATED = "checkout_initiated"
PAYMENTS_SUCCESSFUL = "payments_successful"
PAYMENTS_FAILED = "payments_failed"
ORDERS_COMPLETED = "orders_completed"

# Gauge names
CART_VALUE = "cart_value"
PRODUCTS_AVAILABLE = "products_available"


def conversion_rate(counters: Mapping[str, int]) -> float:
    viewed = counters.get(PRODUCTS_VIEWED, 0)
    orders = counters.get(ORDERS_COMPLETED, 0)
    return orders / viewed * 100 if viewed > 0 else 0.0


def cart_abandonment_rate(counters: Mapping[str, int]) -> float:
    # Not clamped: goes negative when checkouts outnumber cart updates.
    cart_updates = counters.get(CART_UPDATED, 0)
    checkouts = counters.get(CHECKOUT_INITIATED, 0)
    if cart_updates <= 0:
        return 0.0
    return (cart_updates - checkouts) / cart_updates * 100


def average(samples: List[float]) -> float:
    return sum(samples) / len(samples) if samples else 0.0


@dataclass
class MetricsSnapshot:
    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)
    conversion_rate: float = 0.0
    cart_abandonment_rate: float = 0.0
    avg_response_time_ms: float = 0.0
    response_time_samples: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "counters": dict(self.counters),
            "gauges": dict(self.gauges),
            "conversion_rate": self.conversion_rate,
            "cart_abandonment_rate": self.cart_abandonment_rate,
            "avg_response_time_ms": self.avg_response_time_ms,
        }


class MetricsCollector:
    """
    Aggregates named counters, named gauges and response-time samples.

    A single lock serialises every update and read, so concurrent callers
    never lose an increment. Entries are created on first write and kept
    for the lifetime of the collector.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Counter[str] = Counter()
        self._gauges: Dict[str, float] = {}
        self._response_times_ms: List[float] = []

    def increment_counter(self, name: str) -> int:
        with self._lock:
            self._counters[name] += 1
            value = self._counters[name]
        logger.debug(f"Counter {name}: {value}")
        return value

    def set_gauge(self, name: str, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidMetricError(name, value, "gauge values must be numbers")
        if not math.isfinite(value):
            raise InvalidMetricError(name, value, "gauge values must be finite")
        with self._lock:
            self._gauges[name] = float(value)
        logger.debug(f"Gauge {name}: {value}")

    def record_response_time(self, milliseconds: float) -> None:
        if isinstance(milliseconds, bool) or not isinstance(milliseconds, (int, float)):
            raise InvalidMetricError(
                "response_time_ms", milliseconds, "samples must be numbers"
            )
        if not math.isfinite(milliseconds) or milliseconds < 0:
            raise InvalidMetricError(
                "response_time_ms", milliseconds, "samples must be finite and >= 0"
            )
        with self._lock:
            self._response_times_ms.append(float(milliseconds))
        logger.debug(f"Response time: {milliseconds}ms")

    def counter(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def gauge(self, name: str) -> Optional[float]:
        with self._lock:
            return self._gauges.get(name)

    def conversion_rate(self) -> float:
        """Orders completed per product viewed, as a percentage."""
        with self._lock:
            return conversion_rate(self._counters)

    def cart_abandonment_rate(self) -> float:
        """Share of cart updates that never reached checkout, as a percentage."""
        with self._lock:
            return cart_abandonment_rate(self._counters)

    def average_response_time(self) -> float:
        with self._lock:
            return average(self._response_times_ms)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
            samples = list(self._response_times_ms)
        return MetricsSnapshot(
            counters=counters,
            gauges=gauges,
            conversion_rate=conversion_rate(counters),
            cart_abandonment_rate=cart_abandonment_rate(counters),
            avg_response_time_ms=average(samples),
            response_time_samples=len(samples),
        )
