"""Simulated storefront workflows instrumented with the telemetry engine."""

from .auth import AuthWorkflow
from .cart import CartWorkflow
from .catalog import CatalogWorkflow
from .checkout import CheckoutWorkflow
from .exceptions import (
    CatalogUnavailableError,
    EmptyCartError,
    PaymentDeclinedError,
    StorefrontError,
)
from .models import (
    DEMO_ACCOUNTS,
    MOCK_PRODUCTS,
    CartItem,
    Order,
    Product,
    User,
    find_product,
)
from .shop import Storefront

__all__ = [
    "AuthWorkflow",
    "CartItem",
    "CartWorkflow",
    "CatalogUnavailableError",
    "CatalogWorkflow",
    "CheckoutWorkflow",
    "DEMO_ACCOUNTS",
    "EmptyCartError",
    "MOCK_PRODUCTS",
    "Order",
    "PaymentDeclinedError",
    "Product",
    "Storefront",
    "StorefrontError",
    "User",
    "find_product",
]
