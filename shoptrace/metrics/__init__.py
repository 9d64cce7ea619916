"""Metrics collection and derived storefront analytics."""

from .collector import (
    CART_ABANDONED,
    CART_ITEMS_ADDED,
    CART_ITEMS_REMOVED,
    CART_UPDATED,
    CART_VALUE,
    CHECKOUT_INITIATED,
    LOGIN_ATTEMPTS,
    LOGIN_FAILURES,
    LOGIN_SUCCESS,
    LOGOUT_SUCCESS,
    ORDERS_COMPLETED,
    PAYMENTS_FAILED,
    PAYMENTS_SUCCESSFUL,
    PRODUCT_LOAD_ERRORS,
    PRODUCTS_AVAILABLE,
    PRODUCTS_LOADED,
    PRODUCTS_VIEWED,
    MetricsCollector,
    MetricsSnapshot,
)

__all__ = [
    "CART_ABANDONED",
    "CART_ITEMS_ADDED",
    "CART_ITEMS_REMOVED",
    "CART_UPDATED",
    "CART_VALUE",
    "CHECKOUT_INITIATED",
    "LOGIN_ATTEMPTS",
    "LOGIN_FAILURES",
    "LOGIN_SUCCESS",
    "LOGOUT_SUCCESS",
    "ORDERS_COMPLETED",
    "PAYMENTS_FAILED",
    "PAYMENTS_SUCCESSFUL",
    "PRODUCT_LOAD_ERRORS",
    "PRODUCTS_AVAILABLE",
    "PRODUCTS_LOADED",
    "PRODUCTS_VIEWED",
    "MetricsCollector",
    "MetricsSnapshot",
]
