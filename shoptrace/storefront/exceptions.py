"""
Exception classes for the simulated storefront.
"""


class StorefrontError(Exception):
    """Base exception for simulated business failures."""

    pass


class CatalogUnavailableError(StorefrontError):
    """Raised when the simulated product API fails."""

    def __init__(self, message: str = "Network error: Failed to load products"):
        super().__init__(message)


class PaymentDeclinedError(StorefrontError):
    """Raised when the simulated payment provider declines a payment."""

    def __init__(self, reason: str = "card_declined", message: str = "Payment failed: Card declined"):
        self.reason = reason
        super().__init__(message)


class EmptyCartError(StorefrontError):
    """Raised when paying for an empty cart."""

    def __init__(self):
        super().__init__("Cannot check out an empty cart")
