"""shoptrace: telemetry and session analytics for an instrumented storefront."""

__version__ = "1.0.0"
