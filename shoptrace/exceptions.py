"""
Exception classes for the telemetry engine.
"""


class TelemetryError(Exception):
    """Base exception for all telemetry-related errors."""

    pass


class InvalidAttributeError(TelemetryError, TypeError):
    """Raised when an attribute or metadata value is not a str, int or float."""

    def __init__(self, key: str, value: object):
        self.key = key
        self.value = value
        super().__init__(
            f"Invalid value for attribute '{key}': {value!r} "
            f"({type(value).__name__}). Expected str, int or float."
        )


class SpanAlreadyEndedError(TelemetryError, RuntimeError):
    """Raised when a span is ended twice or modified after it ended."""

    def __init__(self, span_name: str, operation: str = "end"):
        self.span_name = span_name
        self.operation = operation
        super().__init__(
            f"Cannot {operation} span '{span_name}': the span has already ended"
        )


class InvalidMetricError(TelemetryError, ValueError):
    """Raised when a metric sample or gauge value is rejected."""

    def __init__(self, name: str, value: object, reason: str):
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value {value!r} for metric '{name}': {reason}")


class ConfigurationError(TelemetryError):
    """Raised when engine settings cannot be loaded or validated."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        if source:
            super().__init__(f"Invalid configuration in {source}: {message}")
        else:
            super().__init__(f"Invalid configuration: {message}")


class ScenarioError(TelemetryError):
    """Raised when a scenario file cannot be read or validated."""

    def __init__(self, message: str, source: str = ""):
        self.message = message
        self.source = source
        if source:
            super().__init__(f"Invalid scenario {source}: {message}")
        else:
            super().__init__(f"Invalid scenario: {message}")
