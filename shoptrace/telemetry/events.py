"""
Event types and schema for OTLP-compatible telemetry.

This module defines the data structures that map to OpenTelemetry's
trace model: spans, attributes, status, and events. Attribute values are
restricted to three variants (str, int, float); anything else is rejected
when the attribute is built.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Mapping, Optional, Tuple, Union
import math
import time
import uuid

from shoptrace.exceptions import InvalidAttributeError

AttributeValue = Union[str, int, float]

AttributeInput = Union[
    Mapping[str, AttributeValue], Iterable[Tuple[str, AttributeValue]], None
]


class SpanKind(IntEnum):
    """OpenTelemetry span kinds."""

    INTERNAL = 1
    SERVER = 2
    CLIENT = 3
    PRODUCER = 4
    CONSUMER = 5


class SpanStatus(IntEnum):
    """OpenTelemetry span status codes."""

    UNSET = 0  # Pending / not yet determined
    OK = 1  # Completed successfully
    ERROR = 2  # Failed


def validate_attribute_value(key: str, value: object) -> AttributeValue:
    """Return ``value`` if it is a str, int or float, raise otherwise.

    ``bool`` is refused even though it subclasses ``int``.
    """
    if not isinstance(key, str) or not key:
        raise InvalidAttributeError(str(key), value)
    if isinstance(value, bool):
        raise InvalidAttributeError(key, value)
    if isinstance(value, (str, int, float)):
        return value
    raise InvalidAttributeError(key, value)


@dataclass
class Attribute:
    """A key-value attribute for spans."""

    key: str
    value: AttributeValue

    def __post_init__(self):
        validate_attribute_value(self.key, self.value)

    def to_otlp(self) -> dict:
        """Convert to OTLP attribute format."""
        v = self.value
        if isinstance(v, int):
            return {"key": self.key, "value": {"intValue": str(v)}}
        elif isinstance(v, float):
            if math.isfinite(v):
                return {"key": self.key, "value": {"doubleValue": v}}
            # JSON has no literal for nan/inf
            return {"key": self.key, "value": {"stringValue": str(v)}}
        else:
            return {"key": self.key, "value": {"stringValue": v}}


def to_attributes(pairs: AttributeInput) -> list[Attribute]:
    """Normalise a mapping or an iterable of pairs into Attributes.

    Every value is validated before anything is returned, so a bad value
    never produces a partial list.
    """
    if pairs is None:
        return []
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    return [Attribute(key, value) for key, value in items]


@dataclass
class SpanEvent:
    """A timestamped event within a span (e.g., login attempt, error)."""

    name: str
    timestamp_ns: int
    attributes: list[Attribute] = field(default_factory=list)

    def to_otlp(self) -> dict:
        return {
            "timeUnixNano": str(self.timestamp_ns),
            "name": self.name,
            "attributes": [a.to_otlp() for a in self.attributes],
        }


@dataclass
class Span:
    """
    An OTLP-compatible span representing a unit of work.

    In shoptrace, spans represent:
    - Business operations (login, add_to_cart, checkout_process, ...)
    - Nested steps of an operation (payment_processing, order_completion)
    - Individual tracked user actions (user_action)
    """

    trace_id: str
    span_id: str
    parent_span_id: Optional[str]
    name: str
    kind: SpanKind = SpanKind.INTERNAL
    start_time_ns: Optional[int] = None
    end_time_ns: Optional[int] = None
    status: SpanStatus = SpanStatus.OK
    status_message: str = ""
    attributes: list[Attribute] = field(default_factory=list)
    events: list[SpanEvent] = field(default_factory=list)

    @property
    def ended(self) -> bool:
        return self.end_time_ns is not None

    @property
    def duration_ms(self) -> float:
        if self.start_time_ns is None or self.end_time_ns is None:
            return 0.0
        return (self.end_time_ns - self.start_time_ns) / 1_000_000

    def get_attribute(self, key: str) -> Optional[AttributeValue]:
        for attribute in self.attributes:
            if attribute.key == key:
                return attribute.value
        return None

    def attributes_dict(self) -> dict[str, AttributeValue]:
        return {a.key: a.value for a in self.attributes}

    def merge_attributes(self, attributes: list[Attribute]) -> None:
        """Merge attributes in place, last write wins, first-seen order kept."""
        positions = {a.key: i for i, a in enumerate(self.attributes)}
        for attribute in attributes:
            if attribute.key in positions:
                self.attributes[positions[attribute.key]] = attribute
            else:
                positions[attribute.key] = len(self.attributes)
                self.attributes.append(attribute)

    def to_otlp(self) -> dict:
        """Convert to OTLP span format."""
        span = {
            "traceId": self.trace_id,
            "spanId": self.span_id,
            "name": self.name,
            "kind": int(self.kind),
            "status": {
                "code": int(self.status),
            },
            "attributes": [a.to_otlp() for a in self.attributes],
        }

        if self.parent_span_id:
            span["parentSpanId"] = self.parent_span_id

        if self.start_time_ns:
            span["startTimeUnixNano"] = str(self.start_time_ns)

        if self.end_time_ns:
            span["endTimeUnixNano"] = str(self.end_time_ns)

        if self.status_message:
            span["status"]["message"] = self.status_message

        if self.events:
            span["events"] = [e.to_otlp() for e in self.events]

        return span


def generate_trace_id() -> str:
    """Generate a 32-character hex trace ID (16 bytes)."""
    return uuid.uuid4().hex


def generate_span_id() -> str:
    """Generate a 16-character hex span ID (8 bytes)."""
    return uuid.uuid4().hex[:16]


def now_ns() -> int:
    """Current time in nanoseconds since Unix epoch."""
    return time.time_ns()
