"""
Tracing for shoptrace.

Spans follow the OpenTelemetry trace model and are exported when they end,
either as readable console blocks or as OTLP-compatible JSON Lines that can
be piped to OpenTelemetry backends (Aspire Dashboard, Jaeger, etc.).

A checkout produces a hierarchy like:

    checkout_process
    ├── user_action (payment_attempted)
    └── payment_processing
        └── order_completion
            └── user_action (order_completed)

Usage:
    from shoptrace.telemetry import Tracer, SimpleSpanProcessor, ConsoleSpanExporter

    tracer = Tracer(SimpleSpanProcessor(ConsoleSpanExporter()))
    with tracer.span("add_to_cart") as span:
        span.set_attributes({"product.id": "1"})
        span.add_event("new_item_added")
"""

from shoptrace.telemetry.emitter import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    InMemorySpanExporter,
    JsonLinesSpanExporter,
    NoOpSpanExporter,
    Resource,
    SimpleSpanProcessor,
    SpanExporter,
    SpanProcessor,
)
from shoptrace.telemetry.events import Attribute, Span, SpanEvent, SpanKind, SpanStatus
from shoptrace.telemetry.spans import PARENT_OPERATION_KEY, SpanHandle, Tracer

__all__ = [
    "Attribute",
    "BatchSpanProcessor",
    "ConsoleSpanExporter",
    "InMemorySpanExporter",
    "JsonLinesSpanExporter",
    "NoOpSpanExporter",
    "PARENT_OPERATION_KEY",
    "Resource",
    "SimpleSpanProcessor",
    "Span",
    "SpanEvent",
    "SpanExporter",
    "SpanHandle",
    "SpanKind",
    "SpanProcessor",
    "SpanStatus",
    "Tracer",
]
