"""
Tracer and span handles.

A span is started with ``Tracer.start_span`` and must be ended exactly once
with ``SpanHandle.end``; ending hands it to the span processor and the
handle stops accepting changes. ``Tracer.span`` wraps that in a context
manager that also records an escaping exception on the span.

Parent correlation is attribute based. The tracer keeps the current span
in a ``ContextVar``; a span started while another is current inherits its
trace id, links to it through ``parent_span_id`` and carries a
``parent.operation`` attribute naming it. Threads and asyncio tasks each
see their own current span.
"""

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from shoptrace.exceptions import SpanAlreadyEndedError
from shoptrace.telemetry.emitter import NoOpSpanExporter, SimpleSpanProcessor, SpanProcessor
from shoptrace.telemetry.events import (
    Attribute,
    AttributeInput,
    AttributeValue,
    Span,
    SpanEvent,
    SpanKind,
    SpanStatus,
    generate_span_id,
    generate_trace_id,
    now_ns,
    to_attributes,
)

PARENT_OPERATION_KEY = "parent.operation"


class SpanHandle:
    """Mutable view over an in-flight span."""

    def __init__(self, span: Span, processor: SpanProcessor):
        self._span = span
        self._processor = processor
        self._lock = threading.Lock()
        self._recorded: set[int] = set()

    @property
    def name(self) -> str:
        return self._span.name

    @property
    def span(self) -> Span:
        return self._span

    @property
    def span_id(self) -> str:
        return self._span.span_id

    @property
    def trace_id(self) -> str:
        return self._span.trace_id

    @property
    def ended(self) -> bool:
        return self._span.ended

    def _check_open(self, operation: str) -> None:
        if self._span.ended:
            raise SpanAlreadyEndedError(self._span.name, operation)

    def set_attribute(self, key: str, value: AttributeValue) -> "SpanHandle":
        return self.set_attributes([(key, value)])

    def set_attributes(self, pairs: AttributeInput) -> "SpanHandle":
        """Merge attributes into the span; the last write per key wins."""
        attributes = to_attributes(pairs)
        with self._lock:
            self._check_open("set attributes on")
            self._span.merge_attributes(attributes)
        return self

    def add_event(self, name: str, attributes: AttributeInput = None) -> "SpanHandle":
        event = SpanEvent(
            name=name, timestamp_ns=now_ns(), attributes=to_attributes(attributes)
        )
        with self._lock:
            self._check_open("add an event to")
            self._span.events.append(event)
        return self

    def set_status(self, code: SpanStatus, message: str = "") -> "SpanHandle":
        with self._lock:
            self._check_open("set the status of")
            self._span.status = SpanStatus(code)
            self._span.status_message = message if code == SpanStatus.ERROR else ""
        return self

    def record_exception(self, exc: BaseException) -> "SpanHandle":
        """Mark the span as failed and keep the exception as an event."""
        message = str(exc) or type(exc).__name__
        event = SpanEvent(
            name="exception",
            timestamp_ns=now_ns(),
            attributes=[
                Attribute("exception.type", type(exc).__name__),
                Attribute("exception.message", message),
            ],
        )
        with self._lock:
            self._check_open("record an exception on")
            self._span.events.append(event)
            self._span.status = SpanStatus.ERROR
            self._span.status_message = message
            self._recorded.add(id(exc))
        return self

    def has_recorded(self, exc: BaseException) -> bool:
        return id(exc) in self._recorded

    def end(self) -> None:
        """End the span and hand it to the processor.

        Raises SpanAlreadyEndedError on a second call.
        """
        with self._lock:
            self._check_open("end")
            self._span.end_time_ns = now_ns()
        self._processor.on_end(self._span)

    def __repr__(self) -> str:
        state = "ended" if self.ended else "open"
        return f"<SpanHandle {self.name} {self.span_id} {state}>"


class Tracer:
    """
    Creates spans and tracks the current one per execution context.

    Usage:
        tracer = Tracer(SimpleSpanProcessor(ConsoleSpanExporter()))

        with tracer.span("checkout_process") as span:
            span.set_attributes({"order.item_count": 2})
            with tracer.span("payment_processing"):
                ...
    """

    def __init__(self, processor: Optional[SpanProcessor] = None, name: str = "shoptrace"):
        self.name = name
        self.processor = processor or SimpleSpanProcessor(NoOpSpanExporter())
        self._current: ContextVar[Optional[SpanHandle]] = ContextVar(
            f"{name}_current_span", default=None
        )

    def current_span(self) -> Optional[SpanHandle]:
        """The innermost open span entered with ``span`` or ``use_span``."""
        handle = self._current.get()
        if handle is not None and handle.ended:
            return None
        return handle

    def start_span(
        self,
        name: str,
        attributes: AttributeInput = None,
        kind: SpanKind = SpanKind.INTERNAL,
        parent: Optional[SpanHandle] = None,
    ) -> SpanHandle:
        """Start a span; it is not made current (see ``span``/``use_span``)."""
        initial = to_attributes(attributes)
        if parent is None:
            parent = self.current_span()
        elif parent.ended:
            parent = None

        span = Span(
            trace_id=parent.trace_id if parent else generate_trace_id(),
            span_id=generate_span_id(),
            parent_span_id=parent.span_id if parent else None,
            name=name,
            kind=kind,
            start_time_ns=now_ns(),
            status=SpanStatus.OK,
        )
        if parent is not None:
            span.merge_attributes([Attribute(PARENT_OPERATION_KEY, parent.name)])
        span.merge_attributes(initial)
        return SpanHandle(span, self.processor)

    @contextmanager
    def use_span(self, handle: SpanHandle) -> Iterator[SpanHandle]:
        """Make an existing span current without ending it."""
        token = self._current.set(handle)
        try:
            yield handle
        finally:
            self._current.reset(token)

    @contextmanager
    def span(
        self,
        name: str,
        attributes: AttributeInput = None,
        kind: SpanKind = SpanKind.INTERNAL,
    ) -> Iterator[SpanHandle]:
        """Start a current span, record any escaping exception, always end it."""
        handle = self.start_span(name, attributes=attributes, kind=kind)
        token = self._current.set(handle)
        try:
            yield handle
        except BaseException as e:
            if not handle.ended and not handle.has_recorded(e):
                handle.record_exception(e)
            raise
        finally:
            self._current.reset(token)
            if not handle.ended:
                handle.end()

    def force_flush(self, timeout: Optional[float] = None) -> bool:
        return self.processor.force_flush(timeout)

    def shutdown(self) -> None:
        self.processor.shutdown()
