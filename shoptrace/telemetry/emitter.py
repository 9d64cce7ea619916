"""
Span exporters and span processors.

Exporters decide *where* finished spans go:
- ConsoleSpanExporter writes a human-readable block per span
- JsonLinesSpanExporter writes OTLP-compatible JSON Lines (NDJSON) that can
  be piped to an OTLP collector or kept as a .jsonl file
- InMemorySpanExporter keeps spans in a list for inspection

Processors decide *when* they go. SimpleSpanProcessor exports as soon as a
span ends; BatchSpanProcessor hands spans to a background worker so ending
a span never waits on the sink. Neither lets an exporter failure escape
into the code that ended the span.
"""

import json
import logging
import platform
import queue
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, List, Optional, Sequence, Union

from shoptrace.telemetry.events import Attribute, Span, SpanStatus

logger = logging.getLogger(__name__)

SCOPE_NAME = "shoptrace.telemetry"
SCOPE_VERSION = "1.0.0"


@dataclass
class Resource:
    """Attributes describing the process that produced the spans."""

    attributes: List[Attribute] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        service_name: str = "ecommerce-poc",
        service_version: str = "1.0.0",
        environment: str = "development",
        app_name: str = "E-Commerce POC",
    ) -> "Resource":
        return cls(
            attributes=[
                Attribute("service.name", service_name),
                Attribute("service.version", service_version),
                Attribute("deployment.environment", environment),
                Attribute("device.platform", platform.system() or "unknown"),
                Attribute("app.name", app_name),
            ]
        )

    def get(self, key: str):
        for attribute in self.attributes:
            if attribute.key == key:
                return attribute.value
        return None

    def to_otlp(self) -> dict:
        return {"attributes": [a.to_otlp() for a in self.attributes]}


class SpanExporter:
    """Destination for finished spans."""

    def export(self, spans: Sequence[Span]) -> None:
        raise NotImplementedError

    def shutdown(self) -> None:
        """Release any resources held by the exporter."""


class _StreamExporter(SpanExporter):
    """Shared handling for exporters writing to a stream or a file path."""

    def __init__(self, output: Union[IO, Path, str, None] = None):
        if output is None:
            self._file_handle: IO = sys.stdout
            self._owns_handle = False
        elif isinstance(output, (str, Path)):
            path = Path(output)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(path, "w")
            self._owns_handle = True
        else:
            self._file_handle = output
            self._owns_handle = False
        self._lock = threading.Lock()

    def _write(self, text: str) -> None:
        with self._lock:
            self._file_handle.write(text)
            self._file_handle.flush()

    def shutdown(self) -> None:
        """Close the output file if we own it."""
        with self._lock:
            if self._owns_handle and not self._file_handle.closed:
                self._file_handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()


def _format_value(value) -> str:
    if isinstance(value, str):
        return repr(value)
    return str(value)


def format_span(span: Span, resource: Optional[Resource] = None) -> str:
    """Render a finished span as a readable, stable text block."""
    lines = [f"span {span.name}"]
    lines.append(f"  trace_id: {span.trace_id}")
    lines.append(f"  span_id: {span.span_id}")
    if span.parent_span_id:
        lines.append(f"  parent_span_id: {span.parent_span_id}")
    if resource is not None:
        service = resource.get("service.name")
        if service:
            lines.append(f"  service: {service}")
    lines.append(f"  duration_ms: {span.duration_ms:.3f}")
    status = span.status.name
    if span.status_message:
        status += f" ({span.status_message})"
    lines.append(f"  status: {status}")
    if span.attributes:
        lines.append("  attributes:")
        for attribute in span.attributes:
            lines.append(f"    {attribute.key} = {_format_value(attribute.value)}")
    if span.events:
        lines.append("  events:")
        for event in span.events:
            offset_ms = (event.timestamp_ns - (span.start_time_ns or 0)) / 1_000_000
            line = f"    +{offset_ms:.3f}ms {event.name}"
            if event.attributes:
                rendered = ", ".join(
                    f"{a.key}={_format_value(a.value)}" for a in event.attributes
                )
                line += f" {{{rendered}}}"
            lines.append(line)
    return "\n".join(lines) + "\n"


class ConsoleSpanExporter(_StreamExporter):
    """Writes a readable block per span, like a console exporter would."""

    def __init__(
        self,
        output: Union[IO, Path, str, None] = None,
        resource: Optional[Resource] = None,
    ):
        super().__init__(output)
        self.resource = resource

    def export(self, spans: Sequence[Span]) -> None:
        self._write("".join(format_span(span, self.resource) for span in spans))


class JsonLinesSpanExporter(_StreamExporter):
    """
    Emits OTLP-compatible telemetry as JSON Lines.

    Each exported span becomes one ``resourceSpans`` document on its own line,
    so the output can be streamed into a relay or collector.
    """

    def __init__(
        self,
        output: Union[IO, Path, str, None] = None,
        resource: Optional[Resource] = None,
    ):
        super().__init__(output)
        self.resource = resource or Resource.create()

    def _traces_data(self, span: Span) -> dict:
        return {
            "resourceSpans": [
                {
                    "resource": self.resource.to_otlp(),
                    "scopeSpans": [
                        {
                            "scope": {
                                "name": SCOPE_NAME,
                                "version": SCOPE_VERSION,
                            },
                            "spans": [span.to_otlp()],
                        }
                    ],
                }
            ]
        }

    def export(self, spans: Sequence[Span]) -> None:
        lines = [
            json.dumps(self._traces_data(span), separators=(",", ":"))
            for span in spans
        ]
        if lines:
            self._write("\n".join(lines) + "\n")


class InMemorySpanExporter(SpanExporter):
    """Keeps finished spans in memory."""

    def __init__(self):
        self._spans: List[Span] = []
        self._lock = threading.Lock()

    def export(self, spans: Sequence[Span]) -> None:
        with self._lock:
            self._spans.extend(spans)

    @property
    def spans(self) -> List[Span]:
        with self._lock:
            return list(self._spans)

    def find(self, name: str) -> List[Span]:
        return [span for span in self.spans if span.name == name]

    def errors(self) -> List[Span]:
        return [span for span in self.spans if span.status == SpanStatus.ERROR]

    def clear(self) -> None:
        with self._lock:
            self._spans.clear()


class NoOpSpanExporter(SpanExporter):
    """Discards every span."""

    def export(self, spans: Sequence[Span]) -> None:
        return None


class SpanProcessor:
    """Receives spans from the tracer once they have ended."""

    def on_end(self, span: Span) -> None:
        raise NotImplementedError

    def force_flush(self, timeout: Optional[float] = None) -> bool:
        return True

    def shutdown(self) -> None:
        """Flush and release the exporter."""


class SimpleSpanProcessor(SpanProcessor):
    """Exports each span synchronously when it ends."""

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter
        self._shutdown = False

    def on_end(self, span: Span) -> None:
        if self._shutdown:
            logger.debug(f"Processor shut down; dropping span {span.name}")
            return
        try:
            self.exporter.export([span])
        except Exception as e:
            logger.error(f"Failed to export span {span.name}: {e}")

    def shutdown(self) -> None:
        if self._shutdown:
            return
        self._shutdown = True
        self.exporter.shutdown()


class _FlushRequest:
    def __init__(self):
        self.done = threading.Event()


_STOP = object()


class BatchSpanProcessor(SpanProcessor):
    """
    Buffers finished spans and exports them from one background thread.

    The queue is bounded; when it is full, new spans are dropped and counted
    rather than blocking the caller.
    """

    def __init__(
        self,
        exporter: SpanExporter,
        max_queue_size: int = 2048,
        max_export_batch_size: int = 64,
        schedule_delay: float = 0.5,
    ):
        if max_queue_size <= 0:
            raise ValueError("max_queue_size must be positive")
        self.exporter = exporter
        self.max_export_batch_size = max_export_batch_size
        self.schedule_delay = schedule_delay
        self.dropped_spans = 0
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_queue_size)
        self._shutdown = False
        self._shutdown_lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run, name="shoptrace-span-export", daemon=True
        )
        self._worker.start()

    def on_end(self, span: Span) -> None:
        if self._shutdown:
            logger.debug(f"Processor shut down; dropping span {span.name}")
            return
        try:
            self._queue.put_nowait(span)
        except queue.Full:
            self.dropped_spans += 1
            logger.warning(
                f"Span export queue is full; dropped span {span.name} "
                f"({self.dropped_spans} dropped so far)"
            )

    def _export_batch(self, batch: List[Span]) -> None:
        if not batch:
            return
        try:
            self.exporter.export(batch)
        except Exception as e:
            logger.error(f"Failed to export {len(batch)} span(s): {e}")
        finally:
            batch.clear()

    def _run(self) -> None:
        batch: List[Span] = []
        while True:
            try:
                item = self._queue.get(timeout=self.schedule_delay)
            except queue.Empty:
                self._export_batch(batch)
                continue

            if item is _STOP:
                self._export_batch(batch)
                return
            if isinstance(item, _FlushRequest):
                self._export_batch(batch)
                item.done.set()
                continue

            batch.append(item)
            if len(batch) >= self.max_export_batch_size:
                self._export_batch(batch)

    def force_flush(self, timeout: Optional[float] = None) -> bool:
        """Export everything queued so far; False if the timeout elapsed."""
        if self._shutdown or not self._worker.is_alive():
            return True
        request = _FlushRequest()
        try:
            self._queue.put(request, timeout=timeout)
        except queue.Full:
            return False
        return request.done.wait(timeout)

    def shutdown(self) -> None:
        with self._shutdown_lock:
            if self._shutdown:
                return
            self._shutdown = True
        self._queue.put(_STOP)
        self._worker.join()
        self.exporter.shutdown()
