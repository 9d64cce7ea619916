"""Tests for span exporters and processors."""

import io
import json
import threading
import time

import pytest

from shoptrace.telemetry import (
    Attribute,
    BatchSpanProcessor,
    ConsoleSpanExporter,
    InMemorySpanExporter,
    JsonLinesSpanExporter,
    Resource,
    SimpleSpanProcessor,
    Span,
    SpanExporter,
    SpanStatus,
    Tracer,
)
from shoptrace.telemetry.emitter import format_span


class FailingExporter(SpanExporter):
    def __init__(self):
        self.calls = 0

    def export(self, spans):
        self.calls += 1
        raise OSError("collector unreachable")


class BlockingExporter(InMemorySpanExporter):
    """Holds the export thread until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def export(self, spans):
        self.release.wait(timeout=5)
        super().export(spans)


def _finished_span(**kwargs) -> Span:
    defaults = dict(
        trace_id="a" * 32,
        span_id="b" * 16,
        parent_span_id=None,
        name="add_to_cart",
        start_time_ns=1_000_000_000,
        end_time_ns=1_002_500_000,
    )
    defaults.update(kwargs)
    return Span(**defaults)


@pytest.mark.short
def test_resource_attributes():
    resource = Resource.create(service_name="shop", environment="test")

    assert resource.get("service.name") == "shop"
    assert resource.get("service.version") == "1.0.0"
    assert resource.get("deployment.environment") == "test"
    assert resource.get("app.name") == "E-Commerce POC"
    assert resource.get("device.platform")


@pytest.mark.short
def test_jsonl_exporter_writes_one_otlp_document_per_span():
    stream = io.StringIO()
    exporter = JsonLinesSpanExporter(stream, resource=Resource.create())
    span = _finished_span(
        parent_span_id="c" * 16,
        attributes=[
            Attribute("product.id", "1"),
            Attribute("cart.item_count", 2),
            Attribute("cart.total_value", 19.99),
        ],
        status=SpanStatus.ERROR,
        status_message="Card declined",
    )

    exporter.export([span, _finished_span(name="clear_cart")])

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    document = json.loads(lines[0])
    [resource_spans] = document["resourceSpans"]
    assert {"key": "service.name", "value": {"stringValue": "ecommerce-poc"}} in (
        resource_spans["resource"]["attributes"]
    )
    [scope_spans] = resource_spans["scopeSpans"]
    assert scope_spans["scope"]["name"] == "shoptrace.telemetry"
    [otlp] = scope_spans["spans"]
    assert otlp["name"] == "add_to_cart"
    assert otlp["parentSpanId"] == "c" * 16
    assert otlp["status"] == {"code": 2, "message": "Card declined"}
    assert otlp["startTimeUnixNano"] == "1000000000"
    assert otlp["attributes"] == [
        {"key": "product.id", "value": {"stringValue": "1"}},
        {"key": "cart.item_count", "value": {"intValue": "2"}},
        {"key": "cart.total_value", "value": {"doubleValue": 19.99}},
    ]


@pytest.mark.short
def test_jsonl_exporter_owns_files_it_opens(tmp_path):
    path = tmp_path / "traces" / "spans.jsonl"
    exporter = JsonLinesSpanExporter(path)
    exporter.export([_finished_span()])
    exporter.shutdown()

    assert json.loads(path.read_text())["resourceSpans"][0]["scopeSpans"]


@pytest.mark.short
def test_console_exporter_format():
    span = _finished_span(attributes=[Attribute("product.id", "1")])
    text = format_span(span, Resource.create(service_name="shop"))

    assert text.startswith("span add_to_cart\n")
    assert "  service: shop\n" in text
    assert "  duration_ms: 2.500\n" in text
    assert "  status: OK\n" in text
    assert "    product.id = '1'\n" in text

    stream = io.StringIO()
    ConsoleSpanExporter(stream).export([span])
    assert stream.getvalue() == format_span(span)


@pytest.mark.short
def test_simple_processor_swallows_export_errors(capture_logs):
    exporter = FailingExporter()
    tracer = Tracer(SimpleSpanProcessor(exporter))

    with tracer.span("fetch_products"):
        pass

    assert exporter.calls == 1
    assert "Failed to export span fetch_products" in capture_logs.getvalue()


@pytest.mark.short
def test_simple_processor_drops_spans_after_shutdown():
    exporter = InMemorySpanExporter()
    processor = SimpleSpanProcessor(exporter)
    processor.shutdown()
    processor.on_end(_finished_span())

    assert exporter.spans == []


@pytest.mark.short
@pytest.mark.timeout(10)
def test_batch_processor_flush_exports_everything():
    exporter = InMemorySpanExporter()
    processor = BatchSpanProcessor(exporter, max_export_batch_size=4, schedule_delay=5)
    tracer = Tracer(processor)

    for i in range(10):
        with tracer.span(f"span-{i}"):
            pass

    assert processor.force_flush(timeout=5) is True
    assert [s.name for s in exporter.spans] == [f"span-{i}" for i in range(10)]
    processor.shutdown()


@pytest.mark.short
@pytest.mark.timeout(10)
def test_batch_processor_drops_when_queue_is_full(capture_logs):
    exporter = BlockingExporter()
    processor = BatchSpanProcessor(exporter, max_queue_size=2, max_export_batch_size=1)

    # The worker takes the first span and blocks in export; two more fill the queue
    processor.on_end(_finished_span(name="first"))
    while processor._queue.qsize():
        time.sleep(0.01)
    processor.on_end(_finished_span(name="second"))
    processor.on_end(_finished_span(name="third"))
    processor.on_end(_finished_span(name="dropped"))

    assert processor.dropped_spans == 1
    assert "dropped span dropped" in capture_logs.getvalue()

    exporter.release.set()
    processor.shutdown()
    assert [s.name for s in exporter.spans] == ["first", "second", "third"]


@pytest.mark.short
@pytest.mark.timeout(10)
def test_batch_processor_shutdown_is_idempotent_and_logs_export_errors(capture_logs):
    exporter = FailingExporter()
    processor = BatchSpanProcessor(exporter)
    processor.on_end(_finished_span())

    processor.shutdown()
    processor.shutdown()

    assert exporter.calls == 1
    assert "Failed to export 1 span(s)" in capture_logs.getvalue()
    assert processor.force_flush() is True
