import json

import pytest

from shoptrace.config import EngineSettings, load_settings
from shoptrace.engine import TelemetryEngine
from shoptrace.telemetry import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    InMemorySpanExporter,
    JsonLinesSpanExporter,
    NoOpSpanExporter,
    SimpleSpanProcessor,
)


def _settings(tmp_path, **telemetry):
    return load_settings(tmp_path / "missing.cfg", telemetry=telemetry)


@pytest.mark.short
def test_default_engine_wiring():
    with TelemetryEngine() as engine:
        assert isinstance(engine.exporter, ConsoleSpanExporter)
        assert isinstance(engine.processor, SimpleSpanProcessor)
        assert engine.tracer.processor is engine.processor
        assert engine.sessions.tracer is engine.tracer
        assert engine.sessions.timeout_seconds == 300.0
        assert engine.resource.get("service.name") == "ecommerce-poc"


@pytest.mark.short
@pytest.mark.parametrize(
    "exporter, expected",
    [("memory", InMemorySpanExporter), ("none", NoOpSpanExporter)],
)
def test_exporter_selection(tmp_path, exporter, expected):
    with TelemetryEngine(_settings(tmp_path, exporter=exporter)) as engine:
        assert isinstance(engine.exporter, expected)


@pytest.mark.short
@pytest.mark.timeout(10)
def test_jsonl_batch_engine_writes_spans_on_shutdown(tmp_path):
    output = tmp_path / "spans.jsonl"
    settings = _settings(tmp_path, exporter="jsonl", output=str(output), processor="batch")

    engine = TelemetryEngine(settings)
    assert isinstance(engine.exporter, JsonLinesSpanExporter)
    assert isinstance(engine.processor, BatchSpanProcessor)

    engine.sessions.start_session("u1", "Test User")
    engine.sessions.track_action("product_viewed", {"product_id": "1"})
    engine.shutdown()
    engine.shutdown()

    documents = [json.loads(line) for line in output.read_text().splitlines()]
    spans = [d["resourceSpans"][0]["scopeSpans"][0]["spans"][0] for d in documents]
    assert [s["name"] for s in spans] == ["user_action", "user_action"]
    assert engine.closed
    assert not engine.sessions.timer_armed


@pytest.mark.short
def test_engines_are_independent(exporter):
    first = TelemetryEngine(EngineSettings(), exporter=exporter)
    second = TelemetryEngine(EngineSettings(), exporter=InMemorySpanExporter())

    first.metrics.increment_counter("products_viewed")
    first.sessions.start_session("u1", "Test User")

    assert second.metrics.counter("products_viewed") == 0
    assert second.sessions.current_session is None
    first.shutdown()
    second.shutdown()


@pytest.mark.short
def test_from_settings_picks_exporter_and_accepts_override(tmp_path, clock):
    settings = _settings(tmp_path, exporter="none", processor="batch")

    with TelemetryEngine.from_settings(settings, clock=clock) as engine:
        assert isinstance(engine.exporter, NoOpSpanExporter)
        assert isinstance(engine.processor, BatchSpanProcessor)
        assert engine.sessions.now() == clock()

    override = InMemorySpanExporter()
    with TelemetryEngine.from_settings(settings, exporter=override) as engine:
        assert engine.exporter is override
        assert isinstance(engine.processor, BatchSpanProcessor)
