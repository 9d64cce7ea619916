"""
Application root for the telemetry engine.

The engine owns one tracer, one metrics collector and one session tracker,
built from EngineSettings. Workflow callers receive the engine (or its
parts) explicitly; there is no module-level instance.

Usage:
    with TelemetryEngine.from_settings(load_settings()) as engine:
        engine.sessions.start_session(user.id, user.name)
        with engine.tracer.span("add_to_cart"):
            engine.metrics.increment_counter("cart_updated")
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from shoptrace.config import EngineSettings, ExporterEnum, ProcessorEnum, TelemetrySettings
from shoptrace.metrics import MetricsCollector
from shoptrace.session import SessionTracker
from shoptrace.session.models import utcnow
from shoptrace.telemetry import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    InMemorySpanExporter,
    JsonLinesSpanExporter,
    NoOpSpanExporter,
    Resource,
    SimpleSpanProcessor,
    SpanExporter,
    SpanProcessor,
    Tracer,
)

logger = logging.getLogger(__name__)


def build_resource(settings: TelemetrySettings) -> Resource:
    return Resource.create(
        service_name=settings.service_name,
        service_version=settings.service_version,
        environment=settings.environment,
        app_name=settings.app_name,
    )


def build_exporter(settings: TelemetrySettings, resource: Resource) -> SpanExporter:
    if settings.exporter == ExporterEnum.CONSOLE:
        return ConsoleSpanExporter(output=settings.output, resource=resource)
    if settings.exporter == ExporterEnum.JSONL:
        return JsonLinesSpanExporter(output=settings.output, resource=resource)
    if settings.exporter == ExporterEnum.MEMORY:
        return InMemorySpanExporter()
    return NoOpSpanExporter()


def build_processor(settings: TelemetrySettings, exporter: SpanExporter) -> SpanProcessor:
    if settings.processor == ProcessorEnum.BATCH:
        return BatchSpanProcessor(exporter, max_queue_size=settings.max_queue_size)
    return SimpleSpanProcessor(exporter)


class TelemetryEngine:
    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        exporter: Optional[SpanExporter] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings or EngineSettings()
        telemetry = self.settings.telemetry
        self.resource = build_resource(telemetry)
        self.exporter = exporter or build_exporter(telemetry, self.resource)
        self.processor = build_processor(telemetry, self.exporter)
        self.tracer = Tracer(self.processor, name=telemetry.service_name)
        self.metrics = MetricsCollector()
        self.sessions = SessionTracker(
            self.tracer,
            timeout_seconds=self.settings.session.timeout_seconds,
            clock=clock,
        )
        self._closed = False
        logger.debug(
            f"Telemetry engine ready: service={telemetry.service_name} "
            f"exporter={telemetry.exporter.value} processor={telemetry.processor.value}"
        )

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        exporter: Optional[SpanExporter] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "TelemetryEngine":
        """
        Build an engine whose span sink is chosen by ``settings.telemetry``.

        Pass ``exporter`` to override that choice (processor settings still apply).
        """
        return cls(settings, exporter=exporter, clock=clock)

    @property
    def closed(self) -> bool:
        return self._closed

    def flush(self, timeout: Optional[float] = None) -> bool:
        return self.tracer.force_flush(timeout)

    def shutdown(self) -> None:
        """Stop timers and flush any spans still waiting for export."""
        if self._closed:
            return
        self._closed = True
        self.sessions.shutdown()
        self.tracer.shutdown()
        logger.debug("Telemetry engine shut down")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
