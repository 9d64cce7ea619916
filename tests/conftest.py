import io
import logging
import random
from datetime import datetime, timedelta, timezone

import pytest

from shoptrace.config import EngineSettings
from shoptrace.engine import TelemetryEngine
from shoptrace.telemetry import InMemorySpanExporter, SimpleSpanProcessor, Tracer


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("shoptrace")
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    logger.setLevel(previous_level)
    log_stream.close()


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter):
    return Tracer(SimpleSpanProcessor(exporter))


@pytest.fixture
def engine(exporter, clock):
    """Engine exporting into memory, with a fake clock and a long session timeout."""
    engine = TelemetryEngine(EngineSettings(), exporter=exporter, clock=clock)
    yield engine
    engine.shutdown()


@pytest.fixture
def rng():
    return random.Random(1234)
