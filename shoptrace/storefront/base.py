"""Shared plumbing for the instrumented storefront workflows."""

import random
import time
from typing import Callable, Optional

from shoptrace.engine import TelemetryEngine


class Workflow:
    """
    Base class for a business workflow that reports into the engine.

    Workflows call the session tracker, tracer and metrics collector
    directly, the way instrumented application code does. Simulated
    latency is ``latency_scale`` times the nominal delay of each call.
    """

    def __init__(
        self,
        engine: TelemetryEngine,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        latency_scale: float = 0.0,
    ):
        self.engine = engine
        self.tracer = engine.tracer
        self.metrics = engine.metrics
        self.sessions = engine.sessions
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.latency_scale = latency_scale

    def _simulate_latency(self, low_ms: float, high_ms: Optional[float] = None) -> None:
        delay_ms = low_ms if high_ms is None else self.rng.uniform(low_ms, high_ms)
        if self.latency_scale > 0:
            self._sleep(delay_ms * self.latency_scale / 1000.0)
