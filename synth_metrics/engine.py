from __future__ import annotations

import threading
import time
from typing import Optional

from .logging_utils import get_logger
from .metrics import Metrics, metrics as default_metrics
from .registry import MetricRegistry


MIN_INTERVAL_S = 0.01

log = get_logger("synth-metrics.engine")


class Ticker:
    """Background thread that drives `registry.tick()` on a fixed interval.

    `stop()` suppresses future ticks; a tick already running is allowed to
    finish.
    """

    def __init__(self, registry: MetricRegistry, interval_s: float, metrics: Optional[Metrics] = None) -> None:
        self.registry = registry
        self.interval_s = max(MIN_INTERVAL_S, float(interval_s))
        self.metrics = metrics or default_metrics
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        t = threading.Thread(target=self._run, name="synth-metrics-ticker", daemon=True)
        self._thread = t
        t.start()
        log.info("ticker.start", extra={"interval_s": self.interval_s})

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
        log.info("ticker.stop")

    def run_once(self) -> int:
        """Run a single tick and record it; returns the number of failed types."""
        start = time.perf_counter()
        failures = self.registry.tick()
        dur = (time.perf_counter() - start) * 1000.0
        self.metrics.inc("ticks_total", 1)
        if failures:
            self.metrics.inc("tick_failures_total", failures)
        self.metrics.observe("tick_failures_last", failures)
        self.metrics.observe_duration("tick", dur)
        log.debug("ticker.tick", extra={"dur_ms": round(dur, 3), "failures": failures})
        return failures

    def _run(self) -> None:
        # Wait first: the registry is fully populated before the first tick.
        while not self._stop.wait(self.interval_s):
            try:
                self.run_once()
            except Exception:
                log.exception("ticker.tick_failed")
