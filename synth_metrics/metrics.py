"""Self-observability for the server process.

Counters, last-value gauges and sliding windows of durations (p50/p95/p99)
describing how the server itself behaves: requests served, ticks run, resets
applied. Exposed as JSON via `/stats`; the synthetic series live elsewhere.

Google-style docstrings for automatic documentation.
"""

import threading
from time import time
from typing import Dict, List


def _percentile(xs: List[float], p: float) -> float:
    if not xs:
        return 0.0
    i = max(0, min(len(xs) - 1, int(round(p * (len(xs) - 1)))))
    return xs[i]


class Metrics:
    """Thread-safe metrics container.

    Main methods:
      - inc: increment counters.
      - observe: record the latest value of a gauge.
      - observe_duration: accumulate durations for percentiles.
      - snapshot: export all metrics into a dict.
    """

    DEFAULT_COUNTERS = (
        "requests_total",
        "errors_total",
        "ticks_total",
        "tick_failures_total",
        "resets_total",
        "reset_rejections_total",
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {k: 0 for k in self.DEFAULT_COUNTERS}
        self._gauges: Dict[str, float] = {}
        self._durations_ms: Dict[str, List[float]] = {}

    def inc(self, key: str, by: int = 1) -> None:
        """Increment the counter `key` by `by` (default 1)."""
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + by

    def get(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def observe(self, key: str, value: float) -> None:
        """Record the current value of a gauge identified by `key`."""
        with self._lock:
            self._gauges[key] = value

    def observe_duration(self, key: str, value_ms: float, max_keep: int = 512) -> None:
        """Accumulate a duration in ms under `key` keeping a window of `max_keep`.

        Args:
            key (str): Logical name of the duration metric.
            value_ms (float): Duration in milliseconds.
            max_keep (int): Max samples retained (window). Defaults to 512.
        """
        with self._lock:
            arr = self._durations_ms.setdefault(key, [])
            arr.append(float(value_ms))
            if len(arr) > max_keep:
                self._durations_ms[key] = arr[-max_keep:]

    def snapshot(self) -> Dict[str, float]:
        """Return a snapshot of counters, gauges, and percentiles.

        Returns:
            Dict[str, float]: Flattened metrics ready for serialization.
        """
        with self._lock:
            data: Dict[str, float] = {}
            data.update(self._counters)
            data.update({f"gauge_{k}": v for k, v in self._gauges.items()})
            for name, arr in self._durations_ms.items():
                if not arr:
                    continue
                xs = sorted(arr)
                data[f"{name}_p50_ms"] = _percentile(xs, 0.50)
                data[f"{name}_p95_ms"] = _percentile(xs, 0.95)
                data[f"{name}_p99_ms"] = _percentile(xs, 0.99)
            data["ts"] = time()
            return data


metrics = Metrics()
