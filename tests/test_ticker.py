import time

import pytest

from synth_metrics.config_loader import ConfigSource
from synth_metrics.engine import Ticker
from synth_metrics.metrics import Metrics
from synth_metrics.registry import MetricRegistry


def test_run_once_ticks_and_records():
    reg = MetricRegistry.initialize(source=ConfigSource({}))
    m = Metrics()
    t = Ticker(reg, interval_s=60, metrics=m)
    assert t.run_once() == 0
    assert reg.lookup("int", "up").cursor == 1
    assert m.get("ticks_total") == 1
    assert "tick_p50_ms" in m.snapshot()


def test_interval_is_clamped():
    reg = MetricRegistry.initialize(source=ConfigSource({}))
    assert Ticker(reg, interval_s=0).interval_s > 0


@pytest.mark.timeout(10)
def test_background_thread_advances_until_stopped():
    reg = MetricRegistry.initialize(source=ConfigSource({}))
    m = Metrics()
    t = Ticker(reg, interval_s=0.02, metrics=m)
    t.start()
    try:
        t0 = time.time()
        while m.get("ticks_total") < 3 and time.time() - t0 < 5:
            time.sleep(0.01)
    finally:
        t.stop()
    assert not t.running
    assert m.get("ticks_total") >= 3
    stopped_at = m.get("ticks_total")
    time.sleep(0.1)
    assert m.get("ticks_total") == stopped_at


def test_start_is_idempotent():
    reg = MetricRegistry.initialize(source=ConfigSource({}))
    t = Ticker(reg, interval_s=60, metrics=Metrics())
    t.start()
    first = t._thread
    t.start()
    assert t._thread is first
    t.stop()


def test_run_once_records_last_failure_count(monkeypatch):
    reg = MetricRegistry.initialize(source=ConfigSource({}))
    m = Metrics()
    t = Ticker(reg, interval_s=60, metrics=m)
    t.run_once()
    assert m.snapshot()["gauge_tick_failures_last"] == 0
    monkeypatch.setattr(reg, "tick", lambda: 2)
    assert t.run_once() == 2
    snap = m.snapshot()
    assert snap["gauge_tick_failures_last"] == 2
    assert snap["tick_failures_total"] == 2
