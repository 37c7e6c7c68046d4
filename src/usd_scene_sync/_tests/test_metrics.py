from __future__ import annotations

import threading

import pytest

from usd_scene_sync.metrics import Metrics


def test_counters_and_gauges() -> None:
    metrics = Metrics()
    metrics.inc("events_total")
    metrics.inc("events_total", 2)
    metrics.inc("fractional", 0.5)
    metrics.set("meshes", 3)

    snap = metrics.snapshot()

    assert snap["version"] == "v1"
    assert snap["counters"] == {"events_total": 3, "fractional": 0.5}
    assert snap["gauges"] == {"meshes": 3.0}
    assert metrics.counter("events_total") == 3.0
    assert metrics.counter("missing") == 0.0


def test_histogram_stats_use_rolling_window() -> None:
    metrics = Metrics(window=16)
    for value in range(20):
        metrics.observe_ms("resolve_ms", float(value))

    stats = metrics.snapshot()["histograms"]["resolve_ms"]

    assert stats["count"] == 20
    assert stats["last_ms"] == 19.0
    assert stats["mean_ms"] == pytest.approx(sum(range(4, 20)) / 16)
    assert stats["p50_ms"] == 12.0
    assert stats["min_ms"] == 4.0
    assert stats["max_ms"] == 19.0


def test_concurrent_increments() -> None:
    metrics = Metrics()

    def bump() -> None:
        for _ in range(1000):
            metrics.inc("hits")

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)

    assert metrics.counter("hits") == 4000.0


def test_single_sample_and_no_timings() -> None:
    metrics = Metrics()
    metrics.observe_ms("apply_ms", 2.0)

    stats = metrics.snapshot()["histograms"]["apply_ms"]
    assert stats["p99_ms"] == 2.0
    assert stats["count"] == 1
    assert Metrics().snapshot()["histograms"] == {}
