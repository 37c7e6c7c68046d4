"""In-process metrics for the scene worker.

The worker records three things: command and event counters, entity-count
gauges refreshed on every publish, and apply/resolve timings in
milliseconds. `Metrics.snapshot()` returns a JSON-ready dict and may be called
from any thread.
"""

from __future__ import annotations

from collections import deque
import threading
import time
from typing import Deque, Dict

import numpy as np


_PERCENTILES = (50, 90, 99)


class _Timings:
    """Rolling window of millisecond samples plus an all-time sample count."""

    __slots__ = ("samples", "count")

    def __init__(self, window: int) -> None:
        self.samples: Deque[float] = deque(maxlen=window)
        self.count = 0

    def add(self, value_ms: float) -> None:
        self.samples.append(value_ms)
        self.count += 1

    def summary(self) -> Dict[str, float]:
        out: Dict[str, float] = {"count": self.count}
        if not self.samples:
            out.update({"last_ms": 0.0, "mean_ms": 0.0, "min_ms": 0.0, "max_ms": 0.0})
            out.update({f"p{p}_ms": 0.0 for p in _PERCENTILES})
            return out
        arr = np.fromiter(self.samples, dtype=np.float64, count=len(self.samples))
        out.update(
            {
                "last_ms": float(arr[-1]),
                "mean_ms": float(arr.mean()),
                "min_ms": float(arr.min()),
                "max_ms": float(arr.max()),
            }
        )
        # nearest-rank so reported values are real samples
        ranks = np.percentile(arr, _PERCENTILES, method="nearest")
        out.update({f"p{p}_ms": float(v) for p, v in zip(_PERCENTILES, ranks)})
        return out


class Metrics:
    """Counters, gauges and timing windows behind one lock."""

    def __init__(self, window: int = 512) -> None:
        self._window = max(16, int(window))
        self._lock = threading.Lock()
        self._counters: Dict[str, float] = {}
        self._gauges: Dict[str, float] = {}
        self._timings: Dict[str, _Timings] = {}

    def inc(self, name: str, value: float = 1.0) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + float(value)

    def set(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = float(value)

    def observe_ms(self, name: str, value_ms: float) -> None:
        with self._lock:
            timings = self._timings.get(name)
            if timings is None:
                timings = self._timings[name] = _Timings(self._window)
            timings.add(float(value_ms))

    def counter(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            counters = {k: int(v) if v.is_integer() else v for k, v in self._counters.items()}
            gauges = dict(self._gauges)
            windows = {k: (list(t.samples), t.count) for k, t in self._timings.items()}
        histograms = {}
        for name, (samples, count) in windows.items():
            # summarise outside the lock; the worker keeps recording meanwhile
            timings = _Timings(self._window)
            timings.samples.extend(samples)
            timings.count = count
            histograms[name] = timings.summary()
        return {
            "version": "v1",
            "ts": time.time(),
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }


__all__ = ["Metrics"]
