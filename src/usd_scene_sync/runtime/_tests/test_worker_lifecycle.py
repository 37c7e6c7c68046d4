"""Unit tests for worker lifecycle helpers."""

from __future__ import annotations

import threading

import pytest

from usd_scene_sync.runtime.worker_lifecycle import WorkerLifecycleState, start_worker, stop_worker


class _FakeWorker:
    def __init__(self) -> None:
        self.started = threading.Event()
        self.seen_stop_event = None

    def run(self, stop_event: threading.Event) -> None:
        self.seen_stop_event = stop_event
        self.started.set()
        stop_event.wait(timeout=5.0)


class _CrashingWorker:
    def run(self, stop_event: threading.Event) -> None:
        raise RuntimeError("boom")


def test_start_and_stop_worker_thread() -> None:
    state = WorkerLifecycleState()
    worker = _FakeWorker()

    start_worker(worker, state, name="scene-test")

    assert worker.started.wait(timeout=5.0)
    assert state.running
    assert state.thread.name == "scene-test"
    assert state.thread.daemon
    assert worker.seen_stop_event is state.stop_event

    assert stop_worker(state, timeout=5.0) is True
    assert state.thread is None
    assert state.worker is None
    assert not state.ready_event.is_set()


def test_start_twice_raises() -> None:
    state = WorkerLifecycleState()
    start_worker(_FakeWorker(), state)
    try:
        with pytest.raises(RuntimeError):
            start_worker(_FakeWorker(), state)
    finally:
        stop_worker(state, timeout=5.0)


def test_worker_exception_is_logged_not_raised(caplog) -> None:
    state = WorkerLifecycleState()

    start_worker(_CrashingWorker(), state)
    state.thread.join(timeout=5.0)

    assert not state.running
    assert any("Scene worker error" in rec.message for rec in caplog.records)
    assert stop_worker(state, timeout=1.0) is True


def test_stop_without_start_is_noop() -> None:
    assert stop_worker(WorkerLifecycleState(), timeout=0.1) is True
