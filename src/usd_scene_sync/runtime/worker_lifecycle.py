"""Start and stop the scene worker on its dedicated thread."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from usd_scene_sync.runtime.scene_worker import SceneWorker


logger = logging.getLogger(__name__)


@dataclass
class WorkerLifecycleState:
    """Track the worker thread and its stop signal."""

    worker: Optional[SceneWorker] = None
    thread: Optional[threading.Thread] = None
    stop_event: threading.Event = field(default_factory=threading.Event)
    ready_event: threading.Event = field(default_factory=threading.Event)

    @property
    def running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()


def start_worker(worker: SceneWorker, state: WorkerLifecycleState, *, name: str = "usd-scene-sync") -> None:
    """Launch ``worker`` on a daemon thread."""

    if state.thread and state.thread.is_alive():
        raise RuntimeError("worker thread already running")

    state.stop_event.clear()
    state.ready_event.clear()
    state.worker = worker

    def worker_loop() -> None:
        try:
            state.ready_event.set()
            worker.run(state.stop_event)
        except Exception as exc:
            logger.exception("Scene worker error: %s", exc)
        finally:
            state.ready_event.clear()
            logger.debug("scene worker thread exiting")

    thread = threading.Thread(target=worker_loop, name=name, daemon=True)
    state.thread = thread
    thread.start()


def stop_worker(state: WorkerLifecycleState, timeout: float = 5.0) -> bool:
    """Signal the worker to stop once idle and wait for the thread to exit.

    Returns ``False`` when the thread is still alive after ``timeout``.
    """

    state.stop_event.set()
    thread = state.thread
    stopped = True
    if thread and thread.is_alive():
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("scene worker did not stop within %.1fs", timeout)
            stopped = False
    state.ready_event.clear()
    if stopped:
        state.thread = None
        state.worker = None
    return stopped


__all__ = ["WorkerLifecycleState", "start_worker", "stop_worker"]
