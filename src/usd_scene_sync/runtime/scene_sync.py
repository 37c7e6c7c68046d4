"""Caller-facing facade over the command channel, worker and publisher."""

from __future__ import annotations

from concurrent.futures import Future
from contextlib import contextmanager
import logging
from typing import Iterator, Mapping, Optional

from usd_scene_sync.config import SyncCtx, load_sync_ctx
from usd_scene_sync.metrics import Metrics
from usd_scene_sync.runtime.command_channel import ChannelClosedError, CommandChannel
from usd_scene_sync.runtime.commands import (
    LoadSource,
    SceneCommand,
    SelectRenderProduct,
    SelectRenderSettings,
    SetTimeCursor,
    Stop,
)
from usd_scene_sync.runtime.scene_worker import SceneWorker
from usd_scene_sync.runtime.snapshot import SceneSnapshot, SnapshotPublisher
from usd_scene_sync.runtime.worker_lifecycle import WorkerLifecycleState, start_worker, stop_worker
from usd_scene_sync.resolve.cameras import default_camera
from usd_scene_sync.scene_types import SceneOpener


logger = logging.getLogger(__name__)


class SceneSync:
    """Keep a renderable snapshot of a scene source in sync with a time cursor.

    Commands return futures; the snapshot they produce is already published
    when the future completes::

        with SceneSync(opener) as sync:
            sync.load_source("shot.usd").result()
            sync.set_time_cursor(12.0).result()
            with sync.read() as snap:
                draw(snap.meshes, snap.camera)
    """

    def __init__(
        self,
        opener: SceneOpener,
        *,
        ctx: Optional[SyncCtx] = None,
        env: Optional[Mapping[str, str]] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._ctx = ctx if ctx is not None else load_sync_ctx(env)
        cfg = self._ctx.cfg
        self._opener = opener
        self.metrics = metrics or Metrics(window=self._ctx.metrics_window)
        self._publisher = SnapshotPublisher(
            SceneSnapshot(
                camera=default_camera(
                    cfg.default_camera_eye,
                    cfg.default_camera_direction,
                    cfg.default_camera_fovy_deg,
                ),
                time_code=cfg.initial_time_code,
            ),
            log_publish=self._ctx.debug_policy.logging.log_snapshot_publish,
        )
        self._channel: Optional[CommandChannel] = None
        self._lifecycle = WorkerLifecycleState()

    @property
    def ctx(self) -> SyncCtx:
        return self._ctx

    @property
    def running(self) -> bool:
        return self._lifecycle.running

    def start(self) -> None:
        if self._lifecycle.running:
            raise RuntimeError("scene sync already running")
        self._channel = CommandChannel()
        worker = SceneWorker(
            self._channel,
            self._publisher,
            self._opener,
            ctx=self._ctx,
            metrics=self.metrics,
        )
        start_worker(worker, self._lifecycle)
        logger.debug("scene sync started")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Stop after in-flight work; returns ``False`` if the thread lingers."""
        channel = self._channel
        if channel is None:
            return True
        if not channel.closed:
            try:
                channel.send(Stop())
            except ChannelClosedError:
                logger.debug("scene sync channel already closed")
        limit = self._ctx.cfg.stop_timeout_s if timeout is None else float(timeout)
        stopped = stop_worker(self._lifecycle, timeout=limit)
        if stopped:
            self._channel = None
        return stopped

    # ---- commands --------------------------------------------------------------

    def _submit(self, command: SceneCommand) -> Future:
        channel = self._channel
        if channel is None or not self._lifecycle.running:
            raise RuntimeError("scene sync is not running")
        channel.send(command)
        return command.future

    def load_source(self, identifier: str) -> Future:
        return self._submit(LoadSource(identifier))

    def set_time_cursor(self, value: float) -> Future:
        return self._submit(SetTimeCursor(float(value)))

    def select_render_settings(self, path: Optional[str]) -> Future:
        return self._submit(SelectRenderSettings(path))

    def select_render_product(self, name: Optional[str]) -> Future:
        return self._submit(SelectRenderProduct(name))

    # ---- reads -----------------------------------------------------------------

    @contextmanager
    def read(self) -> Iterator[SceneSnapshot]:
        """Hold the published snapshot for the duration of the block."""
        with self._publisher.read() as snapshot:
            yield snapshot

    def snapshot(self) -> SceneSnapshot:
        return self._publisher.snapshot()

    def __enter__(self) -> "SceneSync":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


__all__ = ["SceneSync"]
