"""Scene worker: owns the mirror, applies diffs and publishes snapshots.

One command is one batch. The worker applies the command's events, runs one
resolution pass over everything dirty, then publishes a fresh snapshot and
completes the command's future. Failures are reported through the future and
never end the loop.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Optional

from usd_scene_sync.config import SyncCtx
from usd_scene_sync.logging_policy import log_level
from usd_scene_sync.metrics import Metrics
from usd_scene_sync.mirror.attribute_mirror import AttributeMirror
from usd_scene_sync.mirror.diff_applier import ApplyStats, DiffApplier
from usd_scene_sync.resolve.cameras import ResolvedCamera, default_camera, resolve_camera
from usd_scene_sync.resolve.indirection import IndirectionResolver
from usd_scene_sync.resolve.lights import (
    ResolvedDistantLight,
    ResolvedSphereLight,
    resolve_distant_light,
    resolve_sphere_light,
)
from usd_scene_sync.resolve.materials import ResolvedMaterial, resolve_material
from usd_scene_sync.resolve.mesh_resolver import MeshResolver, ResolvedMesh
from usd_scene_sync.resolve.triangulate import MeshNotReadyError
from usd_scene_sync.runtime.command_channel import CommandChannel
from usd_scene_sync.runtime.commands import (
    LoadSource,
    SceneCommand,
    SelectRenderProduct,
    SelectRenderSettings,
    SetTimeCursor,
    Stop,
    command_name,
)
from usd_scene_sync.runtime.snapshot import SceneSnapshot, SnapshotPublisher, freeze_mapping
from usd_scene_sync.scene_source import SceneSourceError
from usd_scene_sync.scene_types import SceneOpener, SceneReader, TimeCodeRange


logger = logging.getLogger(__name__)


class SceneWorker:
    """Worker-thread state machine behind `SceneSync`.

    All attributes are touched by the worker thread only; the caller talks to
    it through the channel and reads results from the publisher.
    """

    def __init__(
        self,
        channel: CommandChannel,
        publisher: SnapshotPublisher,
        opener: SceneOpener,
        *,
        ctx: Optional[SyncCtx] = None,
        metrics: Optional[Metrics] = None,
        poll_interval_s: float = 0.05,
    ) -> None:
        self._ctx = ctx or SyncCtx()
        cfg = self._ctx.cfg
        policy = self._ctx.debug_policy
        self._channel = channel
        self._publisher = publisher
        self._opener = opener
        self.metrics = metrics or Metrics(window=self._ctx.metrics_window)
        self._poll_interval_s = float(poll_interval_s)
        self._log_commands = policy.logging.log_worker_commands
        self._trace_batches = policy.worker.trace_batches
        self._log_mesh = policy.logging.log_mesh_resolve

        self.mirror = AttributeMirror()
        self._applier = DiffApplier(self.mirror, debug_policy=policy)
        self._mesh_resolver = MeshResolver(face_set_kind=cfg.face_set_kind, debug_policy=policy)
        self._indirection = IndirectionResolver(debug_policy=policy)
        self._default_camera = default_camera(
            cfg.default_camera_eye,
            cfg.default_camera_direction,
            cfg.default_camera_fovy_deg,
        )

        self._meshes: Dict[str, ResolvedMesh] = {}
        self._sphere_lights: Dict[str, ResolvedSphereLight] = {}
        self._distant_lights: Dict[str, ResolvedDistantLight] = {}
        self._cameras: Dict[str, ResolvedCamera] = {}
        self._materials: Dict[str, ResolvedMaterial] = {}

        self._reader: Optional[SceneReader] = None
        self._source: Optional[str] = None
        self._time_range: Optional[TimeCodeRange] = None
        self._time_code = float(cfg.initial_time_code)

        self._handlers: Dict[type, Callable[[SceneCommand], object]] = {
            LoadSource: self._load_source,
            SetTimeCursor: self._set_time_cursor,
            SelectRenderSettings: self._select_render_settings,
            SelectRenderProduct: self._select_render_product,
        }

    # ---- loop ------------------------------------------------------------------

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """Process commands until `Stop` arrives or ``stop_event`` is set while idle."""
        try:
            while True:
                command = self._channel.receive(timeout=self._poll_interval_s)
                if command is None:
                    if (stop_event is not None and stop_event.is_set()) or self._channel.closed:
                        break
                    continue
                if isinstance(command, Stop):
                    if self._log_commands:
                        logger.info("scene worker: stop")
                    self.metrics.inc("usd_scene_sync_command_stop_total")
                    if command.future.set_running_or_notify_cancel():
                        command.future.set_result(None)
                    break
                self.handle(command)
        finally:
            for leftover in self._channel.close():
                leftover.future.cancel()
            self._close_reader()

    def handle(self, command: SceneCommand) -> None:
        """Run one command to completion and settle its future."""
        name = command_name(command)
        future = command.future
        if not future.set_running_or_notify_cancel():
            logger.debug("scene worker: %s cancelled before start", name)
            return
        self.metrics.inc("usd_scene_sync_commands_total")
        self.metrics.inc(f"usd_scene_sync_command_{name}_total")
        if self._log_commands:
            logger.info("scene worker: %s", command)
        handler = self._handlers.get(type(command))
        if handler is None:
            future.set_exception(TypeError(f"unsupported command {type(command).__name__}"))
            return
        try:
            result = handler(command)
        except SceneSourceError as exc:
            self.metrics.inc("usd_scene_sync_command_errors_total")
            logger.warning("scene worker: %s failed: %s", name, exc)
            future.set_exception(exc)
        except Exception as exc:
            self.metrics.inc("usd_scene_sync_command_errors_total")
            logger.exception("scene worker: %s failed", name)
            future.set_exception(exc)
        else:
            future.set_result(result)

    # ---- command handlers ------------------------------------------------------

    def _load_source(self, command: LoadSource) -> Optional[TimeCodeRange]:
        self._close_reader()
        self._reset_scene()
        try:
            reader = self._opener(command.identifier)
        except SceneSourceError:
            self._resolve_and_publish()
            raise
        self._reader = reader
        try:
            time_range = reader.time_code_range()
            time_code = float(self._ctx.cfg.initial_time_code)
            if time_range is not None:
                start, end = time_range
                if not start <= time_code <= end:
                    time_code = float(start)
            self._apply_events(reader.extract(time_code))
        except Exception as exc:
            self._close_reader()
            self._reset_scene()
            self._resolve_and_publish()
            if isinstance(exc, SceneSourceError):
                raise
            raise SceneSourceError(f"Failed to read scene source {command.identifier}: {exc}") from exc
        self._source = command.identifier
        self._time_range = time_range
        self._time_code = time_code
        logger.info("scene worker: loaded %s range=%s", command.identifier, self._time_range)
        self._resolve_and_publish()
        return self._time_range

    def _set_time_cursor(self, command: SetTimeCursor) -> ApplyStats:
        time_code = float(command.value)
        stats = ApplyStats()
        if self._reader is not None:
            events = self._reader.extract(time_code)
            stats = self._apply_events(events)
        self._time_code = time_code
        self._resolve_and_publish()
        return stats

    def _select_render_settings(self, command: SelectRenderSettings) -> bool:
        ok = self._indirection.select_settings(self.mirror, command.path)
        self._resolve_and_publish()
        return ok

    def _select_render_product(self, command: SelectRenderProduct) -> bool:
        ok = self._indirection.select_product(self.mirror, command.name)
        self._resolve_and_publish()
        return ok

    # ---- batch steps -----------------------------------------------------------

    def _apply_events(self, events) -> ApplyStats:
        t0 = time.perf_counter()
        stats = self._applier.apply_batch(events)
        self.metrics.observe_ms("usd_scene_sync_apply_ms", (time.perf_counter() - t0) * 1000.0)
        self.metrics.inc("usd_scene_sync_events_total", stats.total)
        if stats.dropped:
            self.metrics.inc("usd_scene_sync_events_dropped_total", stats.dropped)
        if self._trace_batches:
            logger.info(
                "batch: applied=%d created=%d destroyed=%d dropped=%d",
                stats.applied,
                stats.created,
                stats.destroyed,
                stats.dropped,
            )
        return stats

    def _resolve_and_publish(self) -> SceneSnapshot:
        t0 = time.perf_counter()
        self._resolve_meshes()
        self._resolve_lights()
        self._resolve_cameras()
        self._resolve_materials()
        self._indirection.revalidate(self.mirror)
        snapshot = self._build_snapshot()
        self.metrics.observe_ms("usd_scene_sync_resolve_ms", (time.perf_counter() - t0) * 1000.0)
        published = self._publisher.publish(snapshot)
        self.metrics.set("usd_scene_sync_snapshot_version", published.version)
        self.metrics.set("usd_scene_sync_meshes", len(published.meshes))
        self.metrics.set("usd_scene_sync_sphere_lights", len(published.sphere_lights))
        self.metrics.set("usd_scene_sync_distant_lights", len(published.distant_lights))
        self.metrics.set("usd_scene_sync_cameras", len(published.cameras))
        self.metrics.set("usd_scene_sync_materials", len(published.materials))
        return published

    def _resolve_meshes(self) -> None:
        for path in [p for p in self._meshes if p not in self.mirror.meshes]:
            del self._meshes[path]
        for path, record in self.mirror.meshes.items():
            previous = self._meshes.get(path)
            if record.dirty_geometry:
                try:
                    self._meshes[path] = self._mesh_resolver.resolve(path, record)
                except MeshNotReadyError as exc:
                    self.metrics.inc("usd_scene_sync_mesh_not_ready_total")
                    logger.log(log_level(self._log_mesh), "mesh %s not ready: %s", path, exc)
                    if previous is not None and record.dirty_transform:
                        self._meshes[path] = self._mesh_resolver.with_transform(previous, record)
                        record.dirty_transform = False
                    continue
                record.dirty_geometry = False
                record.dirty_transform = False
            elif record.dirty_transform and previous is not None:
                self._meshes[path] = self._mesh_resolver.with_transform(previous, record)
                record.dirty_transform = False

    def _resolve_lights(self) -> None:
        _sync_table(self.mirror.sphere_lights, self._sphere_lights, resolve_sphere_light)
        _sync_table(self.mirror.distant_lights, self._distant_lights, resolve_distant_light)

    def _resolve_cameras(self) -> None:
        fovy_deg = self._ctx.cfg.default_camera_fovy_deg
        _sync_table(
            self.mirror.cameras,
            self._cameras,
            lambda path, record: resolve_camera(path, record, fallback_fovy_deg=fovy_deg),
        )

    def _resolve_materials(self) -> None:
        _sync_table(self.mirror.materials, self._materials, resolve_material)

    def _build_snapshot(self) -> SceneSnapshot:
        selection = self._indirection.selection()
        camera = self._default_camera
        if selection.camera_path is not None:
            camera = self._cameras.get(selection.camera_path, self._default_camera)
        product_names: tuple = ()
        if selection.settings_path is not None:
            settings = self.mirror.render_settings.get(selection.settings_path)
            if settings is not None:
                product_names = tuple(settings.products)
        return SceneSnapshot(
            camera=camera,
            meshes=freeze_mapping(self._meshes),
            sphere_lights=freeze_mapping(self._sphere_lights),
            distant_lights=freeze_mapping(self._distant_lights),
            cameras=freeze_mapping(self._cameras),
            materials=freeze_mapping(self._materials),
            selection=selection,
            render_settings_paths=tuple(sorted(self.mirror.render_settings)),
            render_product_names=product_names,
            time_code_range=self._time_range,
            time_code=self._time_code,
            source=self._source,
        )

    # ---- housekeeping ----------------------------------------------------------

    def _reset_scene(self) -> None:
        self.mirror.clear()
        self._meshes.clear()
        self._sphere_lights.clear()
        self._distant_lights.clear()
        self._cameras.clear()
        self._materials.clear()
        self._indirection.reset()
        self._source = None
        self._time_range = None
        self._time_code = float(self._ctx.cfg.initial_time_code)

    def _close_reader(self) -> None:
        reader = self._reader
        self._reader = None
        if reader is None:
            return
        try:
            reader.close()
        except Exception:
            logger.exception("scene reader close failed")


def _sync_table(records: Dict[str, object], resolved: Dict[str, object], resolve: Callable) -> None:
    """Drop entries whose record is gone and re-resolve dirty or new ones."""
    for path in [p for p in resolved if p not in records]:
        del resolved[path]
    for path, record in records.items():
        if path in resolved and not getattr(record, "dirty_transform", False) and not record.dirty_params:
            continue
        resolved[path] = resolve(path, record)
        record.dirty_params = False
        if hasattr(record, "dirty_transform"):
            record.dirty_transform = False


__all__ = ["SceneWorker"]
