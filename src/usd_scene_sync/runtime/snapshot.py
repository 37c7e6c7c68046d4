"""Published scene snapshots and the single-lock publisher.

The worker builds a complete, immutable `SceneSnapshot` outside the lock and
swaps it in with one short critical section. Readers hold the same lock only
while they look at the current snapshot, so neither side ever waits on
extraction or resolution work.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
import logging
import threading
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from usd_scene_sync.resolve.cameras import ResolvedCamera, default_camera
from usd_scene_sync.resolve.indirection import Selection
from usd_scene_sync.resolve.lights import ResolvedDistantLight, ResolvedSphereLight
from usd_scene_sync.resolve.materials import ResolvedMaterial
from usd_scene_sync.resolve.mesh_resolver import ResolvedMesh
from usd_scene_sync.scene_types import TimeCodeRange


logger = logging.getLogger(__name__)


def _empty() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class SceneSnapshot:
    """Everything a renderer needs for one frame of the synced scene."""

    camera: ResolvedCamera = field(default_factory=default_camera)
    meshes: Mapping[str, ResolvedMesh] = field(default_factory=_empty)
    sphere_lights: Mapping[str, ResolvedSphereLight] = field(default_factory=_empty)
    distant_lights: Mapping[str, ResolvedDistantLight] = field(default_factory=_empty)
    cameras: Mapping[str, ResolvedCamera] = field(default_factory=_empty)
    materials: Mapping[str, ResolvedMaterial] = field(default_factory=_empty)
    selection: Selection = field(default_factory=Selection)
    render_settings_paths: Tuple[str, ...] = ()
    render_product_names: Tuple[str, ...] = ()
    time_code_range: Optional[TimeCodeRange] = None
    time_code: float = 0.0
    source: Optional[str] = None
    version: int = 0

    @property
    def active_camera_path(self) -> Optional[str]:
        return self.selection.camera_path


def freeze_mapping(values: Mapping) -> Mapping:
    """Read-only copy of ``values``."""
    return MappingProxyType(dict(values))


class SnapshotPublisher:
    """Holds the latest snapshot behind one coarse lock."""

    def __init__(self, initial: Optional[SceneSnapshot] = None, *, log_publish: bool = False) -> None:
        self._lock = threading.Lock()
        self._snapshot = initial if initial is not None else SceneSnapshot()
        self._log_publish = bool(log_publish)

    def publish(self, snapshot: SceneSnapshot) -> SceneSnapshot:
        """Stamp ``snapshot`` with the next version and make it current.

        Only the worker thread publishes, so the version read needs no lock.
        """
        stamped = replace(snapshot, version=self._snapshot.version + 1)
        with self._lock:
            self._snapshot = stamped
        if self._log_publish:
            logger.info(
                "snapshot v%d: meshes=%d sphere=%d distant=%d cameras=%d camera=%s t=%s",
                stamped.version,
                len(stamped.meshes),
                len(stamped.sphere_lights),
                len(stamped.distant_lights),
                len(stamped.cameras),
                stamped.camera.path or "<default>",
                stamped.time_code,
            )
        return stamped

    @contextmanager
    def read(self) -> Iterator[SceneSnapshot]:
        with self._lock:
            yield self._snapshot

    def snapshot(self) -> SceneSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def version(self) -> int:
        return self.snapshot().version


__all__ = ["SceneSnapshot", "SnapshotPublisher", "freeze_mapping"]
