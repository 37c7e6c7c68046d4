"""Apply ordered scene diff events to the attribute mirror.

Setters addressed to a path with no record are dropped (the reader may emit
updates for an entity before announcing it); unknown field names are dropped
with a warning. Neither is fatal to the batch.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import numpy as np

from usd_scene_sync.logging_policy import _FALSY, _TRUTHY, DebugPolicy, load_debug_policy
from usd_scene_sync.mirror.attribute_mirror import AttributeMirror
from usd_scene_sync.mirror.events import (
    AddOrUpdate,
    Destroy,
    FieldChanged,
    GeomSubsetChanged,
    GeomSubsetMaterialChanged,
    MeshDataDirtied,
    RenderProductChanged,
    SceneEvent,
    TransformChanged,
)
from usd_scene_sync.mirror.records import (
    EntityKind,
    GeomSubset,
    Interpolation,
    MeshRecord,
    RenderProduct,
    RenderSettingsRecord,
)


logger = logging.getLogger(__name__)


APPLIED = "applied"
DROPPED = "dropped"
CREATED = "created"
DESTROYED = "destroyed"


@dataclass(frozen=True)
class ApplyStats:
    """Outcome counts for one applied batch."""

    applied: int = 0
    dropped: int = 0
    created: int = 0
    destroyed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.dropped + self.created + self.destroyed


# ---- Field coercion ----------------------------------------------------------

def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUTHY:
            return True
        if token in _FALSY:
            return False
        raise ValueError(f"not a boolean token: {value!r}")
    if isinstance(value, (bool, int, float, np.bool_, np.integer, np.floating)):
        return bool(value)
    raise TypeError(f"expected a boolean, got {type(value).__name__}")


def _as_float(value: Any) -> float:
    return float(value)


def _as_opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _as_opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _as_color(value: Any) -> Tuple[float, float, float]:
    r, g, b = (float(v) for v in value)
    return (r, g, b)


def _as_rows(width: int) -> Callable[[Any], Optional[np.ndarray]]:
    def coerce(value: Any) -> Optional[np.ndarray]:
        if value is None:
            return None
        arr = np.asarray(value, dtype=np.float32)
        if arr.size % width:
            raise ValueError(f"expected a multiple of {width} components, got {arr.size}")
        return np.ascontiguousarray(arr.reshape(-1, width))

    return coerce


def _as_indices(value: Any) -> Optional[np.ndarray]:
    if value is None:
        return None
    arr = np.asarray(value)
    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"expected integer indices, got dtype {arr.dtype}")
    return np.ascontiguousarray(arr.reshape(-1).astype(np.int64))


def _as_interpolation(value: Any) -> Optional[Interpolation]:
    return Interpolation.coerce(value)


def _as_matrix(value: Any) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.size != 16:
        raise ValueError(f"transform needs 16 values, got {arr.size}")
    return arr


# field name -> (coercer, dirty flag raised)
_FIELD_TABLE: Dict[EntityKind, Dict[str, Tuple[Callable[[Any], Any], str]]] = {
    EntityKind.MESH: {
        "left_handed": (_as_bool, "dirty_geometry"),
        "points": (_as_rows(3), "dirty_geometry"),
        "normals": (_as_rows(3), "dirty_geometry"),
        "normals_interpolation": (_as_interpolation, "dirty_geometry"),
        "uvs": (_as_rows(2), "dirty_geometry"),
        "uvs_interpolation": (_as_interpolation, "dirty_geometry"),
        "uvs_indices": (_as_indices, "dirty_geometry"),
        "face_vertex_indices": (_as_indices, "dirty_geometry"),
        "face_vertex_counts": (_as_indices, "dirty_geometry"),
        "material_path": (_as_opt_str, "dirty_geometry"),
    },
    EntityKind.SPHERE_LIGHT: {
        "intensity": (_as_float, "dirty_params"),
        "color": (_as_color, "dirty_params"),
        "cone_angle": (_as_opt_float, "dirty_params"),
        "cone_softness": (_as_opt_float, "dirty_params"),
    },
    EntityKind.DISTANT_LIGHT: {
        "intensity": (_as_float, "dirty_params"),
        "color": (_as_color, "dirty_params"),
        "angle": (_as_float, "dirty_params"),
    },
    EntityKind.CAMERA: {
        "focal_length": (_as_float, "dirty_params"),
        "vertical_aperture": (_as_float, "dirty_params"),
    },
    EntityKind.RENDER_SETTINGS: {},
    EntityKind.MATERIAL: {
        "diffuse_color": (_as_color, "dirty_params"),
        "emissive_color": (_as_color, "dirty_params"),
        "metallic": (_as_float, "dirty_params"),
        "roughness": (_as_float, "dirty_params"),
        "opacity": (_as_float, "dirty_params"),
        "diffuse_texture": (_as_opt_str, "dirty_params"),
        "emissive_texture": (_as_opt_str, "dirty_params"),
        "metallic_texture": (_as_opt_str, "dirty_params"),
        "roughness_texture": (_as_opt_str, "dirty_params"),
        "normal_texture": (_as_opt_str, "dirty_params"),
        "opacity_texture": (_as_opt_str, "dirty_params"),
    },
}

_TRANSFORM_KINDS = frozenset(
    {EntityKind.MESH, EntityKind.SPHERE_LIGHT, EntityKind.DISTANT_LIGHT, EntityKind.CAMERA}
)


def field_names(kind: EntityKind) -> Tuple[str, ...]:
    """Settable field names for one mirror table."""
    return tuple(_FIELD_TABLE[kind])


# ---- Applier -----------------------------------------------------------------

class DiffApplier:
    """Dispatch diff events onto an `AttributeMirror`."""

    def __init__(self, mirror: AttributeMirror, *, debug_policy: Optional[DebugPolicy] = None) -> None:
        self.mirror = mirror
        policy = debug_policy or load_debug_policy({})
        self._log_events = policy.logging.log_diff_events
        self._max_logged = policy.worker.max_logged_events
        self._handlers: Dict[type, Callable[[Any], str]] = {
            AddOrUpdate: self._add_or_update,
            Destroy: self._destroy,
            TransformChanged: self._transform_changed,
            MeshDataDirtied: self._mesh_data_dirtied,
            FieldChanged: self._field_changed,
            GeomSubsetChanged: self._geom_subset_changed,
            GeomSubsetMaterialChanged: self._geom_subset_material_changed,
            RenderProductChanged: self._render_product_changed,
        }

    def apply(self, event: SceneEvent) -> str:
        """Apply one event and return its outcome name."""
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"unsupported scene event {type(event).__name__}")
        return handler(event)

    def apply_batch(self, events: Iterable[SceneEvent]) -> ApplyStats:
        counts = {APPLIED: 0, DROPPED: 0, CREATED: 0, DESTROYED: 0}
        for index, event in enumerate(events):
            outcome = self.apply(event)
            counts[outcome] += 1
            if self._log_events and index < self._max_logged:
                logger.info("diff %s: %s", outcome, event)
        return ApplyStats(
            applied=counts[APPLIED],
            dropped=counts[DROPPED],
            created=counts[CREATED],
            destroyed=counts[DESTROYED],
        )

    # ---- handlers ------------------------------------------------------------

    def _dropped(self, event: SceneEvent, reason: str) -> str:
        logger.debug("diff dropped (%s): %s", reason, event)
        return DROPPED

    def _add_or_update(self, event: AddOrUpdate) -> str:
        _, replaced = self.mirror.create(event.kind, event.path)
        if replaced:
            logger.debug("%s %s re-announced; record reset", event.kind.value, event.path)
        return CREATED

    def _destroy(self, event: Destroy) -> str:
        if self.mirror.destroy(event.kind, event.path):
            return DESTROYED
        return self._dropped(event, "no record")

    def _transform_changed(self, event: TransformChanged) -> str:
        if event.kind not in _TRANSFORM_KINDS:
            logger.warning("%s records carry no transform; dropping %s", event.kind.value, event.path)
            return DROPPED
        record = self.mirror.get(event.kind, event.path)
        if record is None:
            return self._dropped(event, "no record")
        try:
            record.transform = _as_matrix(event.matrix)
        except (TypeError, ValueError) as exc:
            logger.warning("bad transform for %s: %s", event.path, exc)
            return DROPPED
        record.dirty_transform = True
        return APPLIED

    def _mesh(self, event: SceneEvent) -> Optional[MeshRecord]:
        return self.mirror.meshes.get(event.path)

    def _mesh_data_dirtied(self, event: MeshDataDirtied) -> str:
        mesh = self._mesh(event)
        if mesh is None:
            return self._dropped(event, "no record")
        mesh.dirty_geometry = True
        mesh.geom_subsets.clear()
        return APPLIED

    def _field_changed(self, event: FieldChanged) -> str:
        entry = _FIELD_TABLE[event.kind].get(event.field)
        if entry is None:
            logger.warning("unknown %s field %r on %s; dropping", event.kind.value, event.field, event.path)
            return DROPPED
        record = self.mirror.get(event.kind, event.path)
        if record is None:
            return self._dropped(event, "no record")
        coerce, dirty_flag = entry
        try:
            value = coerce(event.value)
        except (TypeError, ValueError) as exc:
            logger.warning("bad %s.%s for %s: %s", event.kind.value, event.field, event.path, exc)
            return DROPPED
        setattr(record, event.field, value)
        setattr(record, dirty_flag, True)
        return APPLIED

    def _geom_subset_changed(self, event: GeomSubsetChanged) -> str:
        mesh = self._mesh(event)
        if mesh is None:
            return self._dropped(event, "no record")
        try:
            faces = _as_indices(event.face_indices)
        except (TypeError, ValueError) as exc:
            logger.warning("bad face indices for subset %s of %s: %s", event.name, event.path, exc)
            return DROPPED
        previous = mesh.geom_subsets.get(event.name)
        mesh.geom_subsets[event.name] = GeomSubset(
            kind=str(event.kind),
            face_indices=faces if faces is not None else np.zeros(0, dtype=np.int64),
            material_path=previous.material_path if previous is not None else None,
        )
        mesh.dirty_geometry = True
        return APPLIED

    def _geom_subset_material_changed(self, event: GeomSubsetMaterialChanged) -> str:
        mesh = self._mesh(event)
        if mesh is None:
            return self._dropped(event, "no record")
        subset = mesh.geom_subsets.get(event.name)
        if subset is None:
            return self._dropped(event, "no subset")
        subset.material_path = _as_opt_str(event.material_path)
        mesh.dirty_geometry = True
        return APPLIED

    def _render_product_changed(self, event: RenderProductChanged) -> str:
        settings: Optional[RenderSettingsRecord] = self.mirror.render_settings.get(event.path)
        if settings is None:
            return self._dropped(event, "no record")
        settings.products[event.product] = RenderProduct(camera_path=_as_opt_str(event.camera_path))
        settings.dirty_params = True
        return APPLIED


__all__ = [
    "APPLIED",
    "ApplyStats",
    "CREATED",
    "DESTROYED",
    "DROPPED",
    "DiffApplier",
    "field_names",
]
