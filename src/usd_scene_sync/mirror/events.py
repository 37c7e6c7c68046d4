"""Scene diff events emitted by a reader and consumed by the diff applier.

Each event addresses one record by ``(kind, path)``. Batches are ordered; a
reader resends every present field right after an ``AddOrUpdate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple, Union

from usd_scene_sync.mirror.records import EntityKind


class _KindedEvent:
    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", EntityKind.coerce(self.kind))


@dataclass(frozen=True)
class AddOrUpdate(_KindedEvent):
    kind: EntityKind
    path: str


@dataclass(frozen=True)
class Destroy(_KindedEvent):
    kind: EntityKind
    path: str


@dataclass(frozen=True)
class TransformChanged(_KindedEvent):
    """New local-to-world matrix, 16 floats in column-major order."""

    kind: EntityKind
    path: str
    matrix: Tuple[float, ...]


@dataclass(frozen=True)
class MeshDataDirtied:
    """Mesh topology changed; the complete geom-subset set follows."""

    path: str


@dataclass(frozen=True)
class FieldChanged(_KindedEvent):
    kind: EntityKind
    path: str
    field: str
    value: Any


@dataclass(frozen=True)
class GeomSubsetChanged:
    path: str
    name: str
    kind: str
    face_indices: Sequence[int]


@dataclass(frozen=True)
class GeomSubsetMaterialChanged:
    path: str
    name: str
    material_path: Optional[str]


@dataclass(frozen=True)
class RenderProductChanged:
    path: str
    product: str
    camera_path: Optional[str]


SceneEvent = Union[
    AddOrUpdate,
    Destroy,
    TransformChanged,
    MeshDataDirtied,
    FieldChanged,
    GeomSubsetChanged,
    GeomSubsetMaterialChanged,
    RenderProductChanged,
]


__all__ = [
    "AddOrUpdate",
    "Destroy",
    "FieldChanged",
    "GeomSubsetChanged",
    "GeomSubsetMaterialChanged",
    "MeshDataDirtied",
    "RenderProductChanged",
    "SceneEvent",
    "TransformChanged",
]
