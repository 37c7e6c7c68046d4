"""Per-entity attribute records kept by the worker-side mirror.

Records are plain mutable dataclasses owned by the worker thread. Every field
a reader may leave unset is ``None`` until its setter arrives; dirty flags are
raised by the diff applier and lowered by the resolvers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Dict, Optional, Tuple

import numpy as np


Color = Tuple[float, float, float]


class EntityKind(Enum):
    """Mirror table an event addresses."""

    MESH = "mesh"
    SPHERE_LIGHT = "sphere_light"
    DISTANT_LIGHT = "distant_light"
    CAMERA = "camera"
    RENDER_SETTINGS = "render_settings"
    MATERIAL = "material"

    @classmethod
    def coerce(cls, value: "EntityKind | str") -> "EntityKind":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class Interpolation(Enum):
    """Primvar interpolation; only VERTEX and FACE_VARYING are resolved."""

    CONSTANT = "constant"
    UNIFORM = "uniform"
    VARYING = "varying"
    VERTEX = "vertex"
    FACE_VARYING = "faceVarying"
    INSTANCE = "instance"

    @classmethod
    def coerce(cls, value: "Interpolation | str | None") -> Optional["Interpolation"]:
        if value is None or isinstance(value, cls):
            return value
        token = str(value).strip()
        for member in cls:
            if member.value.lower() == token.lower() or member.name.lower() == token.lower():
                return member
        raise ValueError(f"unknown interpolation {value!r}")


@dataclass
class GeomSubset:
    """Face family member of a mesh, optionally bound to a material."""

    kind: str
    face_indices: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    material_path: Optional[str] = None


@dataclass
class MeshRecord:
    # Transform (16 floats, column-major) and its flag
    transform: Optional[np.ndarray] = None
    dirty_transform: bool = True

    # Geometry
    dirty_geometry: bool = True
    left_handed: bool = False
    points: Optional[np.ndarray] = None
    normals: Optional[np.ndarray] = None
    normals_interpolation: Optional[Interpolation] = None
    uvs: Optional[np.ndarray] = None
    uvs_interpolation: Optional[Interpolation] = None
    uvs_indices: Optional[np.ndarray] = None
    face_vertex_indices: Optional[np.ndarray] = None
    face_vertex_counts: Optional[np.ndarray] = None

    # Materials
    geom_subsets: Dict[str, GeomSubset] = field(default_factory=dict)
    material_path: Optional[str] = None


@dataclass
class SphereLightRecord:
    transform: Optional[np.ndarray] = None
    dirty_transform: bool = True
    dirty_params: bool = True
    intensity: float = 1.0
    color: Color = (1.0, 1.0, 1.0)
    cone_angle: Optional[float] = None
    cone_softness: Optional[float] = None

    @property
    def is_spot(self) -> bool:
        return self.cone_angle is not None and self.cone_softness is not None


@dataclass
class DistantLightRecord:
    transform: Optional[np.ndarray] = None
    dirty_transform: bool = True
    dirty_params: bool = True
    intensity: float = 1.0
    color: Color = (1.0, 1.0, 1.0)
    angle: float = 0.0


@dataclass
class CameraRecord:
    transform: Optional[np.ndarray] = None
    dirty_transform: bool = True
    dirty_params: bool = True
    focal_length: float = 16.0
    vertical_aperture: float = 23.8

    @property
    def fovy(self) -> float:
        """Vertical field of view in radians."""
        return 2.0 * math.atan(self.vertical_aperture / (2.0 * self.focal_length))


@dataclass(frozen=True)
class RenderProduct:
    camera_path: Optional[str] = None


@dataclass
class RenderSettingsRecord:
    products: Dict[str, RenderProduct] = field(default_factory=dict)
    dirty_params: bool = True


@dataclass
class MaterialRecord:
    dirty_params: bool = True
    diffuse_color: Color = (0.18, 0.18, 0.18)
    emissive_color: Color = (0.0, 0.0, 0.0)
    metallic: float = 0.0
    roughness: float = 1.0
    opacity: float = 1.0
    diffuse_texture: Optional[str] = None
    emissive_texture: Optional[str] = None
    metallic_texture: Optional[str] = None
    roughness_texture: Optional[str] = None
    normal_texture: Optional[str] = None
    opacity_texture: Optional[str] = None


RECORD_TYPES = {
    EntityKind.MESH: MeshRecord,
    EntityKind.SPHERE_LIGHT: SphereLightRecord,
    EntityKind.DISTANT_LIGHT: DistantLightRecord,
    EntityKind.CAMERA: CameraRecord,
    EntityKind.RENDER_SETTINGS: RenderSettingsRecord,
    EntityKind.MATERIAL: MaterialRecord,
}


__all__ = [
    "CameraRecord",
    "Color",
    "DistantLightRecord",
    "EntityKind",
    "GeomSubset",
    "Interpolation",
    "MaterialRecord",
    "MeshRecord",
    "RECORD_TYPES",
    "RenderProduct",
    "RenderSettingsRecord",
    "SphereLightRecord",
]
