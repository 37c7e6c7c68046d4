"""Light resolution: world-space position and direction from the transform.

A light looks down its local +Z axis; sphere lights sit at the transformed
origin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from usd_scene_sync.mirror.records import Color, DistantLightRecord, SphereLightRecord
from usd_scene_sync.resolve.transforms import (
    matrix_from_column_major,
    normalize,
    transform_point,
    transform_vector,
)


Vec3 = Tuple[float, float, float]

_LIGHT_AXIS = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class ResolvedSphereLight:
    path: str
    position: Vec3
    direction: Vec3
    intensity: float
    color: Color
    is_spot: bool = False
    cone_angle: Optional[float] = None
    cone_softness: Optional[float] = None


@dataclass(frozen=True)
class ResolvedDistantLight:
    path: str
    direction: Vec3
    intensity: float
    color: Color
    angle: float = 0.0


def _vec3(values) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def resolve_sphere_light(path: str, record: SphereLightRecord) -> ResolvedSphereLight:
    matrix = matrix_from_column_major(record.transform)
    position = transform_point(matrix, (0.0, 0.0, 0.0))
    direction = normalize(transform_vector(matrix, _LIGHT_AXIS))
    spot = record.is_spot
    return ResolvedSphereLight(
        path=path,
        position=_vec3(position),
        direction=_vec3(direction),
        intensity=float(record.intensity),
        color=_vec3(record.color),
        is_spot=spot,
        cone_angle=record.cone_angle if spot else None,
        cone_softness=record.cone_softness if spot else None,
    )


def resolve_distant_light(path: str, record: DistantLightRecord) -> ResolvedDistantLight:
    matrix = matrix_from_column_major(record.transform)
    direction = normalize(transform_vector(matrix, _LIGHT_AXIS))
    return ResolvedDistantLight(
        path=path,
        direction=_vec3(direction),
        intensity=float(record.intensity),
        color=_vec3(record.color),
        angle=float(record.angle),
    )


__all__ = [
    "ResolvedDistantLight",
    "ResolvedSphereLight",
    "resolve_distant_light",
    "resolve_sphere_light",
]
