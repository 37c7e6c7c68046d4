"""Camera resolution and the fallback view camera.

Cameras look down their local -Z axis with +Y up. The projection matrix comes
from vispy and is returned transposed so that it multiplies column vectors
like the view matrix does.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np
from vispy.util.transforms import perspective

from usd_scene_sync.mirror.records import CameraRecord
from usd_scene_sync.resolve.transforms import (
    look_at,
    matrix_from_column_major,
    normalize,
    transform_point,
    transform_vector,
)


logger = logging.getLogger(__name__)


Vec3 = Tuple[float, float, float]

_VIEW_AXIS = (0.0, 0.0, -1.0)


@dataclass(frozen=True)
class ResolvedCamera:
    """World-space view camera.

    ``path`` is ``None`` for the default camera.
    """

    eye: Vec3
    direction: Vec3
    fovy: float
    path: Optional[str] = None

    @property
    def fovy_deg(self) -> float:
        return math.degrees(self.fovy)

    @property
    def is_default(self) -> bool:
        return self.path is None

    def view_matrix(self) -> np.ndarray:
        eye = np.asarray(self.eye, dtype=np.float64)
        return look_at(eye, eye + np.asarray(self.direction, dtype=np.float64))

    def projection_matrix(self, aspect: float, znear: float = 0.1, zfar: float = 1000.0) -> np.ndarray:
        return np.asarray(perspective(self.fovy_deg, float(aspect), float(znear), float(zfar)), dtype=np.float64).T


def _vec3(values) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))


def resolve_camera(path: str, record: CameraRecord, *, fallback_fovy_deg: float = 60.0) -> ResolvedCamera:
    matrix = matrix_from_column_major(record.transform)
    eye = transform_point(matrix, (0.0, 0.0, 0.0))
    direction = normalize(transform_vector(matrix, _VIEW_AXIS))
    if record.focal_length > 0.0 and record.vertical_aperture > 0.0:
        fovy = float(record.fovy)
    else:
        logger.debug(
            "camera %s: focal length %s / aperture %s unusable; fovy %.1f deg",
            path,
            record.focal_length,
            record.vertical_aperture,
            fallback_fovy_deg,
        )
        fovy = math.radians(fallback_fovy_deg)
    return ResolvedCamera(eye=_vec3(eye), direction=_vec3(direction), fovy=fovy, path=path)


def default_camera(
    eye: Sequence[float] = (0.0, 1.8, 5.0),
    direction: Sequence[float] = (0.0, -1.0, -5.0),
    fovy_deg: float = 60.0,
) -> ResolvedCamera:
    return ResolvedCamera(
        eye=_vec3(eye),
        direction=_vec3(normalize(np.asarray(direction, dtype=np.float64))),
        fovy=math.radians(float(fovy_deg)),
        path=None,
    )


__all__ = ["ResolvedCamera", "default_camera", "resolve_camera"]
