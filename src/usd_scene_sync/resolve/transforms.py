"""Small 4x4 matrix helpers shared by the resolvers.

Transforms arrive as 16 floats in column-major order and act on column
vectors (``M @ [x, y, z, 1]``).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def matrix_from_column_major(values: Optional[Sequence[float]]) -> np.ndarray:
    """4x4 float64 matrix for ``values``; identity when absent."""
    if values is None:
        return np.eye(4, dtype=np.float64)
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size != 16:
        raise ValueError(f"transform needs 16 values, got {arr.size}")
    return arr.reshape(4, 4).T.copy()


def transform_point(matrix: np.ndarray, point: Sequence[float]) -> np.ndarray:
    p = np.append(np.asarray(point, dtype=np.float64), 1.0)
    out = matrix @ p
    if out[3] not in (0.0, 1.0):
        return out[:3] / out[3]
    return out[:3]


def transform_vector(matrix: np.ndarray, vector: Sequence[float]) -> np.ndarray:
    return matrix[:3, :3] @ np.asarray(vector, dtype=np.float64)


def normalize(vector: np.ndarray) -> np.ndarray:
    """Unit vector along ``vector``; zero vectors are returned unchanged."""
    v = np.asarray(vector, dtype=np.float64)
    length = float(np.linalg.norm(v))
    if length == 0.0 or not np.isfinite(length):
        return v
    return v / length


def look_at(eye: Sequence[float], target: Sequence[float], up: Sequence[float] = (0.0, 1.0, 0.0)) -> np.ndarray:
    """Right-handed view matrix looking from ``eye`` towards ``target``."""
    eye_v = np.asarray(eye, dtype=np.float64)
    f = normalize(np.asarray(target, dtype=np.float64) - eye_v)
    s = np.cross(f, np.asarray(up, dtype=np.float64))
    if not np.any(s):
        # forward parallel to up; pick any perpendicular
        s = np.cross(f, np.array([0.0, 0.0, 1.0]))
        if not np.any(s):
            s = np.array([1.0, 0.0, 0.0])
    s = normalize(s)
    u = np.cross(s, f)
    view = np.eye(4, dtype=np.float64)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[:3, 3] = -view[:3, :3] @ eye_v
    return view


__all__ = [
    "look_at",
    "matrix_from_column_major",
    "normalize",
    "transform_point",
    "transform_vector",
]
