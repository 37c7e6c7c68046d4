"""Fan triangulation of polygonal faces.

A face of ``n`` corners becomes the triangles ``(0, i-1, i)`` for
``i in 2..n-1`` (corner offsets within the face). Faces with fewer than three
corners produce nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


class MeshNotReadyError(ValueError):
    """Mesh attributes are missing or inconsistent; retry on a later pass."""


@dataclass(frozen=True)
class Triangulation:
    """Per-triangle lookup tables for one mesh.

    ``corners`` holds face-varying element indices (positions in
    ``face_vertex_indices``), ``vertex_indices`` the matching vertex-rate
    indices and ``faces`` the source face of every triangle.
    """

    faces: np.ndarray
    corners: np.ndarray
    vertex_indices: np.ndarray

    @property
    def triangle_count(self) -> int:
        return int(self.faces.shape[0])


def _index_array(values: Optional[np.ndarray], name: str) -> np.ndarray:
    if values is None:
        raise MeshNotReadyError(f"{name} not set")
    return np.asarray(values, dtype=np.int64).reshape(-1)


def triangulate(face_vertex_counts: Optional[np.ndarray], face_vertex_indices: Optional[np.ndarray]) -> Triangulation:
    counts = _index_array(face_vertex_counts, "face_vertex_counts")
    fvi = _index_array(face_vertex_indices, "face_vertex_indices")

    if counts.size and counts.min() < 0:
        raise MeshNotReadyError("negative face vertex count")
    total = int(counts.sum())
    if total != fvi.size:
        raise MeshNotReadyError(
            f"face vertex counts sum to {total} but {fvi.size} face vertex indices are set"
        )

    offsets = np.zeros(counts.size, dtype=np.int64)
    if counts.size > 1:
        np.cumsum(counts[:-1], out=offsets[1:])

    per_face = np.clip(counts - 2, 0, None)
    n_tris = int(per_face.sum())
    if n_tris == 0:
        empty = np.zeros((0, 3), dtype=np.int64)
        return Triangulation(faces=np.zeros(0, dtype=np.int64), corners=empty, vertex_indices=empty.copy())

    faces = np.repeat(np.arange(counts.size, dtype=np.int64), per_face)
    starts = np.cumsum(per_face) - per_face
    # k runs 1..n-2 within each face
    k = np.arange(n_tris, dtype=np.int64) - np.repeat(starts, per_face) + 1
    base = offsets[faces]
    corners = np.stack([base, base + k, base + k + 1], axis=1)
    return Triangulation(faces=faces, corners=corners, vertex_indices=fvi[corners])


__all__ = ["MeshNotReadyError", "Triangulation", "triangulate"]
