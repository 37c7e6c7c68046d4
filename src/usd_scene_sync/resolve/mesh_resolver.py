"""Turn mirrored mesh attributes into a GPU-ready vertex buffer.

Each triangle corner gets its own vertex record (position, normal, uv), laid
out in face order so that sub-meshes can address triangles with plain
``uint32`` index ranges. Only vertex and face-varying primvars are resolved;
anything else falls back to computed normals and ``(0, 0)`` uvs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
from typing import List, Optional, Tuple

import numpy as np

from usd_scene_sync.logging_policy import DebugPolicy, load_debug_policy
from usd_scene_sync.mirror.records import Interpolation, MeshRecord
from usd_scene_sync.resolve.transforms import matrix_from_column_major
from usd_scene_sync.resolve.triangulate import MeshNotReadyError, Triangulation, triangulate


logger = logging.getLogger(__name__)


VERTEX_DTYPE = np.dtype(
    [
        ("position", "<f4", (3,)),
        ("normal", "<f4", (3,)),
        ("uv", "<f4", (2,)),
    ]
)


@dataclass(frozen=True)
class SubMesh:
    """Triangle range of a resolved mesh drawn with one material."""

    indices: np.ndarray
    material_path: Optional[str] = None
    name: Optional[str] = None
    faces: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))

    @property
    def triangle_count(self) -> int:
        return int(self.indices.size // 3)


@dataclass(frozen=True)
class ResolvedMesh:
    path: str
    vertices: np.ndarray
    sub_meshes: Tuple[SubMesh, ...]
    transform: np.ndarray
    left_handed: bool = False

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return self.vertex_count // 3


def _row_count(values: Optional[np.ndarray]) -> int:
    return 0 if values is None else int(values.shape[0])


def compute_vertex_normals(points: np.ndarray, tri_vertices: np.ndarray, *, left_handed: bool = False) -> np.ndarray:
    """Per-vertex normals from the unweighted sum of adjacent face normals.

    ``tri_vertices`` must be in authored (non-reversed) winding. Degenerate
    triangles contribute nothing; vertices with no contribution keep a zero
    normal.
    """
    pts = np.asarray(points, dtype=np.float64)
    acc = np.zeros((pts.shape[0], 3), dtype=np.float64)
    if tri_vertices.size == 0:
        return acc
    p0 = pts[tri_vertices[:, 0]]
    p1 = pts[tri_vertices[:, 1]]
    p2 = pts[tri_vertices[:, 2]]
    face_n = np.cross(p1 - p0, p2 - p0)
    lengths = np.linalg.norm(face_n, axis=1)
    valid = lengths > 0.0
    face_n[valid] /= lengths[valid, None]
    face_n[~valid] = 0.0
    if left_handed:
        face_n = -face_n
    for j in range(3):
        np.add.at(acc, tri_vertices[:, j], face_n)
    norms = np.linalg.norm(acc, axis=1)
    nz = norms > 0.0
    acc[nz] /= norms[nz, None]
    return acc


class MeshResolver:
    """Resolve `MeshRecord`s into `ResolvedMesh`es.

    Parameters
    ----------
    face_set_kind
        Geom-subset family that produces material sub-meshes; subsets of any
        other kind leave their faces to the default sub-mesh.
    """

    def __init__(self, *, face_set_kind: str = "typeFaceSet", debug_policy: Optional[DebugPolicy] = None) -> None:
        self.face_set_kind = face_set_kind
        policy = debug_policy or load_debug_policy({})
        self._log = policy.logging.log_mesh_resolve

    def resolve(self, path: str, record: MeshRecord) -> ResolvedMesh:
        """Triangulate and expand ``record``; raises `MeshNotReadyError`."""
        if record.points is None:
            raise MeshNotReadyError(f"{path}: points not set")
        tri = triangulate(record.face_vertex_counts, record.face_vertex_indices)
        points = np.asarray(record.points, dtype=np.float32).reshape(-1, 3)
        fvi = np.asarray(record.face_vertex_indices, dtype=np.int64).reshape(-1)
        if fvi.size and (fvi.min() < 0 or fvi.max() >= points.shape[0]):
            raise MeshNotReadyError(
                f"{path}: face vertex index outside {points.shape[0]} points"
            )

        corners = tri.corners
        vidx = tri.vertex_indices
        if record.left_handed:
            corners = corners[:, ::-1]
            vidx = vidx[:, ::-1]
        corners_flat = corners.reshape(-1)
        vidx_flat = vidx.reshape(-1)

        vertices = np.zeros(vidx_flat.size, dtype=VERTEX_DTYPE)
        vertices["position"] = points[vidx_flat]
        vertices["normal"] = self._normals(path, record, tri, points, fvi.size, corners_flat, vidx_flat)
        vertices["uv"] = self._uvs(path, record, points.shape[0], fvi.size, corners_flat, vidx_flat)
        vertices.flags.writeable = False

        face_count = int(np.asarray(record.face_vertex_counts).size)
        sub_meshes = self._sub_meshes(path, record, tri, face_count)
        resolved = ResolvedMesh(
            path=path,
            vertices=vertices,
            sub_meshes=sub_meshes,
            transform=self._transform(record),
            left_handed=bool(record.left_handed),
        )
        if self._log:
            logger.info(
                "mesh %s: %d triangles, %d sub-meshes%s",
                path,
                tri.triangle_count,
                len(sub_meshes),
                " (left-handed)" if record.left_handed else "",
            )
        return resolved

    def with_transform(self, resolved: ResolvedMesh, record: MeshRecord) -> ResolvedMesh:
        """Refresh only the model transform of an already resolved mesh."""
        return replace(resolved, transform=self._transform(record))

    # ---- steps -----------------------------------------------------------------

    @staticmethod
    def _transform(record: MeshRecord) -> np.ndarray:
        matrix = matrix_from_column_major(record.transform)
        matrix.flags.writeable = False
        return matrix

    def _normals(
        self,
        path: str,
        record: MeshRecord,
        tri: Triangulation,
        points: np.ndarray,
        corner_count: int,
        corners_flat: np.ndarray,
        vidx_flat: np.ndarray,
    ) -> np.ndarray:
        normals = record.normals
        mode = record.normals_interpolation
        if normals is not None:
            if mode is Interpolation.FACE_VARYING and _row_count(normals) >= corner_count:
                return normals[corners_flat]
            if mode is Interpolation.VERTEX and _row_count(normals) >= points.shape[0]:
                return normals[vidx_flat]
            logger.debug(
                "mesh %s: normals unusable (interpolation=%s, count=%d); computing",
                path,
                mode.value if mode is not None else None,
                _row_count(normals),
            )
        computed = compute_vertex_normals(points, tri.vertex_indices, left_handed=record.left_handed)
        return computed[vidx_flat]

    def _uvs(
        self,
        path: str,
        record: MeshRecord,
        point_count: int,
        corner_count: int,
        corners_flat: np.ndarray,
        vidx_flat: np.ndarray,
    ) -> np.ndarray | float:
        uvs = record.uvs
        mode = record.uvs_interpolation
        if uvs is None:
            return 0.0
        if mode is Interpolation.FACE_VARYING:
            elements, needed = corners_flat, corner_count
        elif mode is Interpolation.VERTEX:
            elements, needed = vidx_flat, point_count
        else:
            logger.debug("mesh %s: uv interpolation %s unsupported; using (0, 0)", path, mode)
            return 0.0

        indices = record.uvs_indices
        if indices is not None:
            if indices.size < needed or (indices.size and (indices.min() < 0 or indices.max() >= _row_count(uvs))):
                logger.debug("mesh %s: uv indices unusable; using (0, 0)", path)
                return 0.0
            return uvs[indices[elements]]
        if _row_count(uvs) < needed:
            logger.debug("mesh %s: %d uvs for %d elements; using (0, 0)", path, _row_count(uvs), needed)
            return 0.0
        return uvs[elements]

    def _sub_meshes(self, path: str, record: MeshRecord, tri: Triangulation, face_count: int) -> Tuple[SubMesh, ...]:
        claimed = np.zeros(face_count, dtype=bool)
        out: List[SubMesh] = []
        for name in sorted(record.geom_subsets):
            subset = record.geom_subsets[name]
            if subset.kind != self.face_set_kind:
                continue
            faces = np.asarray(subset.face_indices, dtype=np.int64).reshape(-1)
            in_range = faces[(faces >= 0) & (faces < face_count)]
            mask = np.zeros(face_count, dtype=bool)
            mask[in_range] = True
            mask &= ~claimed
            claimed |= mask
            sub = _sub_mesh_for(mask, tri, subset.material_path or record.material_path, name)
            if sub is not None:
                out.append(sub)
            elif self._log:
                logger.info("mesh %s: subset %s claims no triangles", path, name)
        rest = _sub_mesh_for(~claimed, tri, record.material_path, None)
        if rest is not None:
            out.append(rest)
        return tuple(out)


def _sub_mesh_for(face_mask: np.ndarray, tri: Triangulation, material_path: Optional[str], name: Optional[str]) -> Optional[SubMesh]:
    triangles = np.flatnonzero(face_mask[tri.faces]) if tri.triangle_count else np.zeros(0, dtype=np.int64)
    if triangles.size == 0:
        return None
    indices = (triangles[:, None] * 3 + np.arange(3)).reshape(-1).astype(np.uint32)
    faces = np.flatnonzero(face_mask)
    indices.flags.writeable = False
    faces.flags.writeable = False
    return SubMesh(indices=indices, material_path=material_path, name=name, faces=faces)


__all__ = [
    "MeshNotReadyError",
    "MeshResolver",
    "ResolvedMesh",
    "SubMesh",
    "VERTEX_DTYPE",
    "compute_vertex_normals",
]
