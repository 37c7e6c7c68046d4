"""Resolvers that turn mirrored records into renderable scene entries."""

from .cameras import ResolvedCamera, default_camera, resolve_camera
from .indirection import IndirectionResolver, Selection, SelectionState
from .lights import ResolvedDistantLight, ResolvedSphereLight, resolve_distant_light, resolve_sphere_light
from .materials import ResolvedMaterial, resolve_material
from .mesh_resolver import VERTEX_DTYPE, MeshResolver, ResolvedMesh, SubMesh
from .triangulate import MeshNotReadyError, Triangulation, triangulate

__all__ = [
    "IndirectionResolver",
    "MeshNotReadyError",
    "MeshResolver",
    "ResolvedCamera",
    "ResolvedDistantLight",
    "ResolvedMaterial",
    "ResolvedMesh",
    "ResolvedSphereLight",
    "Selection",
    "SelectionState",
    "SubMesh",
    "Triangulation",
    "VERTEX_DTYPE",
    "default_camera",
    "resolve_camera",
    "resolve_distant_light",
    "resolve_material",
    "resolve_sphere_light",
    "triangulate",
]
