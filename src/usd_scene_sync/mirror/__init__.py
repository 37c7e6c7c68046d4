"""Worker-side attribute mirror and the diff events that update it."""

from .attribute_mirror import AttributeMirror
from .diff_applier import ApplyStats, DiffApplier
from .events import (
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
from .records import (
    CameraRecord,
    DistantLightRecord,
    EntityKind,
    GeomSubset,
    Interpolation,
    MaterialRecord,
    MeshRecord,
    RenderProduct,
    RenderSettingsRecord,
    SphereLightRecord,
)

__all__ = [
    "AddOrUpdate",
    "ApplyStats",
    "AttributeMirror",
    "CameraRecord",
    "Destroy",
    "DiffApplier",
    "DistantLightRecord",
    "EntityKind",
    "FieldChanged",
    "GeomSubset",
    "GeomSubsetChanged",
    "GeomSubsetMaterialChanged",
    "Interpolation",
    "MaterialRecord",
    "MeshDataDirtied",
    "MeshRecord",
    "RenderProduct",
    "RenderProductChanged",
    "RenderSettingsRecord",
    "SceneEvent",
    "SphereLightRecord",
    "TransformChanged",
]
