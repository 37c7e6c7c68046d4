"""Material resolution into immutable preview-surface parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from usd_scene_sync.mirror.records import Color, MaterialRecord


@dataclass(frozen=True)
class ResolvedMaterial:
    path: str
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


def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


def resolve_material(path: str, record: MaterialRecord) -> ResolvedMaterial:
    return ResolvedMaterial(
        path=path,
        diffuse_color=tuple(float(c) for c in record.diffuse_color),
        emissive_color=tuple(float(c) for c in record.emissive_color),
        metallic=_clamp01(record.metallic),
        roughness=_clamp01(record.roughness),
        opacity=_clamp01(record.opacity),
        diffuse_texture=record.diffuse_texture,
        emissive_texture=record.emissive_texture,
        metallic_texture=record.metallic_texture,
        roughness_texture=record.roughness_texture,
        normal_texture=record.normal_texture,
        opacity_texture=record.opacity_texture,
    )


FALLBACK_MATERIAL = ResolvedMaterial(path="")


__all__ = ["FALLBACK_MATERIAL", "ResolvedMaterial", "resolve_material"]
