"""Path-keyed tables of entity records owned by the scene worker."""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from usd_scene_sync.mirror.records import (
    RECORD_TYPES,
    CameraRecord,
    DistantLightRecord,
    EntityKind,
    MaterialRecord,
    MeshRecord,
    RenderSettingsRecord,
    SphereLightRecord,
)


class AttributeMirror:
    """Latest known attribute values for every entity the reader announced.

    Not thread-safe; the worker thread is the only reader and writer.
    """

    def __init__(self) -> None:
        self.meshes: Dict[str, MeshRecord] = {}
        self.sphere_lights: Dict[str, SphereLightRecord] = {}
        self.distant_lights: Dict[str, DistantLightRecord] = {}
        self.cameras: Dict[str, CameraRecord] = {}
        self.render_settings: Dict[str, RenderSettingsRecord] = {}
        self.materials: Dict[str, MaterialRecord] = {}
        self._tables = {
            EntityKind.MESH: self.meshes,
            EntityKind.SPHERE_LIGHT: self.sphere_lights,
            EntityKind.DISTANT_LIGHT: self.distant_lights,
            EntityKind.CAMERA: self.cameras,
            EntityKind.RENDER_SETTINGS: self.render_settings,
            EntityKind.MATERIAL: self.materials,
        }

    def table(self, kind: EntityKind) -> Dict[str, object]:
        return self._tables[kind]

    def get(self, kind: EntityKind, path: str) -> Optional[object]:
        return self._tables[kind].get(path)

    def create(self, kind: EntityKind, path: str) -> Tuple[object, bool]:
        """Install a fresh record at ``path``; returns ``(record, replaced)``."""
        table = self._tables[kind]
        replaced = path in table
        record = RECORD_TYPES[kind]()
        table[path] = record
        return record, replaced

    def destroy(self, kind: EntityKind, path: str) -> bool:
        return self._tables[kind].pop(path, None) is not None

    def clear(self) -> None:
        for table in self._tables.values():
            table.clear()

    def counts(self) -> Dict[str, int]:
        return {kind.value: len(table) for kind, table in self._tables.items()}

    def __iter__(self) -> Iterator[Tuple[EntityKind, str]]:
        for kind, table in self._tables.items():
            for path in table:
                yield kind, path

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())


__all__ = ["AttributeMirror"]
