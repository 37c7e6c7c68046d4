from __future__ import annotations

import logging

import numpy as np
import pytest

from usd_scene_sync.mirror import (
    AddOrUpdate,
    AttributeMirror,
    Destroy,
    DiffApplier,
    EntityKind,
    FieldChanged,
    GeomSubsetChanged,
    GeomSubsetMaterialChanged,
    Interpolation,
    MeshDataDirtied,
    RenderProductChanged,
    TransformChanged,
)


MESH = EntityKind.MESH
IDENTITY = tuple(float(v) for v in np.eye(4).reshape(-1))


def _applier() -> tuple[AttributeMirror, DiffApplier]:
    mirror = AttributeMirror()
    return mirror, DiffApplier(mirror)


def test_setter_before_create_is_dropped() -> None:
    mirror, applier = _applier()

    stats = applier.apply_batch(
        [
            FieldChanged(MESH, "/World/Cube", "points", [[0, 0, 0]]),
            TransformChanged(MESH, "/World/Cube", IDENTITY),
            MeshDataDirtied("/World/Cube"),
        ]
    )

    assert stats.dropped == 3
    assert stats.applied == 0
    assert "/World/Cube" not in mirror.meshes


def test_create_then_destroy_in_one_batch_leaves_nothing() -> None:
    mirror, applier = _applier()

    stats = applier.apply_batch(
        [
            AddOrUpdate(MESH, "/World/Cube"),
            FieldChanged(MESH, "/World/Cube", "face_vertex_counts", [4]),
            Destroy(MESH, "/World/Cube"),
        ]
    )

    assert stats.created == 1
    assert stats.applied == 1
    assert stats.destroyed == 1
    assert len(mirror) == 0


def test_field_setter_overwrites_only_named_field_and_raises_dirty() -> None:
    mirror, applier = _applier()
    applier.apply_batch(
        [
            AddOrUpdate(MESH, "/m"),
            FieldChanged(MESH, "/m", "points", [0, 0, 0, 1, 0, 0, 1, 1, 0]),
            FieldChanged(MESH, "/m", "normals_interpolation", "faceVarying"),
        ]
    )
    record = mirror.meshes["/m"]
    record.dirty_geometry = False
    record.dirty_transform = False

    applier.apply(FieldChanged(MESH, "/m", "left_handed", True))

    assert record.left_handed is True
    assert record.points.shape == (3, 3)
    assert record.normals_interpolation is Interpolation.FACE_VARYING
    assert record.dirty_geometry is True
    assert record.dirty_transform is False


@pytest.mark.parametrize(
    "value, expected",
    [("false", False), ("Off", False), ("0", False), ("true", True), (" YES ", True), (0, False), (np.bool_(True), True)],
)
def test_left_handed_accepts_boolean_tokens(value, expected) -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(MESH, "/m"))
    mirror.meshes["/m"].left_handed = not expected

    assert applier.apply(FieldChanged(MESH, "/m", "left_handed", value)) == "applied"
    assert mirror.meshes["/m"].left_handed is expected


def test_left_handed_rejects_unknown_token(caplog) -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(MESH, "/m"))

    with caplog.at_level(logging.WARNING):
        outcome = applier.apply(FieldChanged(MESH, "/m", "left_handed", "sideways"))

    assert outcome == "dropped"
    assert mirror.meshes["/m"].left_handed is False
    assert any("left_handed" in rec.getMessage() for rec in caplog.records)


def test_transform_dirty_is_independent_of_geometry() -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(MESH, "/m"))
    record = mirror.meshes["/m"]
    record.dirty_geometry = False
    record.dirty_transform = False

    matrix = list(IDENTITY)
    matrix[12] = 3.0
    applier.apply(TransformChanged(MESH, "/m", tuple(matrix)))

    assert record.dirty_transform is True
    assert record.dirty_geometry is False
    assert record.transform[12] == 3.0


def test_unknown_field_is_dropped_with_warning(caplog) -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(EntityKind.CAMERA, "/cam"))

    with caplog.at_level(logging.WARNING, logger="usd_scene_sync.mirror.diff_applier"):
        outcome = applier.apply(FieldChanged(EntityKind.CAMERA, "/cam", "shutter_open", 0.5))

    assert outcome == "dropped"
    assert any("shutter_open" in rec.message for rec in caplog.records)


def test_add_or_update_replaces_existing_record() -> None:
    mirror, applier = _applier()
    applier.apply_batch(
        [
            AddOrUpdate(EntityKind.SPHERE_LIGHT, "/light"),
            FieldChanged(EntityKind.SPHERE_LIGHT, "/light", "intensity", 50.0),
        ]
    )
    first = mirror.sphere_lights["/light"]

    applier.apply(AddOrUpdate("sphere_light", "/light"))

    assert mirror.sphere_lights["/light"] is not first
    assert mirror.sphere_lights["/light"].intensity == 1.0


def test_mesh_data_dirtied_clears_subsets_before_resend() -> None:
    mirror, applier = _applier()
    applier.apply_batch(
        [
            AddOrUpdate(MESH, "/m"),
            GeomSubsetChanged("/m", "top", "typeFaceSet", [0]),
            GeomSubsetMaterialChanged("/m", "top", "/Looks/Red"),
        ]
    )
    assert mirror.meshes["/m"].geom_subsets["top"].material_path == "/Looks/Red"

    applier.apply_batch(
        [
            MeshDataDirtied("/m"),
            GeomSubsetChanged("/m", "bottom", "typeFaceSet", [1]),
        ]
    )

    assert list(mirror.meshes["/m"].geom_subsets) == ["bottom"]


def test_subset_material_for_unknown_subset_is_dropped() -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(MESH, "/m"))

    assert applier.apply(GeomSubsetMaterialChanged("/m", "missing", "/Looks/Red")) == "dropped"


def test_render_product_setter_records_camera() -> None:
    mirror, applier = _applier()
    stats = applier.apply_batch(
        [
            AddOrUpdate(EntityKind.RENDER_SETTINGS, "/Render/Settings"),
            RenderProductChanged("/Render/Settings", "beauty", "/cams/main"),
            RenderProductChanged("/Render/Missing", "beauty", "/cams/main"),
        ]
    )

    assert stats.applied == 1
    assert stats.dropped == 1
    products = mirror.render_settings["/Render/Settings"].products
    assert products["beauty"].camera_path == "/cams/main"


@pytest.mark.parametrize(
    "event",
    [
        FieldChanged(MESH, "/m", "points", [0.0, 1.0]),
        FieldChanged(MESH, "/m", "uvs_interpolation", "bogus"),
        TransformChanged(MESH, "/m", (1.0, 0.0)),
        TransformChanged(EntityKind.MATERIAL, "/m", IDENTITY),
    ],
)
def test_malformed_values_are_dropped(event) -> None:
    mirror, applier = _applier()
    applier.apply(AddOrUpdate(MESH, "/m"))

    assert applier.apply(event) == "dropped"


def test_destroy_missing_path_counts_as_dropped() -> None:
    _, applier = _applier()

    stats = applier.apply_batch([Destroy(EntityKind.DISTANT_LIGHT, "/nothing")])

    assert stats.dropped == 1
    assert stats.destroyed == 0
