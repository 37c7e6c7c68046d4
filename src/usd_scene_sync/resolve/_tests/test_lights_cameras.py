from __future__ import annotations

import math

import numpy as np

from usd_scene_sync.mirror import CameraRecord, DistantLightRecord, MaterialRecord, SphereLightRecord
from usd_scene_sync.resolve import (
    default_camera,
    resolve_camera,
    resolve_distant_light,
    resolve_material,
    resolve_sphere_light,
)


def _column_major(matrix: np.ndarray) -> np.ndarray:
    return matrix.T.reshape(-1)


def _rotated_x90_at(x: float, y: float, z: float) -> np.ndarray:
    matrix = np.eye(4)
    matrix[:3, :3] = [[1, 0, 0], [0, 0, -1], [0, 1, 0]]
    matrix[:3, 3] = (x, y, z)
    return _column_major(matrix)


def test_sphere_light_position_and_spot_cone() -> None:
    record = SphereLightRecord(transform=_rotated_x90_at(1, 2, 3), intensity=20.0, color=(1.0, 0.5, 0.0))

    point = resolve_sphere_light("/point", record)
    assert point.position == (1.0, 2.0, 3.0)
    np.testing.assert_allclose(point.direction, (0.0, -1.0, 0.0), atol=1e-12)
    assert point.is_spot is False
    assert point.cone_angle is None

    record.cone_angle = 45.0
    record.cone_softness = 0.2
    spot = resolve_sphere_light("/spot", record)
    assert spot.is_spot is True
    assert spot.cone_angle == 45.0
    assert spot.cone_softness == 0.2
    assert spot.intensity == 20.0


def test_distant_light_direction_defaults_to_local_z() -> None:
    light = resolve_distant_light("/sun", DistantLightRecord(angle=0.53))

    assert light.direction == (0.0, 0.0, 1.0)
    assert light.angle == 0.53

    rotated = resolve_distant_light("/sun", DistantLightRecord(transform=_rotated_x90_at(0, 0, 0)))
    np.testing.assert_allclose(rotated.direction, (0.0, -1.0, 0.0), atol=1e-12)


def test_camera_looks_down_negative_z() -> None:
    camera = resolve_camera("/cam", CameraRecord(transform=_rotated_x90_at(1, 2, 3)))

    assert camera.eye == (1.0, 2.0, 3.0)
    np.testing.assert_allclose(camera.direction, (0.0, 1.0, 0.0), atol=1e-12)
    assert math.isclose(camera.fovy, 2.0 * math.atan(23.8 / 32.0))
    assert camera.is_default is False


def test_camera_with_zero_focal_length_uses_fallback_fovy() -> None:
    camera = resolve_camera("/cam", CameraRecord(focal_length=0.0), fallback_fovy_deg=45.0)

    assert math.isclose(camera.fovy_deg, 45.0)


def test_default_camera_looks_at_scene_origin_from_above() -> None:
    camera = default_camera()
    assert camera.is_default
    assert camera.eye == (0.0, 1.8, 5.0)
    assert math.isclose(camera.fovy_deg, 60.0)

    view = camera.view_matrix()
    distance = math.sqrt(26.0)
    np.testing.assert_allclose(view @ [0.0, 0.8, 0.0, 1.0], [0.0, 0.0, -distance, 1.0], atol=1e-12)


def test_camera_view_and_projection() -> None:
    camera = default_camera((0.0, 1.2, 5.0), (0.0, 0.0, -2.0))
    assert camera.direction == (0.0, 0.0, -1.0)

    view = camera.view_matrix()
    np.testing.assert_allclose(view @ [0.0, 1.2, 5.0, 1.0], [0.0, 0.0, 0.0, 1.0], atol=1e-12)
    np.testing.assert_allclose(view @ [0.0, 1.2, 4.0, 1.0], [0.0, 0.0, -1.0, 1.0], atol=1e-12)

    proj = camera.projection_matrix(aspect=2.0)
    focal = 1.0 / math.tan(math.radians(30.0))
    assert math.isclose(proj[1, 1], focal, rel_tol=1e-5)
    assert math.isclose(proj[0, 0], focal / 2.0, rel_tol=1e-5)
    assert proj[3, 2] == -1.0


def test_material_fallback_and_clamping() -> None:
    material = resolve_material("/Looks/M", MaterialRecord(roughness=1.5, diffuse_texture="tex/albedo.png"))

    assert material.diffuse_color == (0.18, 0.18, 0.18)
    assert material.roughness == 1.0
    assert material.opacity == 1.0
    assert material.diffuse_texture == "tex/albedo.png"
    assert material.normal_texture is None
