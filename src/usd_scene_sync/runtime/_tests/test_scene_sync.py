from __future__ import annotations

import json

import pytest

from usd_scene_sync import SceneSourceError, SceneSync, ScriptedSceneReader, ScriptedSceneSource
from usd_scene_sync.mirror import AddOrUpdate, EntityKind, FieldChanged, RenderProductChanged, TransformChanged


TIMEOUT = 5.0


def _scene() -> ScriptedSceneReader:
    return ScriptedSceneReader(
        [
            AddOrUpdate(EntityKind.MESH, "/World/Tri"),
            FieldChanged(EntityKind.MESH, "/World/Tri", "points", [0, 0, 0, 1, 0, 0, 0, 1, 0]),
            FieldChanged(EntityKind.MESH, "/World/Tri", "face_vertex_counts", [3]),
            FieldChanged(EntityKind.MESH, "/World/Tri", "face_vertex_indices", [0, 1, 2]),
            AddOrUpdate(EntityKind.CAMERA, "/cam"),
            AddOrUpdate(EntityKind.RENDER_SETTINGS, "/Render/Settings"),
            RenderProductChanged("/Render/Settings", "main", "/cam"),
        ],
        {
            1.0: [],
            24.0: [
                TransformChanged(
                    EntityKind.MESH,
                    "/World/Tri",
                    (1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 0, 5, 0, 1),
                )
            ],
        },
    )


def test_scene_sync_round_trip() -> None:
    source = ScriptedSceneSource({"shot": _scene()})

    with SceneSync(source, env={}) as sync:
        assert sync.running
        assert sync.load_source("shot").result(timeout=TIMEOUT) == (1.0, 24.0)
        stats = sync.set_time_cursor(24.0).result(timeout=TIMEOUT)
        assert stats.applied == 1

        with sync.read() as snap:
            assert snap.time_code == 24.0
            assert snap.meshes["/World/Tri"].transform[1, 3] == 5.0
            assert snap.camera.is_default

        assert sync.select_render_settings("/Render/Settings").result(timeout=TIMEOUT) is True
        assert sync.select_render_product("main").result(timeout=TIMEOUT) is True
        assert sync.snapshot().camera.path == "/cam"
        assert sync.select_render_product("missing").result(timeout=TIMEOUT) is False
        assert sync.snapshot().camera.path == "/cam"
        assert sync.select_render_product(None).result(timeout=TIMEOUT) is False
        assert sync.snapshot().camera.is_default

    assert not sync.running
    assert sync.metrics.snapshot()["counters"]["usd_scene_sync_command_load_source_total"] == 1


def test_load_failure_is_reported_on_future() -> None:
    with SceneSync(ScriptedSceneSource(), env={}) as sync:
        future = sync.load_source("nope")
        with pytest.raises(SceneSourceError):
            future.result(timeout=TIMEOUT)
        # the worker survives the failure
        assert sync.set_time_cursor(3.0).result(timeout=TIMEOUT).total == 0


def test_commands_require_running_worker() -> None:
    sync = SceneSync(ScriptedSceneSource(), env={})

    with pytest.raises(RuntimeError):
        sync.load_source("shot")
    assert sync.stop() is True


def test_config_flows_into_default_camera() -> None:
    env = {"USD_SCENE_SYNC_CONFIG": json.dumps({"camera": {"eye": [1, 2, 3], "fovy_deg": 45}})}
    sync = SceneSync(ScriptedSceneSource(), env=env)

    snap = sync.snapshot()
    assert snap.camera.eye == (1.0, 2.0, 3.0)
    assert snap.camera.fovy_deg == pytest.approx(45.0)


def test_restart_after_stop() -> None:
    sync = SceneSync(ScriptedSceneSource({"shot": _scene()}), env={})
    sync.start()
    sync.load_source("shot").result(timeout=TIMEOUT)
    assert sync.stop() is True

    sync.start()
    try:
        assert sync.set_time_cursor(1.0).result(timeout=TIMEOUT).total == 0
        assert sync.snapshot().time_code == 1.0
    finally:
        sync.stop()
