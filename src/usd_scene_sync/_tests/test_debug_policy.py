from __future__ import annotations

import json
import logging

import pytest

from usd_scene_sync.logging_policy import load_debug_policy, log_level


def test_unset_policy_is_disabled() -> None:
    policy = load_debug_policy({})

    assert not policy.enabled
    assert not any(vars(policy.logging).values())
    assert policy.worker.max_logged_events == 32


@pytest.mark.parametrize("raw", ["0", "false", "off", ""])
def test_falsy_tokens_disable(raw: str) -> None:
    assert not load_debug_policy({"USD_SCENE_SYNC_DEBUG": raw}).enabled


def test_truthy_token_enables_everything() -> None:
    policy = load_debug_policy({"USD_SCENE_SYNC_DEBUG": "yes"})

    assert policy.enabled
    assert all(vars(policy.logging).values())


def test_flag_list_selects_toggles() -> None:
    policy = load_debug_policy({"USD_SCENE_SYNC_DEBUG": "Diff, camera"})

    assert policy.logging.log_diff_events
    assert policy.logging.log_camera_chain
    assert not policy.logging.log_mesh_resolve
    assert not policy.logging.log_snapshot_publish


def test_json_object_configures_worker() -> None:
    raw = json.dumps(
        {"flags": ["worker"], "worker": {"trace_batches": "on", "max_logged_events": -3}}
    )

    policy = load_debug_policy({"USD_SCENE_SYNC_DEBUG": raw})

    assert policy.enabled
    assert policy.logging.log_worker_commands
    assert policy.worker.trace_batches
    assert policy.worker.max_logged_events == 0


def test_json_object_can_disable() -> None:
    raw = json.dumps({"enabled": False, "flags": ["all"], "worker": {"trace_batches": True}})

    policy = load_debug_policy({"USD_SCENE_SYNC_DEBUG": raw})

    assert not policy.enabled
    assert not policy.logging.log_diff_events
    assert not policy.worker.trace_batches


def test_log_level_follows_toggle() -> None:
    assert log_level(True) == logging.INFO
    assert log_level(False) == logging.DEBUG
