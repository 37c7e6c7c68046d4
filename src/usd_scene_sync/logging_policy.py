"""Central debug/logging policy plumbing for the scene sync worker.

All ``USD_SCENE_SYNC_DEBUG`` parsing happens here so the mirror, resolvers and
worker can consult a structured policy instead of reading the environment.
The variable accepts a truthy/falsy token, a comma separated flag list
(``"mesh,camera"``) or a JSON object::

    {"enabled": true, "flags": ["diff", "worker"], "worker": {"trace_batches": true}}
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggingToggles:
    log_diff_events: bool = False
    log_mesh_resolve: bool = False
    log_camera_chain: bool = False
    log_worker_commands: bool = False
    log_snapshot_publish: bool = False


@dataclass(frozen=True)
class WorkerDebug:
    trace_batches: bool = False
    max_logged_events: int = 32


@dataclass(frozen=True)
class DebugPolicy:
    enabled: bool
    logging: LoggingToggles
    worker: WorkerDebug


_LOG_FLAG_MAP: dict[str, Iterable[str]] = {
    "diff": ("log_diff_events",),
    "mesh": ("log_mesh_resolve",),
    "camera": ("log_camera_chain",),
    "worker": ("log_worker_commands",),
    "snapshot": ("log_snapshot_publish",),
    "all": (
        "log_diff_events",
        "log_mesh_resolve",
        "log_camera_chain",
        "log_worker_commands",
        "log_snapshot_publish",
    ),
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def _coerce_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        val = value.strip().lower()
        if val in _TRUTHY:
            return True
        if val in _FALSY:
            return False
    return default


def _coerce_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return int(default)
    return int(default)


def _split_flags(raw: object) -> set[str]:
    result: set[str] = set()
    items: Iterable[object]
    if raw is None:
        return result
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, Iterable):
        items = raw
    else:
        return result
    for item in items:
        token = str(item).strip().lower()
        if token:
            result.add(token)
    return result


def _load_debug_config(env: Mapping[str, str]) -> tuple[bool, dict[str, object]]:
    raw = env.get("USD_SCENE_SYNC_DEBUG")
    if raw is None:
        return False, {}
    raw_str = raw.strip()
    if raw_str.lower() in _FALSY:
        return False, {}
    if raw_str.lower() in _TRUTHY:
        return True, {"flags": ["all"]}
    try:
        parsed = json.loads(raw_str)
    except ValueError:
        logger.debug("USD_SCENE_SYNC_DEBUG is not JSON; treating as flag list")
        return True, {"flags": raw_str}
    if isinstance(parsed, dict):
        enabled = _coerce_bool(parsed.get("enabled", True), True)
        return enabled, parsed
    if isinstance(parsed, (list, tuple)):
        return True, {"flags": parsed}
    return True, {"flags": raw_str}


def load_debug_policy(env: Optional[Mapping[str, str]] = None) -> DebugPolicy:
    env = os.environ if env is None else env
    enabled, cfg = _load_debug_config(env)

    flags = _split_flags(cfg.get("flags")) if enabled else set()

    log_kwargs = {name: False for name in LoggingToggles.__annotations__.keys()}
    for flag, attrs in _LOG_FLAG_MAP.items():
        if flag in flags:
            for attr in attrs:
                log_kwargs[attr] = True

    worker_defaults = WorkerDebug()
    worker_kwargs = dict(worker_defaults.__dict__)
    worker_cfg = cfg.get("worker")
    if enabled and isinstance(worker_cfg, dict):
        if "trace_batches" in worker_cfg:
            worker_kwargs["trace_batches"] = _coerce_bool(
                worker_cfg["trace_batches"], worker_defaults.trace_batches
            )
        if "max_logged_events" in worker_cfg:
            worker_kwargs["max_logged_events"] = max(
                0, _coerce_int(worker_cfg["max_logged_events"], worker_defaults.max_logged_events)
            )

    return DebugPolicy(
        enabled=enabled,
        logging=LoggingToggles(**log_kwargs),
        worker=WorkerDebug(**worker_kwargs),
    )


def log_level(enabled: bool) -> int:
    """Level for toggle-gated chatter: INFO when the toggle is on, DEBUG otherwise."""
    return logging.INFO if enabled else logging.DEBUG


__all__ = [
    "DebugPolicy",
    "LoggingToggles",
    "WorkerDebug",
    "load_debug_policy",
    "log_level",
]
