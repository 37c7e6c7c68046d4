"""Typed configuration for the scene sync runtime.

The environment is read once by `load_sync_ctx()` and the resulting frozen
objects are passed to the worker; nothing below the facade touches
`os.environ`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple
import json
import logging
import os

from usd_scene_sync.logging_policy import DebugPolicy, load_debug_policy


logger = logging.getLogger(__name__)


Vec3 = Tuple[float, float, float]


# ---- Helpers -----------------------------------------------------------------

def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    v = env.get(name)
    if v is None:
        return int(default)
    try:
        return int(v)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %s", name, v, default)
        return int(default)


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    v = env.get(name)
    if v is None:
        return float(default)
    try:
        return float(v)
    except ValueError:
        logger.warning("%s=%r is not a number; using %s", name, v, default)
        return float(default)


def _env_str(env: Mapping[str, str], name: str, default: Optional[str] = None) -> Optional[str]:
    v = env.get(name)
    if v is None:
        return default
    v = v.strip()
    return v if v != "" else default


def _env_vec3(env: Mapping[str, str], name: str, default: Vec3) -> Vec3:
    v = env.get(name)
    if v is None:
        return default
    return _cfg_vec3(v.split(","), default, name=name)


def _cfg_int(value: object, default: int) -> int:
    if value is None:
        return int(default)
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


def _cfg_float(value: object, default: float) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool):
        return float(int(value))
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return float(default)
    return float(default)


def _cfg_str(value: object, default: str) -> str:
    if value is None:
        return default
    return str(value).strip() or default


def _cfg_vec3(value: object, default: Vec3, *, name: str = "vec3") -> Vec3:
    if value is None:
        return default
    if isinstance(value, (list, tuple)) and len(value) == 3:
        try:
            return (float(value[0]), float(value[1]), float(value[2]))
        except (TypeError, ValueError):
            pass
    logger.warning("%s=%r is not a 3-vector; using %s", name, value, default)
    return default


def _load_json_config(env: Mapping[str, str], name: str) -> dict[str, object]:
    raw = env.get(name)
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Failed to parse %s; ignoring", name, exc_info=True)
        return {}
    if isinstance(data, dict):
        return data
    logger.warning("%s must be a JSON object; ignoring", name)
    return {}


# ---- Types -------------------------------------------------------------------

@dataclass(frozen=True)
class SyncConfig:
    """Resolution and worker settings.

    The default camera is what the snapshot carries whenever the render
    settings chain does not name an existing camera.
    """

    # Default view camera, aimed from above at (0, 0.8, 0)
    default_camera_eye: Vec3 = (0.0, 1.8, 5.0)
    default_camera_direction: Vec3 = (0.0, -1.0, -5.0)
    default_camera_fovy_deg: float = 60.0

    # Geom subsets of this family become material sub-meshes
    face_set_kind: str = "typeFaceSet"

    # Worker
    initial_time_code: float = 0.0
    stop_timeout_s: float = 5.0


@dataclass(frozen=True)
class SyncCtx:
    """Resolved runtime context handed to the worker and facade."""

    cfg: SyncConfig = field(default_factory=SyncConfig)

    # Debug/logging policy
    debug_policy: DebugPolicy = field(default_factory=lambda: load_debug_policy({}))

    # Rolling window for metric histograms
    metrics_window: int = 512


def load_sync_config(env: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """Load configuration from environment (no side effects).

    Environment keys consulted:
    - USD_SCENE_SYNC_CAMERA_EYE, USD_SCENE_SYNC_CAMERA_DIRECTION ("x,y,z")
    - USD_SCENE_SYNC_CAMERA_FOVY (degrees)
    - USD_SCENE_SYNC_FACE_SET_KIND
    - USD_SCENE_SYNC_INITIAL_TIME_CODE, USD_SCENE_SYNC_STOP_TIMEOUT
    - USD_SCENE_SYNC_CONFIG (JSON object; keys named like the fields, wins over
      the individual variables)
    """

    env = os.environ if env is None else env
    base = SyncConfig()

    eye = _env_vec3(env, "USD_SCENE_SYNC_CAMERA_EYE", base.default_camera_eye)
    direction = _env_vec3(env, "USD_SCENE_SYNC_CAMERA_DIRECTION", base.default_camera_direction)
    fovy = _env_float(env, "USD_SCENE_SYNC_CAMERA_FOVY", base.default_camera_fovy_deg)
    face_set_kind = _env_str(env, "USD_SCENE_SYNC_FACE_SET_KIND", base.face_set_kind) or base.face_set_kind
    initial_time_code = _env_float(env, "USD_SCENE_SYNC_INITIAL_TIME_CODE", base.initial_time_code)
    stop_timeout_s = _env_float(env, "USD_SCENE_SYNC_STOP_TIMEOUT", base.stop_timeout_s)

    bundle = _load_json_config(env, "USD_SCENE_SYNC_CONFIG")
    camera = bundle.get("camera")
    if not isinstance(camera, dict):
        camera = bundle
    eye = _cfg_vec3(camera.get("default_camera_eye", camera.get("eye")), eye, name="eye")
    direction = _cfg_vec3(
        camera.get("default_camera_direction", camera.get("direction")), direction, name="direction"
    )
    fovy = _cfg_float(camera.get("default_camera_fovy_deg", camera.get("fovy_deg")), fovy)
    face_set_kind = _cfg_str(bundle.get("face_set_kind"), face_set_kind)
    initial_time_code = _cfg_float(bundle.get("initial_time_code"), initial_time_code)
    stop_timeout_s = _cfg_float(bundle.get("stop_timeout_s"), stop_timeout_s)

    if not 0.0 < fovy < 180.0:
        logger.warning("default camera fovy %.3f out of range; using %.1f", fovy, base.default_camera_fovy_deg)
        fovy = base.default_camera_fovy_deg
    if direction == (0.0, 0.0, 0.0):
        logger.warning("default camera direction is zero; using %s", base.default_camera_direction)
        direction = base.default_camera_direction

    return SyncConfig(
        default_camera_eye=eye,
        default_camera_direction=direction,
        default_camera_fovy_deg=float(fovy),
        face_set_kind=face_set_kind,
        initial_time_code=float(initial_time_code),
        stop_timeout_s=max(0.0, float(stop_timeout_s)),
    )


def load_sync_ctx(env: Optional[Mapping[str, str]] = None) -> SyncCtx:
    """Build a `SyncCtx` by reading environment once."""
    env = os.environ if env is None else env
    cfg = load_sync_config(env)
    bundle = _load_json_config(env, "USD_SCENE_SYNC_CONFIG")
    window = _env_int(env, "USD_SCENE_SYNC_METRICS_WINDOW", 512)
    window = _cfg_int(bundle.get("metrics_window"), window)
    return SyncCtx(
        cfg=cfg,
        debug_policy=load_debug_policy(env),
        metrics_window=max(16, window),
    )


__all__ = [
    "SyncConfig",
    "SyncCtx",
    "load_sync_config",
    "load_sync_ctx",
]
