"""Resolve streamed USD scene diffs into renderable snapshots on a worker thread."""

from .config import SyncConfig, SyncCtx, load_sync_config, load_sync_ctx
from .logging_policy import DebugPolicy, load_debug_policy
from .metrics import Metrics
from .mirror import ApplyStats, EntityKind, Interpolation
from .resolve import MeshNotReadyError
from .runtime import SceneSnapshot, SceneSync
from .scene_source import SceneSourceError, ScriptedSceneReader, ScriptedSceneSource
from .scene_types import SceneOpener, SceneReader

__version__ = "0.1.0"

__all__ = [
    "ApplyStats",
    "DebugPolicy",
    "EntityKind",
    "Interpolation",
    "MeshNotReadyError",
    "Metrics",
    "SceneOpener",
    "SceneReader",
    "SceneSnapshot",
    "SceneSourceError",
    "SceneSync",
    "ScriptedSceneReader",
    "ScriptedSceneSource",
    "SyncConfig",
    "SyncCtx",
    "load_debug_policy",
    "load_sync_config",
    "load_sync_ctx",
]
