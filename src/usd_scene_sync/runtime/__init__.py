"""Worker runtime: command channel, scene worker, lifecycle and facade."""

from .command_channel import ChannelClosedError, CommandChannel
from .commands import (
    LoadSource,
    SceneCommand,
    SelectRenderProduct,
    SelectRenderSettings,
    SetTimeCursor,
    Stop,
)
from .scene_sync import SceneSync
from .scene_worker import SceneWorker
from .snapshot import SceneSnapshot, SnapshotPublisher
from .worker_lifecycle import WorkerLifecycleState, start_worker, stop_worker

__all__ = [
    "ChannelClosedError",
    "CommandChannel",
    "LoadSource",
    "SceneCommand",
    "SceneSnapshot",
    "SceneSync",
    "SceneWorker",
    "SelectRenderProduct",
    "SelectRenderSettings",
    "SetTimeCursor",
    "SnapshotPublisher",
    "Stop",
    "WorkerLifecycleState",
    "start_worker",
    "stop_worker",
]
