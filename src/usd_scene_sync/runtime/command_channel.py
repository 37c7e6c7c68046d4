"""Thread-safe FIFO channel carrying commands to the scene worker."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, List, Optional

from usd_scene_sync.runtime.commands import SceneCommand


class ChannelClosedError(RuntimeError):
    """Raised when sending on a channel whose worker has stopped."""


class CommandChannel:
    """Queue the caller fills and the worker drains one command at a time."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._commands: Deque[SceneCommand] = deque()
        self._closed = False

    def send(self, command: SceneCommand) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosedError("scene worker channel is closed")
            self._commands.append(command)
            self._not_empty.notify()

    def receive(self, timeout: Optional[float] = None) -> Optional[SceneCommand]:
        """Block until a command arrives; ``None`` on timeout or once closed."""
        with self._not_empty:
            if not self._commands and not self._closed:
                self._not_empty.wait(timeout)
            if not self._commands:
                return None
            return self._commands.popleft()

    def close(self) -> List[SceneCommand]:
        """Refuse further sends and return whatever was still queued."""
        with self._lock:
            self._closed = True
            drained = list(self._commands)
            self._commands.clear()
            self._not_empty.notify_all()
            return drained

    def reopen(self) -> None:
        with self._lock:
            self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)


__all__ = ["ChannelClosedError", "CommandChannel"]
