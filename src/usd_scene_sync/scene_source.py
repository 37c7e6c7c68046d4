"""Scene source errors and an in-memory scripted reader.

`ScriptedSceneReader` replays pre-built event batches keyed by time code. It
is what tests drive the worker with, and it lets integrators replay diffs
captured from a real reader.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from usd_scene_sync.mirror.events import SceneEvent
from usd_scene_sync.scene_types import SceneReader, TimeCodeRange


logger = logging.getLogger(__name__)


class SceneSourceError(RuntimeError):
    """Raised when a scene source cannot be opened or read."""


class ScriptedSceneReader:
    """Reader that returns scripted batches.

    Parameters
    ----------
    initial
        Events returned by the first `extract()` call, ahead of that time
        code's own batch (the full-scene announcement).
    batches
        Events returned when `extract()` is called with a given time code.
    time_range
        Value reported by `time_code_range()`; derived from ``batches`` when
        omitted.
    """

    def __init__(
        self,
        initial: Sequence[SceneEvent] = (),
        batches: Optional[Mapping[float, Sequence[SceneEvent]]] = None,
        *,
        time_range: Optional[TimeCodeRange] = None,
    ) -> None:
        self._initial: List[SceneEvent] = list(initial)
        self._batches: Dict[float, List[SceneEvent]] = {
            float(tc): list(events) for tc, events in (batches or {}).items()
        }
        if time_range is None and self._batches:
            time_range = (min(self._batches), max(self._batches))
        self._time_range = time_range
        self._primed = False
        self.closed = False
        self.extract_calls: List[float] = []

    def time_code_range(self) -> Optional[TimeCodeRange]:
        return self._time_range

    def extract(self, time_code: float) -> Sequence[SceneEvent]:
        if self.closed:
            raise SceneSourceError("reader is closed")
        tc = float(time_code)
        self.extract_calls.append(tc)
        events: List[SceneEvent] = []
        if not self._primed:
            events.extend(self._initial)
            self._primed = True
        events.extend(self._batches.get(tc, ()))
        return events

    def close(self) -> None:
        self.closed = True


class ScriptedSceneSource:
    """Opener over a fixed set of readers keyed by identifier."""

    def __init__(self, readers: Optional[Mapping[str, SceneReader]] = None) -> None:
        self._readers: Dict[str, SceneReader] = dict(readers or {})
        self.opened: List[str] = []

    def register(self, identifier: str, reader: SceneReader) -> None:
        self._readers[identifier] = reader

    def __call__(self, identifier: str) -> SceneReader:
        reader = self._readers.get(identifier)
        if reader is None:
            raise SceneSourceError(f"Scene source does not exist: {identifier}")
        self.opened.append(identifier)
        logger.debug("opened scripted scene %s", identifier)
        return reader


__all__ = ["SceneSourceError", "ScriptedSceneReader", "ScriptedSceneSource"]
