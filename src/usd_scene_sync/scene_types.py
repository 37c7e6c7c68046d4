"""Reader-side protocols for scene sources."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, Tuple, runtime_checkable

from usd_scene_sync.mirror.events import SceneEvent


TimeCodeRange = Tuple[float, float]


@runtime_checkable
class SceneReader(Protocol):
    """An opened scene that emits attribute diffs per time code.

    The first `extract()` after opening returns the full scene as
    ``AddOrUpdate`` events followed by their field setters; later calls
    return only what changed since the previous call.
    """

    def time_code_range(self) -> Optional[TimeCodeRange]:
        ...

    def extract(self, time_code: float) -> Sequence[SceneEvent]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class SceneOpener(Protocol):
    """Callable that opens ``identifier``; raises `SceneSourceError` on failure."""

    def __call__(self, identifier: str) -> SceneReader:
        ...


__all__ = ["SceneOpener", "SceneReader", "TimeCodeRange"]
