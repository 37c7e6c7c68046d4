"""Commands sent from the caller thread to the scene worker.

Every command carries a `concurrent.futures.Future` that the worker completes
with the command outcome once the resulting snapshot has been published.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class LoadSource:
    """Open ``identifier`` and replace the whole scene.

    Resolves to the discovered time-code range (or ``None``).
    """

    identifier: str
    future: Future = field(default_factory=Future, compare=False, repr=False)


@dataclass(frozen=True)
class SetTimeCursor:
    """Extract and apply the diff for ``value``; resolves to `ApplyStats`."""

    value: float
    future: Future = field(default_factory=Future, compare=False, repr=False)


@dataclass(frozen=True)
class SelectRenderSettings:
    path: Optional[str]
    future: Future = field(default_factory=Future, compare=False, repr=False)


@dataclass(frozen=True)
class SelectRenderProduct:
    name: Optional[str]
    future: Future = field(default_factory=Future, compare=False, repr=False)


@dataclass(frozen=True)
class Stop:
    future: Future = field(default_factory=Future, compare=False, repr=False)


SceneCommand = Union[LoadSource, SetTimeCursor, SelectRenderSettings, SelectRenderProduct, Stop]


_COMMAND_NAMES = {
    LoadSource: "load_source",
    SetTimeCursor: "set_time_cursor",
    SelectRenderSettings: "select_render_settings",
    SelectRenderProduct: "select_render_product",
    Stop: "stop",
}


def command_name(command: SceneCommand) -> str:
    return _COMMAND_NAMES.get(type(command), type(command).__name__.lower())


__all__ = [
    "LoadSource",
    "SceneCommand",
    "SelectRenderProduct",
    "SelectRenderSettings",
    "SetTimeCursor",
    "Stop",
    "command_name",
]
