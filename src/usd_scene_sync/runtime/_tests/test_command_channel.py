from __future__ import annotations

import threading
import time

import pytest

from usd_scene_sync.runtime import (
    ChannelClosedError,
    CommandChannel,
    LoadSource,
    SetTimeCursor,
    Stop,
)


def test_commands_are_received_in_order() -> None:
    channel = CommandChannel()
    first = LoadSource("a")
    second = SetTimeCursor(2.0)
    channel.send(first)
    channel.send(second)

    assert len(channel) == 2
    assert channel.receive(timeout=0) is first
    assert channel.receive(timeout=0) is second
    assert channel.receive(timeout=0) is None


def test_receive_blocks_until_send() -> None:
    channel = CommandChannel()
    received = []

    def consumer() -> None:
        received.append(channel.receive(timeout=5.0))

    thread = threading.Thread(target=consumer)
    thread.start()
    time.sleep(0.05)
    command = Stop()
    channel.send(command)
    thread.join(timeout=5.0)

    assert received == [command]


def test_close_returns_pending_and_rejects_sends() -> None:
    channel = CommandChannel()
    pending = SetTimeCursor(1.0)
    channel.send(pending)

    assert channel.close() == [pending]
    assert channel.closed
    assert channel.receive(timeout=0) is None
    with pytest.raises(ChannelClosedError):
        channel.send(Stop())

    channel.reopen()
    channel.send(pending)
    assert len(channel) == 1


def test_close_wakes_blocked_receiver() -> None:
    channel = CommandChannel()
    results = []
    thread = threading.Thread(target=lambda: results.append(channel.receive()))
    thread.start()
    time.sleep(0.05)

    channel.close()
    thread.join(timeout=5.0)

    assert not thread.is_alive()
    assert results == [None]
