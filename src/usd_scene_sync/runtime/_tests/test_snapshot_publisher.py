from __future__ import annotations

import threading

import pytest

from usd_scene_sync.runtime import SceneSnapshot, SnapshotPublisher
from usd_scene_sync.runtime.snapshot import freeze_mapping


def test_publish_stamps_increasing_versions() -> None:
    publisher = SnapshotPublisher()
    assert publisher.version == 0

    first = publisher.publish(SceneSnapshot(time_code=1.0))
    second = publisher.publish(SceneSnapshot(time_code=2.0))

    assert (first.version, second.version) == (1, 2)
    assert publisher.snapshot() is second


def test_read_holds_the_lock_for_the_block() -> None:
    publisher = SnapshotPublisher()
    entered = threading.Event()
    release = threading.Event()
    published = threading.Event()

    def reader() -> None:
        with publisher.read() as snap:
            assert snap.version == 0
            entered.set()
            release.wait(timeout=5.0)

    def writer() -> None:
        publisher.publish(SceneSnapshot())
        published.set()

    r = threading.Thread(target=reader)
    r.start()
    assert entered.wait(timeout=5.0)
    w = threading.Thread(target=writer)
    w.start()

    assert not published.wait(timeout=0.1)
    release.set()
    r.join(timeout=5.0)
    w.join(timeout=5.0)
    assert published.is_set()
    assert publisher.version == 1


def test_frozen_mappings_are_read_only() -> None:
    source = {"/a": 1}
    frozen = freeze_mapping(source)
    source["/b"] = 2

    assert dict(frozen) == {"/a": 1}
    with pytest.raises(TypeError):
        frozen["/c"] = 3
