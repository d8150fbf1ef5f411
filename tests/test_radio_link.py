from __future__ import annotations

import queue
import time
from typing import List

import pytest

from formation_leader.core.position_store import PositionStore
from formation_leader.core.types import GeoFix
from formation_leader.radio.serial_link import SerialRadioLink


class LoopbackSerial:
    """In-memory stand-in for ``serial.Serial``."""

    def __init__(self) -> None:
        self.written: List[bytes] = []
        self.closed = False
        self.in_waiting = 0
        self._incoming: "queue.Queue[bytes]" = queue.Queue()

    def inject(self, data: bytes) -> None:
        self._incoming.put(data)

    def read(self, size: int = 1) -> bytes:
        try:
            return self._incoming.get(timeout=0.05)
        except queue.Empty:
            return b""

    def write(self, data: bytes) -> int:
        self.written.append(data)
        return len(data)

    def close(self) -> None:
        self.closed = True


def test_publish_text_writes_ascii_frame():
    device = LoopbackSerial()
    radio = SerialRadioLink(device=device)
    radio.publish_text("o7a45#")
    assert device.written == [b"o7a45#"]


def test_publish_without_device_is_dropped():
    SerialRadioLink().publish_text("o7a45#")


def test_start_without_port_or_device_fails():
    with pytest.raises(ValueError):
        SerialRadioLink().start()


def test_feed_forwards_neighbor_fixes():
    received: List[GeoFix] = []
    radio = SerialRadioLink(device=LoopbackSerial(), on_neighbor=received.append)
    assert radio.feed(b"o7.0002a45#o7a4") == 1
    assert radio.feed(b"6#") == 1
    assert received == [GeoFix(lat=45.0, lon=7.0002), GeoFix(lat=46.0, lon=7.0)]


def test_reader_thread_updates_store():
    store = PositionStore()
    device = LoopbackSerial()
    radio = SerialRadioLink(device=device, on_neighbor=store.update_neighbor)
    radio.start()
    try:
        device.inject(b"o7.0001a45.0001#")
        deadline = time.time() + 5.0
        while store.snapshot().neighbor_fix.is_sentinel and time.time() < deadline:
            time.sleep(0.01)
    finally:
        radio.stop()

    assert store.snapshot().neighbor_fix == GeoFix(latitude=45.0001, longitude=7.0001)
    assert device.closed
