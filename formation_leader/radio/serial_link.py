from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from ..core.types import GeoFix
from .codec import PositionFrameParser

log = logging.getLogger(__name__)


class SerialDevice(Protocol):
    """Subset of ``serial.Serial`` used by the radio link."""

    in_waiting: int

    def read(self, size: int = 1) -> bytes: ...
    def write(self, data: bytes) -> Optional[int]: ...
    def close(self) -> None: ...


@dataclass
class SerialRadioLink:
    """Serial telemetry radio shared by the two drones.

    Outgoing: the self-position string once per tick. Incoming: the
    neighbour's position frames, decoded and handed to ``on_neighbor``.
    """

    port: Optional[str] = None
    baudrate: int = 57600
    timeout_s: float = 0.2
    on_neighbor: Optional[Callable[[GeoFix], None]] = None
    device: Optional[SerialDevice] = None
    _parser: PositionFrameParser = field(default_factory=PositionFrameParser, init=False, repr=False)
    _running: bool = field(default=False, init=False, repr=False)
    _thread: Optional[threading.Thread] = field(default=None, init=False, repr=False)

    def start(self) -> None:
        if self._running:
            return
        if self.device is None:
            if not self.port:
                raise ValueError("radio serial port is not configured")
            import serial  # local import, only needed on real hardware

            self.device = serial.Serial(self.port, self.baudrate, timeout=self.timeout_s)
            log.info("Radio opened on %s @ %d bps", self.port, self.baudrate)
        self._running = True
        self._thread = threading.Thread(target=self._read_loop, name="radio-read", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        if self.device is not None:
            try:
                self.device.close()
            except Exception as exc:  # pragma: no cover - hardware dependent
                log.debug("Radio close failed: %s", exc)

    def publish_text(self, text: str) -> None:
        if self.device is None:
            log.debug("Radio not open, dropping %r", text)
            return
        try:
            self.device.write(text.encode("ascii"))
        except Exception as e:
            log.warning("Radio send failed: %s", e)

    def feed(self, data: bytes) -> int:
        """Decode received bytes and forward complete neighbour fixes. Returns the number forwarded."""
        fixes = self._parser.feed(data)
        for fix in fixes:
            log.debug("Neighbour fix lat=%f lon=%f", fix.latitude, fix.longitude)
            if self.on_neighbor is not None:
                self.on_neighbor(fix)
        return len(fixes)

    def _read_loop(self) -> None:
        assert self.device is not None
        while self._running:
            try:
                data = self.device.read(max(1, self.device.in_waiting))
            except Exception as e:  # pragma: no cover - hardware dependent
                log.warning("Radio read failed: %s", e)
                time.sleep(self.timeout_s)
                continue
            if data:
                self.feed(data)


__all__ = ["SerialRadioLink", "SerialDevice"]
