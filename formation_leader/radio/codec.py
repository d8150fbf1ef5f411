from __future__ import annotations

import logging
import re
from typing import List

from ..core.types import GeoFix

log = logging.getLogger(__name__)

FRAME_END = "#"

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_FRAME_RE = re.compile(rf"o(?P<lon>{_NUMBER})a(?P<lat>{_NUMBER})$")


def format_number(value: float) -> str:
    """Default iostream float rendering: six significant digits, no trailing zeros."""
    return format(value, "g")


def encode_position(fix: GeoFix) -> str:
    """Position string sent over the radio: ``o<longitude>a<latitude>#``.

    Longitude comes first. The downstream decoder depends on this exact layout.
    """
    return "o" + format_number(fix.longitude) + "a" + format_number(fix.latitude) + FRAME_END


def decode_position(frame: str) -> GeoFix:
    """Parse one frame (with or without the trailing ``#``)."""
    body = frame[:-1] if frame.endswith(FRAME_END) else frame
    m = _FRAME_RE.match(body.strip())
    if m is None:
        raise ValueError(f"malformed position frame: {frame!r}")
    return GeoFix(lat=float(m.group("lat")), lon=float(m.group("lon")))


class PositionFrameParser:
    """Incremental parser for a byte stream of ``o..a..#`` frames.

    Bytes are buffered until a ``#`` arrives. Malformed frames are dropped.
    """

    def __init__(self, max_buffer: int = 256) -> None:
        self._buf = ""
        self._max_buffer = max_buffer

    def feed(self, data: bytes) -> List[GeoFix]:
        self._buf += data.decode("ascii", errors="ignore")
        fixes: List[GeoFix] = []
        while FRAME_END in self._buf:
            frame, self._buf = self._buf.split(FRAME_END, 1)
            # resync on the last frame start in case of line noise
            start = frame.rfind("o")
            if start < 0:
                log.debug("Dropping frame without start marker: %r", frame)
                continue
            try:
                fixes.append(decode_position(frame[start:]))
            except ValueError as exc:
                log.debug("Dropping frame: %s", exc)
        if len(self._buf) > self._max_buffer:
            log.debug("Radio buffer overflow, discarding %d bytes", len(self._buf))
            self._buf = ""
        return fixes
