from __future__ import annotations

import threading
from dataclasses import dataclass

from .types import GeoFix


@dataclass(slots=True, frozen=True)
class PositionSnapshot:
    self_fix: GeoFix
    neighbor_fix: GeoFix


class PositionStore:
    """Latest self and neighbour fixes, written by transport threads and read per tick.

    Each fix is replaced as a whole under its own lock (last write wins), so a
    reader never sees the latitude of one update paired with the longitude of
    another. Both fixes start at ``(0, 0)``.
    """

    def __init__(self) -> None:
        self._self_fix = GeoFix()
        self._neighbor_fix = GeoFix()
        self._self_lock = threading.Lock()
        self._neighbor_lock = threading.Lock()

    def update_self(self, fix: GeoFix) -> None:
        with self._self_lock:
            self._self_fix = fix

    def update_neighbor(self, fix: GeoFix) -> None:
        with self._neighbor_lock:
            self._neighbor_fix = fix

    def snapshot(self) -> PositionSnapshot:
        with self._self_lock:
            self_fix = self._self_fix
        with self._neighbor_lock:
            neighbor_fix = self._neighbor_fix
        return PositionSnapshot(self_fix=self_fix, neighbor_fix=neighbor_fix)
