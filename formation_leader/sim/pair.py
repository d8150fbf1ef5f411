from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future
from typing import Deque, Optional

from ..core.position_store import PositionStore
from ..core.types import GeoFix, TakeoffRequest, VelocityCommand
from ..utils.geo import METERS_PER_DEGREE

log = logging.getLogger(__name__)


class SimulatedPair:
    """Kinematic stand-in for the autopilot, the radio and a hovering neighbour.

    The self drone integrates each velocity command over ``dt_s`` in the same
    degree frame the projector uses; the airframe's y axis points against
    longitude. The neighbour holds its position.
    """

    def __init__(
        self,
        store: PositionStore,
        self_start: GeoFix,
        neighbor: GeoFix,
        dt_s: float = 0.1,
        climb_time_s: float = 1.0,
        history: int = 1000,
    ) -> None:
        self.store = store
        self.position = self_start
        self.neighbor = neighbor
        self.dt_s = dt_s
        self.climb_time_s = climb_time_s
        self.sent_text: Deque[str] = deque(maxlen=history)
        self.commands: Deque[VelocityCommand] = deque(maxlen=history)
        self._timer: Optional[threading.Timer] = None

    def start(self) -> None:
        self.store.update_self(self.position)
        self.store.update_neighbor(self.neighbor)

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    # TakeoffExecutor
    def wait_until_ready(self) -> None:
        return None

    def request_takeoff(self, request: TakeoffRequest) -> Future:
        future: Future = Future()
        log.info("Simulated climb to %.1f m (%.1f s)", request.height_m, self.climb_time_s)
        self._timer = threading.Timer(self.climb_time_s, self._finish_climb, args=(future, request.height_m))
        self._timer.daemon = True
        self._timer.start()
        return future

    def _finish_climb(self, future: Future, height_m: float) -> None:
        # the sequencer cancels the future once its wait times out
        if future.set_running_or_notify_cancel():
            future.set_result(height_m)
        else:
            log.debug("Simulated climb finished after the takeoff request was abandoned")

    # TelemetrySink
    def publish_text(self, text: str) -> None:
        self.sent_text.append(text)
        log.debug("Radio out: %s", text)

    # VelocitySink
    def publish_velocity(self, cmd: VelocityCommand) -> None:
        self.commands.append(cmd)
        self.position = GeoFix(
            latitude=self.position.latitude + cmd.x * self.dt_s / METERS_PER_DEGREE,
            longitude=self.position.longitude - cmd.y * self.dt_s / METERS_PER_DEGREE,
        )
        self.store.update_self(self.position)
