from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from ..radio.codec import encode_position
from ..settings import FormationConfig
from ..utils.geo import geodesic_distance_m, planar_distance_m, project_equirectangular
from .controllers import compute_velocity
from .position_store import PositionStore
from .state_machine import TakeoffSequencer
from .types import TakeoffOutcome, VelocityCommand

log = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    def publish_text(self, text: str) -> None: ...


class VelocitySink(Protocol):
    def publish_velocity(self, cmd: VelocityCommand) -> None: ...


class ControlLoop:
    """Fixed-rate formation loop: snapshot, telemetry, control, publish."""

    def __init__(
        self,
        store: PositionStore,
        telemetry: TelemetrySink,
        actuator: VelocitySink,
        cfg: FormationConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.telemetry = telemetry
        self.actuator = actuator
        self.cfg = cfg
        self._clock = clock
        self.ticks = 0

    def tick(self) -> VelocityCommand:
        snap = self.store.snapshot()
        self_fix, neighbor_fix = snap.self_fix, snap.neighbor_fix

        self.telemetry.publish_text(encode_position(self_fix))
        log.debug("self lat=%f lon=%f", self_fix.latitude, self_fix.longitude)
        log.debug("neighbor lat=%f lon=%f", neighbor_fix.latitude, neighbor_fix.longitude)

        vx, vy = compute_velocity(
            self_fix,
            neighbor_fix,
            self.cfg.target_separation_m,
            self.cfg.gain,
            self.cfg.max_speed_m_s,
            self.cfg.bias_velocity,
        )
        cmd = VelocityCommand(x=vx, y=vy, stamp=self._clock())
        self.actuator.publish_velocity(cmd)
        self.ticks += 1

        if log.isEnabledFor(logging.DEBUG) and not neighbor_fix.is_sentinel:
            planar = planar_distance_m(project_equirectangular(self_fix), project_equirectangular(neighbor_fix))
            log.debug(
                "separation planar=%.2f m geodesic=%.2f m",
                planar,
                geodesic_distance_m(self_fix, neighbor_fix),
            )
        log.debug("velocity x=%f y=%f", cmd.x, cmd.y)
        return cmd

    def run(self, stop: threading.Event) -> None:
        period = 1.0 / self.cfg.rate_hz
        log.info("Formation loop running at %.1f Hz", self.cfg.rate_hz)
        while not stop.is_set():
            start = time.monotonic()
            self.tick()
            stop.wait(max(0.0, period - (time.monotonic() - start)))
        log.info("Formation loop stopped after %d ticks", self.ticks)


def run_formation(sequencer: TakeoffSequencer, loop: ControlLoop, stop: threading.Event) -> TakeoffOutcome:
    """Take off, then run the loop until ``stop`` is set. The loop never starts unless takeoff succeeded."""
    outcome = sequencer.run()
    if outcome is TakeoffOutcome.SUCCEEDED:
        loop.run(stop)
    return outcome
