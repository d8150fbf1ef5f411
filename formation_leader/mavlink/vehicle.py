from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from typing import Optional

from pymavlink import mavutil  # type: ignore[import]

from ..core.position_store import PositionStore
from ..core.types import GeoFix, TakeoffRequest, VelocityCommand

log = logging.getLogger(__name__)

# velocity-only setpoint: ignore position, acceleration, yaw and yaw rate
VELOCITY_TYPE_MASK = 0b0000_1101_1100_0111
TAKEOFF_REACHED_RATIO = 0.95


class TakeoffRejected(RuntimeError):
    """The autopilot refused a command that is part of the takeoff sequence."""


class MavlinkVehicle:
    """MAVLink link to the autopilot: self GPS in, velocity setpoints out, takeoff executor."""

    def __init__(
        self,
        store: PositionStore,
        *,
        url: str = "udpin:0.0.0.0:14540",
        system_id: int = 255,
        component_id: int = mavutil.mavlink.MAV_COMP_ID_ONBOARD_COMPUTER,
        takeoff_mode: str = "GUIDED",
    ) -> None:
        self.store = store
        self.url = url
        self.system_id = int(system_id)
        self.component_id = int(component_id)
        self.takeoff_mode = takeoff_mode

        self._conn: Optional[mavutil.mavfile] = None
        self._read_thread: Optional[threading.Thread] = None
        self._running = False
        self._boot_time = time.time()
        self._ready = threading.Event()

        self.target_system: Optional[int] = None
        self.target_component: Optional[int] = None
        self.armed = False
        self.relative_alt_m = 0.0

        self._takeoff_lock = threading.Lock()
        self._takeoff_future: Optional[Future] = None
        self._takeoff_height_m = 0.0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._running:
            return
        log.info("Connecting to autopilot on %s", self.url)
        self._conn = mavutil.mavlink_connection(
            self.url,
            source_system=self.system_id,
            source_component=self.component_id,
            autoreconnect=True,
        )
        self._running = True
        self._read_thread = threading.Thread(target=self._read_loop, name="mavlink-read", daemon=True)
        self._read_thread.start()

    def stop(self) -> None:
        if not self._running:
            return
        log.info("Closing autopilot link")
        self._running = False
        if self._read_thread and self._read_thread.is_alive():
            self._read_thread.join(timeout=2.0)
        if self._conn is not None:
            try:
                self._conn.close()
            except Exception as exc:  # pragma: no cover - transport error
                log.debug("MAVLink close failed: %s", exc)
        self._conn = None

    # ------------------------------------------------------------------
    # TakeoffExecutor
    # ------------------------------------------------------------------
    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Block until the first autopilot heartbeat has been seen."""
        return self._ready.wait(timeout)

    def request_takeoff(self, request: TakeoffRequest) -> Future:
        future: Future = Future()
        with self._takeoff_lock:
            self._takeoff_future = future
            self._takeoff_height_m = request.height_m
        self._set_mode(self.takeoff_mode)
        self._send_command(mavutil.mavlink.MAV_CMD_COMPONENT_ARM_DISARM, 1.0)
        self._send_command(mavutil.mavlink.MAV_CMD_NAV_TAKEOFF, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, float(request.height_m))
        log.info("Takeoff requested (mode=%s, height=%.1f m)", self.takeoff_mode, request.height_m)
        return future

    # ------------------------------------------------------------------
    # VelocitySink
    # ------------------------------------------------------------------
    def publish_velocity(self, cmd: VelocityCommand) -> None:
        # airframe x is north (latitude), airframe y points west (against longitude)
        time_boot_ms = int(max(0.0, cmd.stamp - self._boot_time) * 1000) & 0xFFFFFFFF
        self._safe_send(
            "set_position_target_local_ned_send",
            time_boot_ms,
            self.target_system or 1,
            self.target_component or 1,
            mavutil.mavlink.MAV_FRAME_LOCAL_NED,
            VELOCITY_TYPE_MASK,
            0.0,
            0.0,
            0.0,
            cmd.x,
            -cmd.y,
            0.0,
            0.0,
            0.0,
            0.0,
            0.0,
            0.0,
        )

    # ------------------------------------------------------------------
    # Internal loop
    # ------------------------------------------------------------------
    def _read_loop(self) -> None:
        assert self._conn is not None
        while self._running:
            try:
                msg = self._conn.recv_match(blocking=True, timeout=0.5)
            except Exception as exc:  # pragma: no cover - transport error
                log.debug("MAVLink recv error: %s", exc)
                continue
            if not self._running:
                break
            if msg is None or msg.get_type() == "BAD_DATA":
                continue
            handler_name = f"_handle_{msg.get_type().lower()}"
            handler = getattr(self, handler_name, None)
            if handler:
                try:
                    handler(msg)
                except Exception as exc:  # pragma: no cover - defensive
                    log.warning("MAVLink handler %s failed: %s", handler_name, exc)

    # ------------------------------------------------------------------
    # Message handlers
    # ------------------------------------------------------------------
    def _handle_heartbeat(self, msg) -> None:
        # cameras, gimbals and companion computers report MAV_AUTOPILOT_INVALID
        if msg.type == mavutil.mavlink.MAV_TYPE_GCS or msg.autopilot == mavutil.mavlink.MAV_AUTOPILOT_INVALID:
            return
        if self.target_system is not None and (
            msg.get_srcSystem() != self.target_system or msg.get_srcComponent() != self.target_component
        ):
            return
        if self.target_system is None:
            self.target_system = msg.get_srcSystem()
            self.target_component = msg.get_srcComponent()
            log.info(
                "Autopilot heartbeat from system=%s component=%s",
                self.target_system,
                self.target_component,
            )
        self.armed = bool(msg.base_mode & mavutil.mavlink.MAV_MODE_FLAG_SAFETY_ARMED)
        self._ready.set()

    def _handle_global_position_int(self, msg) -> None:
        self.store.update_self(GeoFix(latitude=msg.lat / 1e7, longitude=msg.lon / 1e7))
        self.relative_alt_m = msg.relative_alt / 1000.0
        with self._takeoff_lock:
            future = self._takeoff_future
            target = self._takeoff_height_m
        if future is not None and not future.done() and self.relative_alt_m >= TAKEOFF_REACHED_RATIO * target:
            log.info("Takeoff complete at %.2f m", self.relative_alt_m)
            future.set_result(self.relative_alt_m)

    def _handle_command_ack(self, msg) -> None:
        if msg.command not in (
            mavutil.mavlink.MAV_CMD_COMPONENT_ARM_DISARM,
            mavutil.mavlink.MAV_CMD_NAV_TAKEOFF,
            mavutil.mavlink.MAV_CMD_DO_SET_MODE,
        ):
            return
        if msg.result in (mavutil.mavlink.MAV_RESULT_ACCEPTED, mavutil.mavlink.MAV_RESULT_IN_PROGRESS):
            log.debug("Command %d accepted", msg.command)
            return
        log.warning("Command %d rejected (result=%d)", msg.command, msg.result)
        with self._takeoff_lock:
            future = self._takeoff_future
        if future is not None and not future.done():
            future.set_exception(TakeoffRejected(f"command {msg.command} rejected with result {msg.result}"))

    # ------------------------------------------------------------------
    # Low level send helpers
    # ------------------------------------------------------------------
    def _set_mode(self, mode: str) -> None:
        if self._conn is None:
            return
        mapping = self._conn.mode_mapping() or {}
        if mode not in mapping:
            log.warning("Flight mode %s unknown to this autopilot, leaving mode unchanged", mode)
            return
        value = mapping[mode]
        if isinstance(value, tuple):
            # PX4 maps a mode to (base_mode, main_mode, sub_mode)
            params = tuple(float(v) for v in value)
        else:
            params = (float(mavutil.mavlink.MAV_MODE_FLAG_CUSTOM_MODE_ENABLED), float(value))
        self._send_command(mavutil.mavlink.MAV_CMD_DO_SET_MODE, *params)

    def _send_command(self, command: int, *params: float) -> None:
        padded = (tuple(params) + (0.0,) * 7)[:7]
        self._safe_send(
            "command_long_send",
            self.target_system or 1,
            self.target_component or 1,
            command,
            0,
            *padded,
        )

    def _safe_send(self, name: str, *args) -> None:
        if self._conn is None:
            return
        try:
            getattr(self._conn.mav, name)(*args)
        except Exception as exc:  # pragma: no cover - transport error
            log.debug("Failed to send MAVLink message %s: %s", name, exc)


__all__ = ["MavlinkVehicle", "TakeoffRejected", "VELOCITY_TYPE_MASK"]
