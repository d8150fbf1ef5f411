from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import threading
from typing import Optional

from .core.control_loop import ControlLoop, run_formation
from .core.position_store import PositionStore
from .core.state_machine import TakeoffSequencer
from .core.types import GeoFix, TakeoffOutcome
from .settings import AppConfig, load_config
from .utils.logging_setup import setup_logging

EXIT_TAKEOFF_FAILED = 2


def build_transport(transport: str, cfg: AppConfig, store: PositionStore):
    """Return (executor, telemetry_sink, velocity_sink, closers) for the chosen transport."""
    if transport == "sim":
        from .sim.pair import SimulatedPair

        pair = SimulatedPair(
            store,
            self_start=GeoFix(latitude=cfg.sim.self_lat, longitude=cfg.sim.self_lon),
            neighbor=GeoFix(latitude=cfg.sim.neighbor_lat, longitude=cfg.sim.neighbor_lon),
            dt_s=1.0 / cfg.formation.rate_hz,
            climb_time_s=cfg.sim.climb_time_s,
        )
        pair.start()
        return pair, pair, pair, [pair.stop]

    from .mavlink.vehicle import MavlinkVehicle
    from .radio.serial_link import SerialRadioLink

    vehicle = MavlinkVehicle(
        store,
        url=cfg.mavlink.url,
        system_id=cfg.mavlink.system_id,
        component_id=cfg.mavlink.component_id,
        takeoff_mode=cfg.mavlink.takeoff_mode,
    )
    radio = SerialRadioLink(
        port=cfg.radio.port,
        baudrate=cfg.radio.baudrate,
        timeout_s=cfg.radio.timeout_s,
        on_neighbor=store.update_neighbor,
    )
    vehicle.start()
    radio.start()
    return vehicle, radio, vehicle, [radio.stop, vehicle.stop]


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="formation-leader")
    sub = parser.add_subparsers(dest="cmd", required=True)
    runp = sub.add_parser("run", help="Take off and hold separation from the neighbour")
    runp.add_argument("--transport", choices=("mavlink", "sim"), default="mavlink")
    runp.add_argument("--config", type=str, default=None, help="Path to default.yaml override")
    runp.add_argument("--mavlink-url", type=str, default=os.getenv("MAVLINK_URL", None))
    runp.add_argument("--serial-port", type=str, default=os.getenv("SERIAL_PORT", None))
    runp.add_argument("--baudrate", type=int, default=None)
    runp.add_argument("--log-level", type=str, default=os.getenv("LOG_LEVEL", None))
    runp.add_argument("--no-log-file", action="store_true", help="Log to console only")

    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    log_cfg = cfg.logging
    setup_logging(
        args.log_level or log_cfg.level,
        to_file=log_cfg.to_file and not args.no_log_file,
        log_dir=log_cfg.log_dir,
        max_bytes=log_cfg.max_bytes,
        backup_count=log_cfg.backup_count,
        module_levels=log_cfg.module_levels,
    )
    logger = logging.getLogger(__name__)

    baudrate = args.baudrate or (int(os.environ["BAUDRATE"]) if os.getenv("BAUDRATE") else None)
    cfg = cfg.model_copy(
        update={
            "mavlink": cfg.mavlink.model_copy(update={"url": args.mavlink_url or cfg.mavlink.url}),
            "radio": cfg.radio.model_copy(
                update={
                    "port": args.serial_port or cfg.radio.port,
                    "baudrate": baudrate or cfg.radio.baudrate,
                }
            ),
        }
    )
    logger.info(
        "Target separation %.1f m, gain %.3f, speed cap %.1f m/s",
        cfg.formation.target_separation_m,
        cfg.formation.gain,
        cfg.formation.max_speed_m_s,
    )

    store = PositionStore()
    executor, telemetry, actuator, closers = build_transport(args.transport, cfg, store)

    sequencer = TakeoffSequencer(
        executor,
        height_m=cfg.formation.takeoff_height_m,
        timeout_s=cfg.formation.takeoff_timeout_s,
        settle_s=cfg.formation.settle_delay_s,
    )
    loop = ControlLoop(store, telemetry, actuator, cfg.formation)

    stop = threading.Event()

    def handle_sigint(signum, frame):  # noqa: ARG001
        stop.set()
        if sequencer.outcome is None:
            # still blocked in the takeoff handshake
            raise KeyboardInterrupt

    prev_int = signal.signal(signal.SIGINT, handle_sigint)
    prev_term = signal.signal(signal.SIGTERM, handle_sigint)

    try:
        outcome = run_formation(sequencer, loop, stop)
    except KeyboardInterrupt:
        logger.warning("Interrupted during takeoff: land the vehicle manually")
        return EXIT_TAKEOFF_FAILED
    finally:
        for close in closers:
            close()
        signal.signal(signal.SIGINT, prev_int)
        signal.signal(signal.SIGTERM, prev_term)

    if outcome is not TakeoffOutcome.SUCCEEDED:
        logger.warning("Automated sequence aborted (%s): land the vehicle manually", outcome.value)
        return EXIT_TAKEOFF_FAILED
    return 0


if __name__ == "__main__":
    sys.exit(main())
