from __future__ import annotations

import logging
import logging.handlers
import os
from typing import Mapping, Optional

LOG_FILE_NAME = "formation_leader.log"


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def setup_logging(
    level: str = "INFO",
    to_file: bool = True,
    log_dir: Optional[str] = None,
    *,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    module_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """Configure root logger with console and optional RotatingFileHandler.

    Args:
        level: Root log level name (e.g., "DEBUG", "INFO").
        to_file: If True, also write logs to <log_dir>/formation_leader.log with rotation.
        log_dir: Directory for log files; defaults to ./logs.
        max_bytes: Rotation size of the log file.
        backup_count: Number of rotated files kept.
        module_levels: Per-logger overrides, e.g. ``{"formation_leader.core.control_loop": "DEBUG"}``
            to trace the per-tick values of the loop without the MAVLink chatter.
    """
    lvl = _level(level)
    logger = logging.getLogger()
    logger.setLevel(lvl)

    for h in list(logger.handlers):
        logger.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s %(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # handlers pass everything; levels are decided per logger
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if to_file:
        log_dir = log_dir or os.path.join(os.getcwd(), "logs")
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME), maxBytes=max_bytes, backupCount=backup_count
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    for name, mod_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(_level(mod_level))
