from __future__ import annotations

import logging
import os

import pytest

from formation_leader.settings import AppConfig, load_config
from formation_leader.utils.logging_setup import LOG_FILE_NAME, setup_logging


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    touched = ["formation_leader.core.control_loop", "formation_leader.mavlink.vehicle"]
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        if h not in handlers:
            h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    for name in touched:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_module_levels_trace_one_logger_only(root_logger, tmp_path):
    setup_logging(
        "INFO",
        log_dir=str(tmp_path),
        module_levels={"formation_leader.core.control_loop": "debug"},
    )

    logging.getLogger("formation_leader.core.control_loop").debug("velocity x=1.0 y=0.0")
    logging.getLogger("formation_leader.mavlink.vehicle").debug("Command 22 accepted")
    for h in root_logger.handlers:
        h.flush()

    text = (tmp_path / LOG_FILE_NAME).read_text(encoding="utf-8")
    assert "velocity x=1.0 y=0.0" in text
    assert "Command 22 accepted" not in text
    assert "[MainThread formation_leader.core.control_loop]" in text


def test_console_only_creates_no_file(root_logger, tmp_path):
    setup_logging("WARNING", to_file=False, log_dir=str(tmp_path / "logs"))
    assert root_logger.level == logging.WARNING
    assert not os.path.exists(tmp_path / "logs")
    assert all(not isinstance(h, logging.FileHandler) for h in root_logger.handlers)


def test_logging_section_defaults():
    log_cfg = load_config().logging
    assert log_cfg == AppConfig().logging
    assert log_cfg.level == "INFO"
    assert log_cfg.backup_count == 3
    assert log_cfg.module_levels == {}
