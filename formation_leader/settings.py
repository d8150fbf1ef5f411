from __future__ import annotations

import os
from typing import Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "default.yaml")


class FormationConfig(BaseModel):
    """Control-law and sequencing constants, fixed for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    target_separation_m: float = Field(default=10.0, gt=0.0)
    gain: float = 0.01
    max_speed_m_s: float = Field(default=1.0, gt=0.0)
    bias_velocity: Tuple[float, float] = (0.0, 0.0)
    takeoff_height_m: float = Field(default=3.0, gt=0.0)
    takeoff_timeout_s: float = Field(default=60.0, gt=0.0)
    settle_delay_s: float = Field(default=10.0, ge=0.0)
    rate_hz: float = Field(default=10.0, gt=0.0)


class MavlinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = "udpin:0.0.0.0:14540"
    system_id: int = 255
    component_id: int = 191
    takeoff_mode: str = "GUIDED"


class RadioConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: Optional[str] = None
    baudrate: int = 57600
    timeout_s: float = 0.2


class SimConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    self_lat: float = 45.0
    self_lon: float = 7.0
    neighbor_lat: float = 45.0
    neighbor_lon: float = 7.0002
    climb_time_s: float = 1.0


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    to_file: bool = True
    log_dir: Optional[str] = None
    max_bytes: int = Field(default=2 * 1024 * 1024, gt=0)
    backup_count: int = Field(default=3, ge=0)
    module_levels: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    formation: FormationConfig = FormationConfig()
    mavlink: MavlinkConfig = MavlinkConfig()
    radio: RadioConfig = RadioConfig()
    sim: SimConfig = SimConfig()
    logging: LoggingConfig = LoggingConfig()


def load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path: Optional[str] = None) -> AppConfig:
    """Load and validate the YAML config; missing keys fall back to the defaults above."""
    return AppConfig.model_validate(load_yaml(path or DEFAULT_CONFIG_PATH))
