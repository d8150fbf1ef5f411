from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GeoFix(BaseModel):
    """Geodetic position in decimal degrees.

    Accepts both ``latitude``/``longitude`` (autopilot fixes) and ``lat``/``lon``
    (neighbour frames) as input field names.
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(default=0.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(default=0.0, validation_alias=AliasChoices("longitude", "lon"))

    @classmethod
    def from_message(cls, msg: Any) -> "GeoFix":
        if isinstance(msg, dict):
            return cls.model_validate(msg)
        return cls.model_validate(msg, from_attributes=True)

    @property
    def is_sentinel(self) -> bool:
        """True for the ``(0, 0)`` value meaning no neighbour data yet."""
        return self.latitude == 0.0 and self.longitude == 0.0


class PlanarPoint(BaseModel):
    x: float
    y: float


class VelocityCommand(BaseModel):
    """Horizontal velocity setpoint in m/s, stamped in wall-clock seconds."""

    x: float
    y: float
    stamp: float


class TakeoffRequest(BaseModel):
    height_m: float = Field(gt=0.0)


class TakeoffOutcome(Enum):
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
