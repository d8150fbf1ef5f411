from __future__ import annotations

from typing import Tuple

import numpy as np

from ..utils.geo import project_equirectangular
from .types import GeoFix, PlanarPoint

Vec2 = Tuple[float, float]


def separation_law(
    p0: PlanarPoint,
    p1: PlanarPoint,
    target_separation_m: float,
    gain: float,
    bias: Vec2 = (0.0, 0.0),
) -> np.ndarray:
    """Gradient step on the squared separation error between self (p0) and neighbour (p1).

    Returns ``bias + gain * delta * (|delta|^2 - d12^2)`` in the planar frame,
    before the airframe sign flip and saturation. A positive error (too far
    apart) points the command along ``delta``, towards the neighbour.
    """
    delta = np.array([p1.x - p0.x, p1.y - p0.y], dtype=float)
    dist_pow = float(delta @ delta)
    error = dist_pow - target_separation_m**2
    return np.asarray(bias, dtype=float) + gain * delta * error


def to_airframe(v: np.ndarray) -> np.ndarray:
    """Planar frame -> airframe: the y (longitude) axis is inverted."""
    return np.array([v[0], -v[1]], dtype=float)


def saturate(v: np.ndarray, v_max: float) -> np.ndarray:
    """Clamp each axis to [-v_max, v_max] independently (heading may change at the bounds)."""
    return np.clip(np.asarray(v, dtype=float), -v_max, v_max)


def compute_velocity(
    self_fix: GeoFix,
    neighbor_fix: GeoFix,
    target_separation_m: float,
    gain: float,
    v_max: float,
    bias: Vec2 = (0.0, 0.0),
) -> Vec2:
    """Full per-tick chain: sentinel check, projection, law, y flip, clamp."""
    if neighbor_fix.is_sentinel:
        # no neighbour data yet: hold position
        return 0.0, 0.0
    p0 = project_equirectangular(self_fix)
    p1 = project_equirectangular(neighbor_fix)
    raw = separation_law(p0, p1, target_separation_m, gain, bias)
    vx, vy = saturate(to_airframe(raw), v_max)
    return float(vx), float(vy)
