from __future__ import annotations

from math import pi

from geographiclib.geodesic import Geodesic

from ..core.types import GeoFix, PlanarPoint

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE = (pi / 180.0) * EARTH_RADIUS_M


def project_equirectangular(fix: GeoFix) -> PlanarPoint:
    """Project a fix onto the local plane, origin at (0, 0) degrees.

    x follows latitude and y follows longitude, both scaled by the mean Earth
    radius. Longitude is not scaled by cos(latitude), so the result is only
    meaningful for short baselines between two nearby fixes.
    """
    return PlanarPoint(
        x=(pi / 180.0) * EARTH_RADIUS_M * fix.latitude,
        y=(pi / 180.0) * EARTH_RADIUS_M * fix.longitude,
    )


def planar_distance_m(p0: PlanarPoint, p1: PlanarPoint) -> float:
    return ((p1.x - p0.x) ** 2 + (p1.y - p0.y) ** 2) ** 0.5


def geodesic_distance_m(a: GeoFix, b: GeoFix) -> float:
    """Ellipsoidal (WGS84) distance between two fixes using GeographicLib.

    Used to report how far the planar approximation drifts from the true
    separation; never used for control.
    """
    g = Geodesic.WGS84.Inverse(a.latitude, a.longitude, b.latitude, b.longitude)
    return float(g["s12"])
