from __future__ import annotations

import math

import pytest

from formation_leader.core.types import GeoFix
from formation_leader.utils.geo import (
    EARTH_RADIUS_M,
    geodesic_distance_m,
    planar_distance_m,
    project_equirectangular,
)


def test_project_origin():
    p = project_equirectangular(GeoFix(latitude=0.0, longitude=0.0))
    assert p.x == 0.0 and p.y == 0.0


def test_project_one_millidegree_latitude():
    p = project_equirectangular(GeoFix(latitude=0.001, longitude=0.0))
    assert p.x == pytest.approx(math.pi / 180.0 * EARTH_RADIUS_M * 0.001)
    assert 110.0 < p.x < 112.0
    assert p.y == 0.0


def test_project_has_no_cosine_longitude_scaling():
    # 1 millidegree of longitude maps to the same metres at 60 deg N as at the equator
    at_equator = project_equirectangular(GeoFix(latitude=0.0, longitude=0.001))
    at_sixty = project_equirectangular(GeoFix(latitude=60.0, longitude=0.001))
    assert at_sixty.y == pytest.approx(at_equator.y)


@pytest.mark.parametrize("k", [-3.0, 0.5, 2.0, 10.0])
def test_projection_is_linear(k):
    fix = GeoFix(latitude=12.345, longitude=-67.89)
    base = project_equirectangular(fix)
    scaled = project_equirectangular(GeoFix(latitude=k * fix.latitude, longitude=k * fix.longitude))
    assert scaled.x == pytest.approx(k * base.x, rel=1e-12)
    assert scaled.y == pytest.approx(k * base.y, rel=1e-12)


def test_geodesic_distance_close_to_planar_at_equator():
    a = GeoFix(latitude=0.0, longitude=0.0)
    b = GeoFix(latitude=0.0, longitude=0.0001)
    planar = planar_distance_m(project_equirectangular(a), project_equirectangular(b))
    geodesic = geodesic_distance_m(a, b)
    assert 10.0 < geodesic < 12.0
    assert abs(planar - geodesic) < 0.05


def test_planar_overestimates_east_west_separation_at_high_latitude():
    a = GeoFix(latitude=60.0, longitude=10.0)
    b = GeoFix(latitude=60.0, longitude=10.0002)
    planar = planar_distance_m(project_equirectangular(a), project_equirectangular(b))
    geodesic = geodesic_distance_m(a, b)
    assert planar > 1.8 * geodesic
