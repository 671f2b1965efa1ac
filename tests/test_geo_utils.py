import math

import pytest

from app.utils.geo_utils import (
    EARTH_RADIUS_M,
    GeoPoint,
    format_distance,
    haversine_distance_m,
    validate_coordinates,
)


def test_identical_points_are_zero_apart():
    point = GeoPoint(40.7128, -74.0060)
    assert haversine_distance_m(point, point) == 0.0


def test_distance_is_symmetric():
    a = GeoPoint(40.7128, -74.0060)
    b = GeoPoint(34.0522, -118.2437)
    assert haversine_distance_m(a, b) == pytest.approx(haversine_distance_m(b, a))


def test_new_york_to_los_angeles():
    a = GeoPoint(40.7128, -74.0060)
    b = GeoPoint(34.0522, -118.2437)
    assert haversine_distance_m(a, b) == pytest.approx(3_935_746, rel=0.005)


def test_small_offsets_at_equator():
    origin = GeoPoint(0.0, 0.0)
    assert haversine_distance_m(origin, GeoPoint(0.0, 0.0005)) == pytest.approx(55.6, abs=0.5)
    assert haversine_distance_m(origin, GeoPoint(0.0, 0.002)) == pytest.approx(222.4, abs=0.5)


def test_distance_grows_with_separation():
    origin = GeoPoint(0.0, 0.0)
    distances = [haversine_distance_m(origin, GeoPoint(0.0, step / 1000)) for step in range(1, 6)]
    assert distances == sorted(distances)


def test_antipodal_points_do_not_overflow():
    distance = haversine_distance_m(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))
    assert distance == pytest.approx(math.pi * EARTH_RADIUS_M)


@pytest.mark.parametrize(
    "latitude, longitude",
    [(90.1, 0.0), (0.0, -180.5), (float("nan"), 0.0), (0.0, float("inf")), ("1", 0.0), (True, 0.0)],
)
def test_invalid_coordinates(latitude, longitude):
    with pytest.raises(ValueError):
        validate_coordinates(latitude, longitude)


def test_geo_point_validates():
    with pytest.raises(ValueError):
        GeoPoint(100.0, 0.0)


@pytest.mark.parametrize("meters, expected", [(0, "0m"), (222.39, "222m"), (1500, "1.5km")])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected
