"""
Geolocation utilities for meeting verification
"""

import math
from dataclasses import dataclass
from typing import Any


# Mean Earth radius in meters
EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class GeoPoint:
    """Geographic point with latitude and longitude"""
    latitude: float
    longitude: float

    def __post_init__(self):
        validate_coordinates(self.latitude, self.longitude)


def validate_coordinates(latitude: Any, longitude: Any) -> None:
    """Raise ValueError unless both values are finite and within range."""
    for name, value, limit in (("Latitude", latitude, 90), ("Longitude", longitude, 180)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number")
        if not math.isfinite(value):
            raise ValueError(f"{name} must be finite")
        if not (-limit <= value <= limit):
            raise ValueError(f"{name} must be between -{limit} and {limit}")


def haversine_distance_m(point1: GeoPoint, point2: GeoPoint) -> float:
    """
    Great-circle distance between two points in meters.

    The haversine term is clamped to [0, 1] so rounding cannot push
    asin outside its domain for near-antipodal points.
    """
    lat1, lon1 = math.radians(point1.latitude), math.radians(point1.longitude)
    lat2, lon2 = math.radians(point2.latitude), math.radians(point2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    a = min(1.0, max(0.0, a))

    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def format_distance(meters: float) -> str:
    """Human readable distance: 500m, 1.5km"""
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
