"""
Utility package initialization and exports
"""

from .datetime_utils import as_utc
from .geo_utils import (
    EARTH_RADIUS_M,
    GeoPoint,
    format_distance,
    haversine_distance_m,
    validate_coordinates,
)

__all__ = [
    "as_utc",
    "EARTH_RADIUS_M",
    "GeoPoint",
    "format_distance",
    "haversine_distance_m",
    "validate_coordinates",
]
