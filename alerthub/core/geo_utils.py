"""
AlertHub - Geospatial Utilities
Coordinate validation and point conversions for report locations.
"""

import math
from dataclasses import dataclass

from shapely.geometry import Point as ShapelyPoint

# WGS 84
DEFAULT_SRID = 4326


@dataclass
class Point:
    """Geographic point with latitude and longitude."""
    latitude: float
    longitude: float

    def to_shape(self) -> ShapelyPoint:
        """Shapely point in (x=longitude, y=latitude) order."""
        return ShapelyPoint(self.longitude, self.latitude)


def is_valid_latitude(value: float) -> bool:
    return math.isfinite(value) and -90.0 <= value <= 90.0


def is_valid_longitude(value: float) -> bool:
    return math.isfinite(value) and -180.0 <= value <= 180.0


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """
    Check that a latitude/longitude pair is a valid geodetic coordinate.

    Args:
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees

    Returns:
        True if both values are finite and inside WGS 84 bounds
    """
    return is_valid_latitude(latitude) and is_valid_longitude(longitude)


def format_coordinate(value: float) -> str:
    """
    Format a coordinate independent of locale.

    repr() gives the shortest round-tripping form with a '.' separator,
    which is what upstream URL templates expect.
    """
    return repr(float(value))


def to_ewkt(point: Point, srid: int = DEFAULT_SRID) -> str:
    """Extended WKT understood by PostGIS, e.g. 'SRID=4326;POINT (23.7 37.9)'."""
    return f"SRID={srid};{point.to_shape().wkt}"
