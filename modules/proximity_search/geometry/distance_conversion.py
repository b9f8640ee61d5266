"""Linear to angular distance conversion for geographic geometries.

Coordinates are longitude/latitude degrees (EPSG:4326 axis order x=lon, y=lat).
A meter distance covers a fixed number of degrees of latitude but a growing
number of degrees of longitude towards the poles, so the conversion is always
made relative to a location.
"""

import logging
import math

from shapely.geometry.base import BaseGeometry

from src.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# Mean earth radius in meters (IUGG)
EARTH_RADIUS_M = 6371008.8

MAX_DEGREES = 180.0


def _east_extent_degrees(latitude: float, angular_distance: float) -> float:
    """Widest longitude offset of any point within ``angular_distance`` of ``latitude``.

    Reaches the full 180 degrees once the circle of that radius covers a pole.
    """
    phi = math.radians(abs(latitude))
    if phi + angular_distance >= math.pi / 2:
        return MAX_DEGREES
    return math.degrees(math.asin(math.sin(angular_distance) / math.cos(phi)))


def meters_to_degrees(latitude: float, meters: float) -> float:
    """Convert a meter distance to degrees at the given latitude.

    Returns the larger of the latitude offset and the widest longitude offset
    of any point within ``meters`` of a point at ``latitude``, so a degree
    buffer built from it never falls short of the meter buffer.

    Args:
        latitude: Reference latitude in degrees
        meters: Non-negative distance in meters

    Returns:
        Equivalent distance in degrees, capped at 180
    """
    if meters < 0 or not math.isfinite(meters):
        raise InvalidArgumentError(
            f"Distance must be a non-negative number of meters, got {meters}",
            {"stage": "construction"}
        )
    if meters == 0:
        return 0.0

    angular_distance = meters / EARTH_RADIUS_M
    if angular_distance >= math.pi:
        return MAX_DEGREES

    latitude = max(min(latitude, 90.0), -90.0)
    north = math.degrees(angular_distance)
    east = _east_extent_degrees(latitude, angular_distance)
    return min(max(north, east), MAX_DEGREES)


def distance_degrees(geometry: BaseGeometry, meters: float) -> float:
    """Convert a meter buffer to degrees local to a geometry's location.

    The conversion is made at the edge of the geometry's envelope furthest
    from the equator, where a degree of longitude is shortest, so the buffer
    holds along the whole geometry. This must be called once per geometry:
    the result depends on its latitude.

    Args:
        geometry: Shapely geometry in longitude/latitude coordinates
        meters: Buffer distance in meters

    Returns:
        Degree-equivalent buffer distance

    Raises:
        InvalidArgumentError: If the geometry is missing or empty
    """
    if geometry is None or geometry.is_empty:
        raise InvalidArgumentError(
            "Cannot convert a distance for an empty geometry",
            {"stage": "construction"}
        )
    _, min_y, _, max_y = geometry.bounds
    latitude = max(abs(min_y), abs(max_y))
    degrees = meters_to_degrees(latitude, meters)
    logger.debug(f"{meters}m at latitude {latitude:.5f} is {degrees:.8f} degrees")
    return degrees
