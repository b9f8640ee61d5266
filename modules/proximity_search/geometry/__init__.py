"""Geometry helpers for proximity search."""

from .distance_conversion import distance_degrees, meters_to_degrees, EARTH_RADIUS_M

__all__ = ['distance_degrees', 'meters_to_degrees', 'EARTH_RADIUS_M']
