"""Proximity Search Module

Buffer-distance spatial join: returns every data feature within a distance of
at least one reference geometry, evaluated natively by capable data sources
or feature by feature otherwise.
"""

from .processor import ProximitySearchProcess, proximity_search

__all__ = ['ProximitySearchProcess', 'proximity_search']

__version__ = "1.0.0"
