"""
Connection module for the Proximity Search utilities.

This module provides ArcGIS connectivity and authentication.
"""

from .auth_handler import AuthHandler
from .arcgis_connector import ArcGISConnector

__all__ = [
    'AuthHandler',
    'ArcGISConnector',
]
