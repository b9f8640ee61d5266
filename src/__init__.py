"""
Proximity Search Core Package

This package contains the shared infrastructure of the Proximity Search
utilities: configuration loading, exceptions, logging and ArcGIS connectivity.
"""

__version__ = "1.0.0"
