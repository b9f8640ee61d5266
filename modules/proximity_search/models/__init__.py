"""Proximity Search Data Models

This package contains the Pydantic data models for features and feature
schemas shared by every data source.
"""

from .feature import Feature, FeatureSchema

__all__ = ['Feature', 'FeatureSchema']
