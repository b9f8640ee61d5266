"""
Custom exceptions for the Proximity Search utilities.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    ProximityBaseException,
    ProximityConfigurationError,
    ProximityValidationError,
    ProximityAuthenticationError,
    ProximityConnectionError,
    InvalidArgumentError,
    ResourceFailureError,
    MissingAttributeError,
    ProximityProcessingError,
    ProximitySearchCancelledError,
)

__all__ = [
    "ProximityBaseException",
    "ProximityConfigurationError",
    "ProximityValidationError",
    "ProximityAuthenticationError",
    "ProximityConnectionError",
    "InvalidArgumentError",
    "ResourceFailureError",
    "MissingAttributeError",
    "ProximityProcessingError",
    "ProximitySearchCancelledError",
]
