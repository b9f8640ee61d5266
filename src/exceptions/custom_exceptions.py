"""
Custom exception classes for the Proximity Search utilities.

This module defines domain-specific exceptions to provide clear error handling
and debugging information throughout the system.
"""

from typing import Optional, Dict, Any


class ProximityBaseException(Exception):
    """Base exception class for all proximity search exceptions."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    @property
    def stage(self) -> Optional[str]:
        """Processing stage (construction/execution) the error was raised in."""
        return self.context.get("stage")

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ProximityConfigurationError(ProximityBaseException):
    """
    Exception raised when configuration loading or validation fails.

    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - Required configuration values are missing
    """
    pass


class ProximityValidationError(ProximityBaseException):
    """
    Exception raised when configuration or schema validation fails.
    """
    pass


class ProximityAuthenticationError(ProximityBaseException):
    """
    Exception raised when ArcGIS authentication fails.

    This exception is raised when:
    - Credentials are missing from the environment
    - The portal URL is not configured
    """
    pass


class ProximityConnectionError(ProximityBaseException):
    """
    Exception raised when an ArcGIS connection cannot be established.
    """
    pass


class InvalidArgumentError(ProximityBaseException, ValueError):
    """
    Exception raised when a proximity search is invoked with bad arguments.

    This exception is raised before any feature iteration begins when:
    - The buffer distance is negative or not a finite number
    - The data schema has no geometry property
    - A reference feature has no geometry
    """
    pass


class ResourceFailureError(ProximityBaseException):
    """
    Exception raised when a feature source cannot be opened or read.

    Raised by the data sources themselves; the proximity core propagates it
    unchanged and never retries.
    """
    pass


class MissingAttributeError(ProximityBaseException):
    """
    Exception raised when a feature lacks the attribute a predicate reads.

    Local to a single feature. The manual evaluation path skips the feature
    unless the configured policy is ``abort``.
    """
    pass


class ProximityProcessingError(ProximityBaseException):
    """
    Exception raised when proximity execution cannot proceed.

    This exception is raised when:
    - A visitor is run more than once
    - A predicate cannot be translated for a native query service
    """
    pass


class ProximitySearchCancelledError(ProximityBaseException):
    """Exception raised when a cancellation request is observed."""
    pass
