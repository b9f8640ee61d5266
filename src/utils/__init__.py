"""
Utility modules for the Proximity Search utilities.

This module provides logging setup and the timing decorator used across
the system.
"""

from .logging_setup import setup_logging, get_logger, log_performance

__all__ = ["setup_logging", "get_logger", "log_performance"]
