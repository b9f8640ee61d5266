"""
Logging configuration for the Proximity Search utilities.

This module provides centralized logging setup with environment-specific
formatting and a timing decorator for the public search operations.
"""

import functools
import json
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Optional

# Attributes every LogRecord carries; anything else was passed via ``extra``
_RESERVED_RECORD_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'taskName', 'message', 'asctime',
])

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("arcgis", "urllib3", "requests", "fiona", "pyogrio", "pyproj")

_TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def _build_formatter(environment: str) -> logging.Formatter:
    if environment == "production":
        return JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')
    return logging.Formatter(_TEXT_FORMAT)


def setup_logging(environment: str = "development",
                  log_level: str = "INFO",
                  log_dir: Optional[str] = None) -> None:
    """
    Set up root logging for proximity search runs.

    Args:
        environment: Environment name (development/production); production logs as JSON
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR)
        log_dir: Directory for rotating log files (optional)
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper()))

    # Avoid duplicate output when called more than once
    root.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter(environment))
    root.addHandler(console_handler)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, f"proximity_{environment}.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(_build_formatter(environment))
        root.addHandler(file_handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_performance(func):
    """
    Decorator to log how long a call takes, including failed calls.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function with performance logging
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        logger.debug(f"Starting {func.__qualname__}")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"Failed {func.__qualname__} after {duration:.3f}s: {e}")
            raise
        duration = time.perf_counter() - start_time
        logger.info(f"Completed {func.__qualname__} in {duration:.3f}s")
        return result

    return wrapper
