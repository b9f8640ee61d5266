"""
Configuration loader for the Proximity Search utilities.

This module provides the ConfigLoader class that handles loading and validating
the JSON environment configuration for multi-environment deployments.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, Optional

from ..exceptions import ProximityConfigurationError, ProximityValidationError
from ..utils import get_logger

REQUIRED_ENVIRONMENT_KEYS = ("logging", "processing")


class ConfigLoader:
    """
    Configuration loader and validator for proximity search runs.

    Loads ``environment_config.json`` from the configuration directory, merges
    the ``shared`` block into the selected environment and validates the
    sections every run depends on.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Environment configuration merged with the shared configuration

        Raises:
            ProximityConfigurationError: If the file is missing or not valid JSON
            ProximityValidationError: If the structure is invalid
        """
        env_config_path = self.config_dir / "environment_config.json"

        if not env_config_path.exists():
            raise ProximityConfigurationError(
                f"Environment configuration file not found: {env_config_path}"
            )

        try:
            with open(env_config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProximityConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}",
                {"path": str(env_config_path)}
            )

        self._validate_environment_config(config_data, environment)

        env_config = dict(config_data["environments"][environment])

        # Shared sections fill in anything the environment does not override;
        # dict sections are merged key by key
        for key, shared_value in config_data.get("shared", {}).items():
            if key not in env_config:
                env_config[key] = shared_value
            elif isinstance(shared_value, dict) and isinstance(env_config[key], dict):
                merged = dict(shared_value)
                merged.update(env_config[key])
                env_config[key] = merged

        env_config["_validation"] = config_data.get("validation", {})

        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config

    def get_processing_config(self, environment: str) -> Dict[str, Any]:
        """
        Get the ``processing`` section for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary of processing settings
        """
        return dict(self.load_environment_config(environment)["processing"])

    def get_logging_config(self, environment: str) -> Dict[str, Any]:
        """Get the ``logging`` section for an environment."""
        return dict(self.load_environment_config(environment)["logging"])

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            ProximityValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])

        missing_vars = [var for var in required_vars if not os.getenv(var)]
        if missing_vars:
            raise ProximityValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate

        Raises:
            ProximityValidationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise ProximityValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise ProximityValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_keys = set(config_data["environments"][environment].keys())
        shared_keys = set(config_data.get("shared", {}).keys())

        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_keys | shared_keys:
                raise ProximityValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.logger.info("Configuration cache cleared")
