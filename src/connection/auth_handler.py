"""
Authentication handler for ArcGIS connections.

This module loads the portal URL from configuration and the username/password
pair from environment variables, ensuring no credential exposure in logs.
"""

import os
from typing import Dict, List, Tuple

from ..config import ConfigLoader
from ..exceptions import ProximityAuthenticationError, ProximityBaseException
from ..utils import get_logger

logger = get_logger(__name__)

USERNAME_VARIABLE = 'ARCGIS_USERNAME'
PASSWORD_VARIABLE = 'ARCGIS_PASSWORD'


class AuthHandler:
    """
    Handles authentication credentials for ArcGIS connections.
    """

    def __init__(self, config_loader: ConfigLoader, environment: str = "development"):
        """
        Initialize the authentication handler.

        Args:
            config_loader: ConfigLoader instance for accessing configuration
            environment: Environment whose portal URL should be used
        """
        self.config_loader = config_loader
        self.environment = environment
        logger.debug(f"AuthHandler initialized for {environment}")

    def get_credentials(self) -> Tuple[str, str, str]:
        """
        Get portal credentials for the configured environment.

        Returns:
            Tuple of (url, username, password)

        Raises:
            ProximityAuthenticationError: If the URL or credentials are missing
        """
        try:
            env_config = self.config_loader.load_environment_config(self.environment)
        except ProximityBaseException as e:
            raise ProximityAuthenticationError(
                f"Error loading {self.environment} configuration: {e.message}"
            )

        arcgis_url = env_config.get('arcgis_url')
        if not arcgis_url:
            raise ProximityAuthenticationError(
                f"ArcGIS URL not found in {self.environment} configuration"
            )

        username = os.getenv(USERNAME_VARIABLE)
        password = os.getenv(PASSWORD_VARIABLE)

        if not username or not username.strip():
            raise ProximityAuthenticationError(f"{USERNAME_VARIABLE} environment variable not set")

        if not password or not password.strip():
            raise ProximityAuthenticationError(f"{PASSWORD_VARIABLE} environment variable not set")

        logger.info("Loaded ArcGIS credentials from environment variables")
        return arcgis_url, username, password

    def validate_environment_variables(self) -> Dict[str, bool]:
        """
        Report which credential environment variables are set.

        Returns:
            Dictionary mapping variable name to whether it is set
        """
        results = {}
        for var in self.get_required_environment_variables():
            results[var] = bool(os.getenv(var))
            # Log without exposing values
            if results[var]:
                logger.debug(f"Environment variable {var} is set")
            else:
                logger.warning(f"Environment variable {var} is not set")
        return results

    def get_required_environment_variables(self) -> List[str]:
        return [USERNAME_VARIABLE, PASSWORD_VARIABLE]
