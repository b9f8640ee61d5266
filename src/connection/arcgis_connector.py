"""
ArcGIS connector for the Proximity Search utilities.

This module opens a portal connection with retry and timeout handling and
hands out FeatureLayer handles that the ArcGIS data source queries natively.
"""

from typing import Optional

from arcgis.features import FeatureLayer
from arcgis.gis import GIS
from func_timeout import func_timeout, FunctionTimedOut
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .auth_handler import AuthHandler
from ..config import ConfigLoader
from ..exceptions import ProximityConnectionError
from ..utils import get_logger

logger = get_logger(__name__)

CONNECT_TIMEOUT_SECONDS = 30


class ArcGISConnector:
    """
    ArcGIS portal connection manager with retry logic and timeout handling.
    """

    def __init__(self, config_loader: ConfigLoader, environment: str = "development"):
        """
        Initialize the ArcGIS connector.

        Args:
            config_loader: ConfigLoader instance for accessing configuration
            environment: Environment whose portal should be used
        """
        self.config_loader = config_loader
        self.environment = environment
        self.auth_handler = AuthHandler(config_loader, environment)
        self._gis: Optional[GIS] = None
        logger.debug("ArcGISConnector initialized")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True
    )
    def connect(self) -> GIS:
        """
        Establish connection to the ArcGIS portal with retry logic.

        Returns:
            GIS: Connected GIS instance

        Raises:
            ProximityConnectionError: If connection fails after retries
            ProximityAuthenticationError: If credentials are unavailable
        """
        url, username, password = self.auth_handler.get_credentials()
        logger.info(f"Attempting connection to ArcGIS at {url}")

        try:
            gis = func_timeout(self._connect_timeout(), GIS, args=(url, username, password))
        except FunctionTimedOut:
            raise ProximityConnectionError(
                "Connection timeout - ArcGIS service may be unavailable", {"url": url}
            )
        except ConnectionError:
            # Let tenacity retry transient network failures
            raise
        except Exception as e:
            error_msg = f"Failed to connect to ArcGIS: {str(e)}"
            logger.error(error_msg)
            raise ProximityConnectionError(error_msg, {"url": url})

        self._validate_connection(gis)
        self._gis = gis
        logger.info(f"Connected to {gis.properties.portalHostname}")
        return gis

    def _connect_timeout(self) -> int:
        processing = self.config_loader.load_environment_config(self.environment).get("processing", {})
        return processing.get("arcgis_timeout_seconds") or CONNECT_TIMEOUT_SECONDS

    def _validate_connection(self, gis: GIS) -> None:
        try:
            portal_name = gis.properties.portalName
        except Exception as e:
            raise ProximityConnectionError(f"Connection validation failed: {str(e)}")
        if not portal_name:
            raise ProximityConnectionError("Unable to access portal properties")
        logger.debug(f"Connection validation passed for portal: {portal_name}")

    def get_gis(self) -> GIS:
        """
        Get the connected GIS, connecting on first use.

        Returns:
            GIS instance
        """
        if self._gis is None:
            return self.connect()
        return self._gis

    def get_feature_layer(self, layer_url: str) -> FeatureLayer:
        """
        Get a FeatureLayer handle for a feature service layer URL.

        Args:
            layer_url: REST URL of the layer (ending in the layer index)

        Returns:
            FeatureLayer bound to the connected portal
        """
        layer = FeatureLayer(layer_url, self.get_gis())
        logger.debug(f"Opened feature layer {layer_url}")
        return layer

    def is_connected(self) -> bool:
        return self._gis is not None

    def disconnect(self) -> None:
        """Drop the portal connection."""
        if self._gis:
            self._gis = None
            logger.info("Disconnected from ArcGIS")

