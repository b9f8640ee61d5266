"""Proximity Search Process

Public entry points: the ``proximity_search`` function and the
``ProximitySearchProcess`` class, which also describes the operation and its
parameters for whatever framework exposes it to callers.
"""

import logging
import threading
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.config.config_loader import ConfigLoader
from src.utils import log_performance
from ..execution import ProximityExecutor, ProximitySearchConfig, ProximitySearchResult
from ..sources import FeatureCollection

logger = logging.getLogger(__name__)


class ParameterDescription(BaseModel):
    """Description of one process input."""
    name: str = Field(..., description="Parameter name")
    description: str = Field(..., description="Human-readable description")
    type_name: str = Field(..., description="Expected value type")
    required: bool = Field(True, description="Whether the parameter must be given")


class ProcessDescription(BaseModel):
    """Description of the proximity search process and its inputs/outputs."""
    title: str
    description: str
    parameters: List[ParameterDescription] = Field(default_factory=list)
    result_description: str


PROCESS_DESCRIPTION = ProcessDescription(
    title="Proximity Search",
    description=("Performs a proximity search on a feature collection using another "
                 "feature collection as input"),
    parameters=[
        ParameterDescription(
            name="input_features",
            description="Input feature collection that defines the proximity search",
            type_name="FeatureCollection",
        ),
        ParameterDescription(
            name="data_features",
            description="The data set to query for matching features",
            type_name="FeatureCollection",
        ),
        ParameterDescription(
            name="buffer_distance",
            description="Buffer size in meters",
            type_name="float",
        ),
    ],
    result_description="Output feature collection",
)


class ProximitySearchProcess:
    """Proximity search operation.

    Returns every data feature within ``buffer_distance`` meters of at least
    one input geometry. Data collections that support native queries are
    searched in place; all others are scanned feature by feature.
    """

    def __init__(self, config: Optional[ProximitySearchConfig] = None):
        """Initialize the process.

        Args:
            config: Processing settings (defaults apply when omitted)
        """
        self.config = config or ProximitySearchConfig()
        self.executor = ProximityExecutor(self.config)

    @classmethod
    def from_environment(cls, config_loader: ConfigLoader, environment: str = "development") -> "ProximitySearchProcess":
        """Create a process configured from environment_config.json."""
        return cls(ProximitySearchConfig.from_config_loader(config_loader, environment))

    @staticmethod
    def describe() -> ProcessDescription:
        return PROCESS_DESCRIPTION

    def run(self, input_features: FeatureCollection, data_features: FeatureCollection,
            buffer_distance: float, cancel_event: Optional[threading.Event] = None) -> ProximitySearchResult:
        """Run the search and return the features together with run metrics."""
        logger.debug(f"Attempting proximity search on collection type {type(data_features).__name__}")
        return self.executor.execute(input_features, data_features, buffer_distance, cancel_event)

    def execute(self, input_features: FeatureCollection, data_features: FeatureCollection,
                buffer_distance: float, cancel_event: Optional[threading.Event] = None) -> FeatureCollection:
        """Run the search and return the matching data features."""
        return self.run(input_features, data_features, buffer_distance, cancel_event).features

    def parameter_summary(self) -> Dict[str, str]:
        return {parameter.name: parameter.description for parameter in PROCESS_DESCRIPTION.parameters}


@log_performance
def proximity_search(reference_features: FeatureCollection, data_features: FeatureCollection,
                     buffer_distance_meters: float, cancel_event: Optional[threading.Event] = None,
                     config: Optional[ProximitySearchConfig] = None) -> FeatureCollection:
    """Return every data feature within a buffer distance of any reference geometry.

    Args:
        reference_features: Features whose geometries define the search areas
        data_features: Features to search
        buffer_distance_meters: Non-negative buffer distance in meters
        cancel_event: Optional cancellation signal
        config: Optional processing settings

    Returns:
        FeatureCollection of matching data features

    Raises:
        InvalidArgumentError: Negative buffer distance or data schema without geometry
        ResourceFailureError: Raised unchanged from the data sources
    """
    return ProximitySearchProcess(config).execute(
        reference_features, data_features, buffer_distance_meters, cancel_event
    )
