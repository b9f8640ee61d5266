"""Proximity Execution Models

Data models for execution path selection, processing configuration, run
metrics and results, using Pydantic for validation.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..sources import FeatureCollection, SupportsPushdown

logger = logging.getLogger(__name__)


class ExecutionPath(str, Enum):
    """Strategy used to evaluate a proximity search."""
    OPTIMIZED = "optimized"
    MANUAL = "manual"


class ExecutionState(str, Enum):
    """States of a single proximity invocation. OPTIMIZED and MANUAL are terminal."""
    INIT = "init"
    OPTIMIZED = "optimized"
    MANUAL = "manual"


class CapabilityKind(str, Enum):
    PUSHDOWN = "pushdown"
    ITERATE_ONLY = "iterate_only"


class MissingGeometryPolicy(str, Enum):
    """What the manual path does with a data feature that has no geometry."""
    SKIP = "skip"
    ABORT = "abort"


class Capability(BaseModel):
    """Data source capability, probed once per invocation.

    ``handle`` is the data collection itself; for PUSHDOWN it is guaranteed
    to implement ``SupportsPushdown``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    kind: CapabilityKind = Field(..., description="Probed capability")
    handle: Any = Field(..., description="Collection to execute against")

    @classmethod
    def probe(cls, collection: FeatureCollection) -> "Capability":
        """Classify a data collection. Only SupportsPushdown implementations get PUSHDOWN."""
        if isinstance(collection, SupportsPushdown):
            return cls(kind=CapabilityKind.PUSHDOWN, handle=collection)
        return cls(kind=CapabilityKind.ITERATE_ONLY, handle=collection)

    @property
    def execution_path(self) -> ExecutionPath:
        if self.kind == CapabilityKind.PUSHDOWN:
            return ExecutionPath.OPTIMIZED
        return ExecutionPath.MANUAL


class ProximitySearchConfig(BaseModel):
    """Processing settings for proximity searches.

    Validation model for the ``processing`` section of environment_config.json.
    """
    missing_geometry_policy: MissingGeometryPolicy = Field(
        MissingGeometryPolicy.SKIP, description="Skip or abort on data features without geometry"
    )
    metric_crs: Optional[str] = Field(None, description="Projected CRS for unit-aware GeoDataFrame queries")
    progress_log_interval: int = Field(10000, ge=1, description="Features between manual-path progress logs")
    arcgis_object_id_field: str = Field("OBJECTID", min_length=1, description="ArcGIS object id field")
    arcgis_max_retries: int = Field(3, ge=1, le=10, description="Attempts per ArcGIS REST query")
    arcgis_timeout_seconds: int = Field(30, ge=1, description="ArcGIS connection timeout")

    @field_validator('metric_crs')
    @classmethod
    def validate_metric_crs(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def from_config_loader(cls, config_loader, environment: str) -> "ProximitySearchConfig":
        """Build settings from a ConfigLoader environment."""
        processing = config_loader.get_processing_config(environment)
        config = cls(**{key: value for key, value in processing.items() if key in cls.model_fields})
        logger.debug(f"Proximity settings for {environment}: {config.model_dump()}")
        return config


class ProximitySearchMetrics(BaseModel):
    """Counters and timings for one proximity invocation."""
    execution_path: Optional[ExecutionPath] = Field(None, description="Path taken")
    reference_count: int = Field(0, ge=0, description="Reference geometries in the predicate")
    features_visited: int = Field(0, ge=0, description="Data features evaluated in memory")
    features_matched: int = Field(0, ge=0, description="Features in the result")
    features_skipped: int = Field(0, ge=0, description="Data features skipped for missing geometry")
    duration_seconds: float = Field(0.0, ge=0, description="Wall-clock duration")
    memory_delta_mb: Optional[float] = Field(None, ge=0, description="RSS growth during the run")

    def get_match_rate(self) -> float:
        """Fraction of visited features that matched (manual path only)."""
        if self.features_visited == 0:
            return 0.0
        return self.features_matched / self.features_visited

    def get_summary(self) -> Dict[str, Any]:
        return {
            "path": self.execution_path.value if self.execution_path else None,
            "references": self.reference_count,
            "visited": self.features_visited,
            "matched": self.features_matched,
            "skipped": self.features_skipped,
            "duration_seconds": round(self.duration_seconds, 3),
        }


class ProximitySearchResult(BaseModel):
    """Result of a proximity search: the matching features plus run metrics."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    features: Any = Field(..., description="FeatureCollection of matching data features")
    metrics: ProximitySearchMetrics = Field(..., description="Run metrics")
    completed_at: datetime = Field(default_factory=datetime.now, description="When the search completed")

    def feature_ids(self) -> List[str]:
        return self.features.ids()

    def get_processing_summary(self) -> str:
        """Generate human-readable processing summary."""
        metrics = self.metrics
        path = metrics.execution_path.value if metrics.execution_path else "unknown"
        summary = (f"{metrics.features_matched} features within buffer of "
                   f"{metrics.reference_count} references via {path} path "
                   f"in {metrics.duration_seconds:.2f}s")
        if metrics.features_skipped:
            summary += f" ({metrics.features_skipped} skipped without geometry)"
        return summary
