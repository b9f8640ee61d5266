"""GeoDataFrame-backed Feature Source

Wraps a ``geopandas.GeoDataFrame`` as a feature collection with native
predicate evaluation. Predicates are evaluated column-wise on the frame;
DWITHIN distances are honoured in their declared units by measuring in a
projected metric CRS: the explicit or native one when the collection has it,
otherwise an azimuthal equidistant projection centred on each DWITHIN
geometry, so frames spanning many UTM zones are measured without distortion
from one far-away zone.
"""

import logging
import threading
from functools import reduce
from typing import Optional

import geopandas as gpd
import pandas as pd
import pyproj

from src.exceptions import ProximityProcessingError, ProximitySearchCancelledError
from ..models import Feature, FeatureSchema
from ..predicates import Predicate, Include, Exclude, PropertyEquals, DWithin, And, Or, INCLUDE
from .feature_collection import FeatureCollection, FeatureIterator, SupportsPushdown

logger = logging.getLogger(__name__)

DEFAULT_CRS = "EPSG:4326"


class GeoDataFrameFeatureCollection(FeatureCollection, SupportsPushdown):
    """Feature collection over a GeoDataFrame with vectorised query support.

    Features are identified by ``id_column`` when given, otherwise by the
    frame index. Frames without a CRS are taken to be EPSG:4326.
    """

    def __init__(self, frame: gpd.GeoDataFrame, name: str = "features",
                 id_column: Optional[str] = None, restriction: Predicate = INCLUDE,
                 metric_crs: Optional[str] = None):
        """Initialize the collection.

        Args:
            frame: Source GeoDataFrame with an active geometry column
            name: Feature type name used in the schema
            id_column: Column holding feature identifiers (default: index)
            restriction: Filter already applied to this collection
            metric_crs: Projected CRS in meters for distance tests (default: local to each DWITHIN geometry)
        """
        if frame.crs is None:
            frame = frame.set_crs(DEFAULT_CRS)
        self._frame = frame
        self._id_column = id_column
        self._restriction = restriction
        self._metric_crs = metric_crs
        self._schema = FeatureSchema(
            name=name,
            geometry_property=frame.geometry.name,
            fields=[str(column) for column in frame.columns],
            crs=frame.crs.to_string(),
        )

    @property
    def schema(self) -> FeatureSchema:
        return self._schema

    @property
    def restriction(self) -> Predicate:
        return self._restriction

    @property
    def frame(self) -> gpd.GeoDataFrame:
        return self._frame

    def size(self) -> int:
        return len(self._frame)

    def features(self) -> FeatureIterator:
        return FeatureIterator(self._iter_features())

    def _iter_features(self):
        for index, row in self._frame.iterrows():
            attributes = row.to_dict()
            feature_id = attributes[self._id_column] if self._id_column else index
            yield Feature(feature_id=str(feature_id), schema=self._schema, attributes=attributes)

    def query(self, predicate: Predicate,
              cancel_event: Optional[threading.Event] = None) -> "GeoDataFrameFeatureCollection":
        """Return the rows matching ``predicate`` as a new collection.

        Raises:
            ProximityProcessingError: If the predicate contains an unsupported expression
            ProximitySearchCancelledError: If ``cancel_event`` is set before evaluation
        """
        if cancel_event is not None and cancel_event.is_set():
            raise ProximitySearchCancelledError(
                "Query cancelled before evaluation", {"stage": "execution", "source": self._schema.name}
            )

        logger.debug(f"Evaluating {predicate} natively on {len(self._frame)} rows")
        evaluator = _FrameEvaluator(self._frame, self._metric_crs)
        mask = evaluator.mask(predicate)
        matched = self._frame[mask.to_numpy()]
        logger.debug(f"Native query matched {len(matched)} of {len(self._frame)} rows")

        return GeoDataFrameFeatureCollection(
            matched,
            name=self._schema.name,
            id_column=self._id_column,
            restriction=predicate,
            metric_crs=self._metric_crs,
        )

    def __repr__(self) -> str:
        return f"GeoDataFrameFeatureCollection(schema={self._schema.name!r}, size={len(self._frame)})"


class _FrameEvaluator:
    """Evaluates a predicate tree to a boolean mask over one frame."""

    def __init__(self, frame: gpd.GeoDataFrame, metric_crs: Optional[str]):
        self.frame = frame
        self.metric_crs = metric_crs
        self._projections: dict = {}

    def _constant(self, value: bool) -> pd.Series:
        return pd.Series(value, index=self.frame.index, dtype=bool)

    def _frame_metric_crs(self) -> Optional[pyproj.CRS]:
        if self.metric_crs is not None:
            return pyproj.CRS(self.metric_crs)
        crs = self.frame.geometry.crs
        if crs.is_projected and crs.axis_info[0].unit_name == "metre":
            return crs
        return None

    def _local_crs(self, literal) -> pyproj.CRS:
        """Azimuthal equidistant CRS centred on a geometry, true to scale from its centre."""
        centre = gpd.GeoSeries([literal], crs=self.frame.crs).to_crs(DEFAULT_CRS).iloc[0].centroid
        return pyproj.CRS(proj="aeqd", lat_0=centre.y, lon_0=centre.x, datum="WGS84", units="m")

    def _projected_geometry(self, crs: pyproj.CRS) -> gpd.GeoSeries:
        key = crs.to_wkt()
        if key not in self._projections:
            self._projections[key] = self.frame.geometry.to_crs(crs)
        return self._projections[key]

    def mask(self, predicate: Predicate) -> pd.Series:
        if isinstance(predicate, Include):
            return self._constant(True)
        if isinstance(predicate, Exclude):
            return self._constant(False)
        if isinstance(predicate, PropertyEquals):
            column = predicate.property.name
            if column not in self.frame.columns:
                return self._constant(False)
            values = self.frame[column]
            return values.notna() & (values == predicate.value)
        if isinstance(predicate, DWithin):
            return self._dwithin(predicate)
        if isinstance(predicate, And):
            return self.mask(predicate.left) & self.mask(predicate.right)
        if isinstance(predicate, Or):
            return reduce(lambda acc, term: acc | self.mask(term), predicate.terms, self._constant(False))
        raise ProximityProcessingError(
            f"Unsupported predicate for GeoDataFrame query: {predicate}", {"stage": "execution"}
        )

    def _dwithin(self, predicate: DWithin) -> pd.Series:
        if predicate.property.name != self.frame.geometry.name:
            raise ProximityProcessingError(
                f"DWITHIN must reference the geometry column '{self.frame.geometry.name}'",
                {"stage": "execution", "property": predicate.property.name}
            )
        geometry = self.frame.geometry
        if not (geometry.notna() & ~geometry.is_empty).any():
            return self._constant(False)
        literal = predicate.literal.geometry
        target = self._frame_metric_crs()
        if target is None:
            target = self._local_crs(literal)
        projected = self._projected_geometry(target)
        literal = gpd.GeoSeries([literal], crs=self.frame.crs).to_crs(target).iloc[0]
        distances = projected.distance(literal)
        # null geometries give NaN distances, which compare False
        return (distances <= predicate.distance_in_meters()).fillna(False).astype(bool)
