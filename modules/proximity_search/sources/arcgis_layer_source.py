"""ArcGIS Feature Layer Source

Exposes an ArcGIS ``FeatureLayer`` as a feature collection whose predicates
are evaluated by the feature service. A proximity predicate is sent as one
REST query per DWITHIN term: the attribute restriction becomes the WHERE
clause, the literal geometry the geometry filter and the distance is passed
with ``esriSRUnit_Meter`` so the service buffers in real-world units.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

from arcgis.features import FeatureLayer
from arcgis.geometry import Geometry
from arcgis.geometry.filters import intersects
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from src.exceptions import (
    ProximityProcessingError, ProximitySearchCancelledError, ResourceFailureError
)
from ..models import Feature, FeatureSchema
from ..predicates import Predicate, DWithin, And, Or, Exclude, INCLUDE
from .feature_collection import (
    FeatureCollection, FeatureIterator, MemoryFeatureCollection, SupportsPushdown
)

logger = logging.getLogger(__name__)

WGS84_WKID = 4326
GEOMETRY_PROPERTY = "SHAPE"
METER_UNITS = "esriSRUnit_Meter"

# Failures worth another attempt; anything else is reported immediately
TRANSIENT_ERRORS = (ConnectionError, TimeoutError)


def matches_nothing(predicate: Predicate) -> bool:
    """Whether a predicate is statically false, so no service query is needed."""
    if isinstance(predicate, Exclude):
        return True
    if isinstance(predicate, Or):
        return all(matches_nothing(term) for term in predicate.terms)
    if isinstance(predicate, And):
        return matches_nothing(predicate.left) or matches_nothing(predicate.right)
    return False


def split_predicate(predicate: Predicate) -> Tuple[Predicate, Optional[List[DWithin]]]:
    """Split a predicate into an attribute WHERE part and DWITHIN terms.

    Supports attribute-only predicates, a single DWITHIN, an OR of DWITHIN
    terms, and an AND joining one such spatial part with attribute predicates.

    Returns:
        Tuple of (attribute predicate, DWITHIN terms or None when not spatial)

    Raises:
        ProximityProcessingError: For spatial shapes the service cannot evaluate
    """
    if not predicate.is_spatial():
        return predicate, None
    if isinstance(predicate, DWithin):
        return INCLUDE, [predicate]
    if isinstance(predicate, Or) and all(isinstance(term, DWithin) for term in predicate.terms):
        return INCLUDE, list(predicate.terms)
    if isinstance(predicate, And) and not (predicate.left.is_spatial() and predicate.right.is_spatial()):
        left_where, left_terms = split_predicate(predicate.left)
        right_where, right_terms = split_predicate(predicate.right)
        terms = left_terms if left_terms is not None else right_terms
        if left_where == INCLUDE:
            return right_where, terms
        if right_where == INCLUDE:
            return left_where, terms
        return And(left_where, right_where), terms
    raise ProximityProcessingError(
        f"Predicate cannot be evaluated by an ArcGIS feature service: {predicate}",
        {"stage": "execution"}
    )


class ArcGISLayerFeatureCollection(FeatureCollection, SupportsPushdown):
    """Feature collection over an ArcGIS feature layer.

    Geometries are requested in WGS84 and stored as shapely geometries under
    the ``SHAPE`` attribute. Feature identifiers come from the object id field.
    """

    def __init__(self, layer: FeatureLayer, restriction: Predicate = INCLUDE,
                 object_id_field: str = "OBJECTID", out_fields: str = "*",
                 max_retries: int = 3, retry_wait: float = 1.0):
        """Initialize the collection.

        Args:
            layer: FeatureLayer to query
            restriction: Attribute restriction already applied to this collection
            object_id_field: Field holding unique object ids
            out_fields: Fields to request from the service
            max_retries: Attempts per REST query before giving up
            retry_wait: Exponential backoff multiplier in seconds
        """
        self.layer = layer
        self._restriction = restriction
        self.object_id_field = object_id_field
        self.out_fields = out_fields
        self.max_retries = max_retries
        self.retry_wait = retry_wait
        self._schema: Optional[FeatureSchema] = None

    @classmethod
    def from_connector(cls, connector, layer_url: str, restriction: Predicate = INCLUDE,
                       config=None) -> "ArcGISLayerFeatureCollection":
        """Open a layer through an ArcGISConnector.

        Args:
            connector: Connected or connectable ArcGISConnector
            layer_url: REST URL of the feature layer
            restriction: Attribute restriction for the collection
            config: Optional ProximitySearchConfig supplying ArcGIS settings
        """
        layer = connector.get_feature_layer(layer_url)
        if config is None:
            return cls(layer, restriction=restriction)
        return cls(
            layer,
            restriction=restriction,
            object_id_field=config.arcgis_object_id_field,
            max_retries=config.arcgis_max_retries,
        )

    @property
    def schema(self) -> FeatureSchema:
        if self._schema is None:
            properties = self.layer.properties
            fields = [field["name"] for field in properties.get("fields", [])]
            self._schema = FeatureSchema(
                name=properties.get("name") or "arcgis_layer",
                geometry_property=GEOMETRY_PROPERTY,
                fields=fields + [GEOMETRY_PROPERTY],
                crs=f"EPSG:{WGS84_WKID}",
            )
        return self._schema

    @property
    def restriction(self) -> Predicate:
        return self._restriction

    def size(self) -> int:
        return self._run_query(where=self._restriction.to_sql(), return_count_only=True)

    def features(self) -> FeatureIterator:
        feature_set = self._run_query(
            where=self._restriction.to_sql(),
            out_fields=self.out_fields,
            return_geometry=True,
            out_sr=WGS84_WKID,
        )
        return FeatureIterator(self._to_feature(feature) for feature in feature_set.features)

    def query(self, predicate: Predicate,
              cancel_event: Optional[threading.Event] = None) -> FeatureCollection:
        """Evaluate ``predicate`` on the feature service.

        Returns:
            In-memory collection of matching features, unique by object id
        """
        if matches_nothing(predicate):
            logger.debug("Predicate matches nothing, skipping service queries")
            return MemoryFeatureCollection(self.schema)

        where_predicate, terms = split_predicate(predicate)
        where = where_predicate.to_sql()

        if terms is None:
            logger.debug(f"Attribute-only service query: {where}")
            return ArcGISLayerFeatureCollection(
                self.layer, where_predicate, self.object_id_field,
                self.out_fields, self.max_retries, self.retry_wait
            )

        matches: Dict[str, Feature] = {}
        logger.debug(f"Running {len(terms)} buffered service queries with WHERE {where}")
        for completed, term in enumerate(terms):
            if cancel_event is not None and cancel_event.is_set():
                raise ProximitySearchCancelledError(
                    "Service query cancelled", {"stage": "execution", "completed_queries": completed}
                )
            feature_set = self._run_query(
                where=where,
                out_fields=self.out_fields,
                return_geometry=True,
                geometry_filter=self._geometry_filter(term),
                distance=term.distance_in_meters(),
                units=METER_UNITS,
                out_sr=WGS84_WKID,
            )
            for esri_feature in feature_set.features:
                feature = self._to_feature(esri_feature)
                matches.setdefault(feature.feature_id, feature)

        logger.debug(f"Service queries matched {len(matches)} features")
        return MemoryFeatureCollection(self.schema, matches.values())

    def _geometry_filter(self, term: DWithin) -> dict:
        geometry = Geometry.from_shapely(term.literal.geometry, spatial_reference={"wkid": WGS84_WKID})
        return intersects(geometry, sr=WGS84_WKID)

    def _run_query(self, **params):
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self.retry_wait, max=10),
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    return self.layer.query(**params)
        except Exception as e:
            logger.error(f"Feature service query failed: {e}")
            raise ResourceFailureError(
                f"Feature service query failed: {str(e)}",
                {"stage": "execution", "layer": getattr(self.layer, "url", "unknown")}
            ) from e

    def _to_feature(self, esri_feature) -> Feature:
        attributes = dict(esri_feature.attributes)
        if esri_feature.geometry:
            attributes[GEOMETRY_PROPERTY] = Geometry(esri_feature.geometry).as_shapely
        else:
            attributes[GEOMETRY_PROPERTY] = None
        return Feature(
            feature_id=str(attributes.get(self.object_id_field)),
            schema=self.schema,
            attributes=attributes,
        )
