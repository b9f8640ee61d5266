"""Proximity Predicate Construction

Builds the OR of per-geometry distance-within predicates used by a proximity
search, and merges it with a data source's existing restriction for native
query execution.
"""

import logging
import math
from enum import Enum
from typing import Iterable, Iterator

from shapely.geometry.base import BaseGeometry

from src.exceptions import InvalidArgumentError
from ..geometry import distance_degrees
from ..models import Feature
from .predicate_models import (
    Predicate, PropertyRef, GeometryLiteral, DWithin, And, Or, INCLUDE
)

logger = logging.getLogger(__name__)


class UnitMode(str, Enum):
    """Unit the literal DWITHIN distances are expressed in."""
    LINEAR = "linear"    # meters, for unit-aware native query engines
    ANGULAR = "angular"  # degrees, for in-memory evaluation in coordinate units


class PredicateBuilder:
    """Builds proximity predicates from reference features.

    Callers must pass ``UnitMode.ANGULAR`` for a predicate that will be
    evaluated feature by feature in memory and ``UnitMode.LINEAR`` for a
    predicate handed to a data source's native query engine.
    """

    def build(self, reference_features, target_property: PropertyRef,
              buffer_distance: float, unit_mode: UnitMode) -> Or:
        """Build one DWITHIN term per reference geometry, combined with OR.

        The reference iterator is opened here and always closed, including
        when a reference feature turns out to have no geometry.

        Args:
            reference_features: FeatureCollection of reference features
            target_property: Geometry property of the *data* collection
            buffer_distance: Buffer in meters
            unit_mode: LINEAR keeps meters, ANGULAR converts per geometry to degrees

        Returns:
            Or predicate; with no reference features it matches nothing

        Raises:
            InvalidArgumentError: For a negative buffer or a reference feature without geometry
        """
        self.validate_distance(buffer_distance)
        with reference_features.features() as iterator:
            predicate = self.build_from_geometries(
                self._geometries(iterator), target_property, buffer_distance, unit_mode
            )
        logger.debug(f"Built {unit_mode.value} proximity predicate with {len(predicate)} terms")
        return predicate

    def build_from_geometries(self, geometries: Iterable[BaseGeometry], target_property: PropertyRef,
                              buffer_distance: float, unit_mode: UnitMode) -> Or:
        """Build the proximity predicate from bare geometries."""
        self.validate_distance(buffer_distance)
        terms = []
        for geometry in geometries:
            if unit_mode == UnitMode.ANGULAR:
                # degrees per meter depend on latitude, so convert per geometry
                distance = distance_degrees(geometry, buffer_distance)
            else:
                distance = float(buffer_distance)
            terms.append(DWithin(target_property, GeometryLiteral(geometry), distance, "meters"))
        return Or(tuple(terms))

    @staticmethod
    def _geometries(features: Iterable[Feature]) -> Iterator[BaseGeometry]:
        for feature in features:
            geometry = feature.geometry
            if geometry is None or geometry.is_empty:
                raise InvalidArgumentError(
                    f"Reference feature {feature.feature_id} has no geometry",
                    {"stage": "construction", "feature_id": feature.feature_id}
                )
            yield geometry

    @staticmethod
    def validate_distance(buffer_distance: float) -> None:
        if buffer_distance is None or buffer_distance < 0 or not math.isfinite(buffer_distance):
            raise InvalidArgumentError(
                f"Buffer distance must be a non-negative number of meters, got {buffer_distance}",
                {"stage": "construction"}
            )


class FilterMerger:
    """Combines an existing restriction with a proximity predicate."""

    @staticmethod
    def merge(existing: Predicate, proximity: Predicate) -> Predicate:
        """Return ``existing AND proximity``, skipping a trivially true operand."""
        if existing is None or existing == INCLUDE:
            return proximity
        if proximity == INCLUDE:
            return existing
        if existing == proximity:
            return existing
        return And(existing, proximity)
