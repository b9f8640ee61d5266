"""Predicate Expression Models

Composable boolean expressions evaluated against features: constant
include/exclude filters, attribute equality, distance-within spatial tests
and AND/OR composition.

In-memory evaluation of ``DWithin`` compares the literal distance with the
shapely distance in the coordinate units of the geometries. The ``units``
label states which unit a unit-aware engine should read the distance in;
the in-memory evaluator does not convert it.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator, Tuple

from shapely.geometry.base import BaseGeometry

from src.exceptions import InvalidArgumentError, MissingAttributeError, ProximityProcessingError
from ..models import Feature

# Meters per distance unit accepted by DWITHIN
UNIT_FACTORS = {
    "meters": 1.0,
    "kilometers": 1000.0,
    "feet": 0.3048,
    "statute miles": 1609.344,
    "nautical miles": 1852.0,
}


class Predicate(ABC):
    """Boolean expression over a single feature."""

    @abstractmethod
    def evaluate(self, feature: Feature) -> bool:
        """Return whether the feature satisfies this predicate."""

    def is_spatial(self) -> bool:
        return False

    def to_sql(self) -> str:
        """Render as a SQL WHERE clause for services that take one."""
        raise ProximityProcessingError(
            f"Predicate cannot be expressed as SQL: {self}", {"stage": "execution"}
        )


@dataclass(frozen=True)
class Include(Predicate):
    """Predicate matching every feature."""

    def evaluate(self, feature: Feature) -> bool:
        return True

    def to_sql(self) -> str:
        return "1=1"

    def __str__(self) -> str:
        return "INCLUDE"


@dataclass(frozen=True)
class Exclude(Predicate):
    """Predicate matching no feature."""

    def evaluate(self, feature: Feature) -> bool:
        return False

    def to_sql(self) -> str:
        return "1=0"

    def __str__(self) -> str:
        return "EXCLUDE"


INCLUDE = Include()
EXCLUDE = Exclude()


@dataclass(frozen=True)
class PropertyRef:
    """Reference to a feature attribute by name."""
    name: str

    def value_of(self, feature: Feature) -> Any:
        return feature.attributes.get(self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class GeometryLiteral:
    """Literal geometry operand."""
    geometry: BaseGeometry

    def __str__(self) -> str:
        return self.geometry.wkt


def _sql_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


@dataclass(frozen=True)
class PropertyEquals(Predicate):
    """Attribute equality test. A missing or null attribute never matches."""
    property: PropertyRef
    value: Any

    def evaluate(self, feature: Feature) -> bool:
        actual = self.property.value_of(feature)
        if actual is None:
            return False
        return actual == self.value

    def to_sql(self) -> str:
        if self.value is None:
            return f"{self.property} IS NULL"
        return f"{self.property} = {_sql_literal(self.value)}"

    def __str__(self) -> str:
        return f"{self.property} = {self.value!r}"


@dataclass(frozen=True)
class DWithin(Predicate):
    """Tests whether a feature geometry lies within a distance of a literal geometry."""
    property: PropertyRef
    literal: GeometryLiteral
    distance: float
    units: str = "meters"

    def __post_init__(self):
        if self.distance < 0 or not math.isfinite(self.distance):
            raise InvalidArgumentError(
                f"DWITHIN distance must be a non-negative number, got {self.distance}",
                {"stage": "construction"}
            )
        if self.units not in UNIT_FACTORS:
            raise InvalidArgumentError(
                f"Unsupported distance units '{self.units}'",
                {"stage": "construction", "supported": sorted(UNIT_FACTORS)}
            )

    def is_spatial(self) -> bool:
        return True

    def distance_in_meters(self) -> float:
        return self.distance * UNIT_FACTORS[self.units]

    def evaluate(self, feature: Feature) -> bool:
        geometry = self.property.value_of(feature)
        if geometry is None:
            raise MissingAttributeError(
                f"Feature {feature.feature_id} has no value for '{self.property}'",
                {"feature_id": feature.feature_id, "property": self.property.name}
            )
        return geometry.distance(self.literal.geometry) <= self.distance

    def __str__(self) -> str:
        return f"DWITHIN({self.property}, {self.literal}, {self.distance}, {self.units})"


@dataclass(frozen=True)
class And(Predicate):
    """Conjunction of two predicates."""
    left: Predicate
    right: Predicate

    def evaluate(self, feature: Feature) -> bool:
        return self.left.evaluate(feature) and self.right.evaluate(feature)

    def is_spatial(self) -> bool:
        return self.left.is_spatial() or self.right.is_spatial()

    def to_sql(self) -> str:
        return f"({self.left.to_sql()}) AND ({self.right.to_sql()})"

    def __str__(self) -> str:
        return f"({self.left} AND {self.right})"


@dataclass(frozen=True)
class Or(Predicate):
    """Disjunction of any number of predicates. With no terms it matches nothing."""
    terms: Tuple[Predicate, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "terms", tuple(self.terms))

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Predicate]:
        return iter(self.terms)

    def evaluate(self, feature: Feature) -> bool:
        return any(term.evaluate(feature) for term in self.terms)

    def is_spatial(self) -> bool:
        return any(term.is_spatial() for term in self.terms)

    def to_sql(self) -> str:
        if not self.terms:
            return EXCLUDE.to_sql()
        return " OR ".join(f"({term.to_sql()})" for term in self.terms)

    def __str__(self) -> str:
        if not self.terms:
            return "OR()"
        return "(" + " OR ".join(str(term) for term in self.terms) + ")"
