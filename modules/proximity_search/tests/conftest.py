"""Shared fixtures for proximity search tests."""

import pytest
from shapely.geometry import Point

from modules.proximity_search.models import Feature, FeatureSchema
from modules.proximity_search.sources import FeatureIterator, MemoryFeatureCollection


DATA_SCHEMA = FeatureSchema(name="sites", geometry_property="geom", fields=["geom", "X"])
REFERENCE_SCHEMA = FeatureSchema(name="references", geometry_property="the_geom", fields=["the_geom"])


def make_feature(feature_id, x, y, schema=DATA_SCHEMA, **attributes):
    """Build a point feature at lon=x, lat=y."""
    geometry = Point(x, y) if x is not None else None
    values = {schema.geometry_property: geometry}
    values.update(attributes)
    return Feature(feature_id=str(feature_id), schema=schema, attributes=values)


class TrackingCollection(MemoryFeatureCollection):
    """In-memory collection that records how its iterators are opened and closed."""

    def __init__(self, schema, features=None):
        super().__init__(schema, features)
        self.opened = 0
        self.closed = 0

    def features(self) -> FeatureIterator:
        self.opened += 1
        return FeatureIterator(list(self._features), on_close=self._record_close)

    def _record_close(self):
        self.closed += 1


@pytest.fixture
def data_schema():
    return DATA_SCHEMA


@pytest.fixture
def reference_at_origin():
    """Single reference point at (0, 0)."""
    return TrackingCollection(REFERENCE_SCHEMA, [make_feature("ref-1", 0.0, 0.0, REFERENCE_SCHEMA)])


@pytest.fixture
def empty_references():
    return TrackingCollection(REFERENCE_SCHEMA, [])


@pytest.fixture
def data_near_origin():
    """Data points at increasing distance north of the origin.

    0.005 degrees of latitude is roughly 556 m, 0.05 roughly 5.6 km.
    """
    return MemoryFeatureCollection(DATA_SCHEMA, [
        make_feature("near", 0.0, 0.005, X=5),
        make_feature("far", 0.0, 0.05, X=5),
        make_feature("close-other", 0.0, 0.0001, X=7),
    ])
