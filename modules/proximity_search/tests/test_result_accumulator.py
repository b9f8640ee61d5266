"""Unit tests for ResultAccumulator."""

import pytest

from modules.proximity_search.execution import ResultAccumulator
from modules.proximity_search.sources import MemoryFeatureCollection

from .conftest import DATA_SCHEMA, make_feature


class TestResultAccumulator:
    """Test result handling for both execution paths."""

    def test_for_schema_starts_empty(self):
        accumulator = ResultAccumulator.for_schema(DATA_SCHEMA)

        assert accumulator.is_accumulating
        assert accumulator.count() == 0
        assert accumulator.results().schema == DATA_SCHEMA
        assert accumulator.results().size() == 0

    def test_add_appends(self):
        accumulator = ResultAccumulator.for_schema(DATA_SCHEMA)

        assert accumulator.add(make_feature("a", 0, 0))
        assert accumulator.add(make_feature("b", 1, 1))

        assert accumulator.count() == 2
        assert accumulator.results().ids() == ["a", "b"]

    def test_repeated_id_ignored(self):
        accumulator = ResultAccumulator.for_schema(DATA_SCHEMA)
        accumulator.add(make_feature("a", 0, 0))

        assert accumulator.add(make_feature("a", 0, 0)) is False
        assert accumulator.results().ids() == ["a"]

    def test_from_collection_wraps_unchanged(self):
        collection = MemoryFeatureCollection(DATA_SCHEMA, [make_feature("a", 0, 0)])

        accumulator = ResultAccumulator.from_collection(collection)

        assert accumulator.results() is collection
        assert not accumulator.is_accumulating
        assert accumulator.count() is None

    def test_from_collection_rejects_add(self):
        accumulator = ResultAccumulator.from_collection(MemoryFeatureCollection(DATA_SCHEMA))

        with pytest.raises(TypeError):
            accumulator.add(make_feature("a", 0, 0))
