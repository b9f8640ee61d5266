"""Tests for the proximity search process entry points."""

import threading
from unittest.mock import Mock

import pytest

from modules.proximity_search import ProximitySearchProcess, proximity_search
from modules.proximity_search.execution import MissingGeometryPolicy, ProximitySearchConfig
from modules.proximity_search.sources import FeatureCollection, MemoryFeatureCollection
from src.exceptions import InvalidArgumentError, MissingAttributeError, ProximitySearchCancelledError

from .conftest import DATA_SCHEMA, make_feature


class TestProximitySearchProcess:
    """Test the process descriptor and its execution methods."""

    def test_describe(self):
        description = ProximitySearchProcess.describe()

        assert description.title == "Proximity Search"
        assert [p.name for p in description.parameters] == ["input_features", "data_features", "buffer_distance"]
        assert description.result_description == "Output feature collection"

    def test_parameter_summary(self):
        summary = ProximitySearchProcess().parameter_summary()
        assert summary["buffer_distance"] == "Buffer size in meters"

    def test_execute_returns_collection(self, reference_at_origin, data_near_origin):
        result = ProximitySearchProcess().execute(reference_at_origin, data_near_origin, 1000)

        assert isinstance(result, FeatureCollection)
        assert result.ids() == ["near", "close-other"]

    def test_run_returns_metrics(self, reference_at_origin, data_near_origin):
        result = ProximitySearchProcess().run(reference_at_origin, data_near_origin, 100)

        assert result.feature_ids() == ["close-other"]
        assert result.metrics.features_visited == 3
        assert result.metrics.get_match_rate() == pytest.approx(1 / 3)

    def test_from_environment(self):
        config_loader = Mock()
        config_loader.get_processing_config.return_value = {
            "missing_geometry_policy": "abort",
            "progress_log_interval": 500,
            "unrelated_setting": True,
        }

        process = ProximitySearchProcess.from_environment(config_loader, "production")

        config_loader.get_processing_config.assert_called_once_with("production")
        assert process.config.missing_geometry_policy == MissingGeometryPolicy.ABORT
        assert process.config.progress_log_interval == 500


class TestProximitySearchFunction:
    """Test the module-level function."""

    def test_matches_within_buffer(self, reference_at_origin, data_near_origin):
        result = proximity_search(reference_at_origin, data_near_origin, 1000)
        assert result.ids() == ["near", "close-other"]

    def test_small_buffer(self, reference_at_origin, data_near_origin):
        assert proximity_search(reference_at_origin, data_near_origin, 100).ids() == ["close-other"]

    def test_negative_buffer(self, reference_at_origin, data_near_origin):
        with pytest.raises(InvalidArgumentError):
            proximity_search(reference_at_origin, data_near_origin, -1)

    def test_empty_references(self, empty_references, data_near_origin):
        assert proximity_search(empty_references, data_near_origin, 1000).size() == 0

    def test_missing_geometry_abort_config(self, reference_at_origin):
        data = MemoryFeatureCollection(DATA_SCHEMA, [make_feature("no-geom", None, None)])
        config = ProximitySearchConfig(missing_geometry_policy="abort")

        with pytest.raises(MissingAttributeError):
            proximity_search(reference_at_origin, data, 1000, config=config)

    def test_cancelled(self, reference_at_origin, data_near_origin):
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(ProximitySearchCancelledError):
            proximity_search(reference_at_origin, data_near_origin, 1000, cancel_event=cancel_event)
