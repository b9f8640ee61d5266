"""Unit tests for meter to degree distance conversion."""

import math

import pytest
from shapely.geometry import LineString, Point, Polygon

from modules.proximity_search.geometry import distance_degrees, meters_to_degrees, EARTH_RADIUS_M
from src.exceptions import InvalidArgumentError


class TestMetersToDegrees:
    """Test conversion at a latitude."""

    def test_zero_distance(self):
        assert meters_to_degrees(45.0, 0) == 0.0

    def test_equator_matches_arc_length(self):
        """At the equator a meter covers the same angle north and east."""
        expected = math.degrees(1000 / EARTH_RADIUS_M)
        assert meters_to_degrees(0.0, 1000) == pytest.approx(expected, rel=1e-9)

    def test_one_kilometer_at_equator(self):
        assert meters_to_degrees(0.0, 1000) == pytest.approx(0.008993, abs=1e-6)

    def test_higher_latitude_gives_more_degrees(self):
        """Longitude degrees shrink towards the poles, so the same buffer spans more."""
        equator = meters_to_degrees(0.0, 1000)
        sixty = meters_to_degrees(60.0, 1000)

        assert sixty > equator
        assert sixty == pytest.approx(2 * equator, rel=1e-3)

    def test_southern_latitude_symmetric(self):
        assert meters_to_degrees(-45.0, 500) == pytest.approx(meters_to_degrees(45.0, 500))

    def test_huge_distance_capped(self):
        assert meters_to_degrees(10.0, 10 * EARTH_RADIUS_M * math.pi) == 180.0

    def test_circle_covering_pole_spans_all_longitudes(self):
        assert meters_to_degrees(89.99, 5000) == 180.0

    def test_longitude_extent_covers_every_point_in_range(self):
        """Points 1000 m away in any direction stay within the returned offset."""
        latitude = 70.0
        degrees = meters_to_degrees(latitude, 1000)
        delta = 1000 / EARTH_RADIUS_M
        phi1 = math.radians(latitude)
        for bearing in range(0, 360, 5):
            theta = math.radians(bearing)
            phi2 = math.asin(math.sin(phi1) * math.cos(delta) + math.cos(phi1) * math.sin(delta) * math.cos(theta))
            dlon = math.atan2(
                math.sin(theta) * math.sin(delta) * math.cos(phi1),
                math.cos(delta) - math.sin(phi1) * math.sin(phi2)
            )
            assert abs(math.degrees(dlon)) <= degrees + 1e-12
            assert abs(math.degrees(phi2) - latitude) <= degrees + 1e-12

    def test_negative_distance_rejected(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            meters_to_degrees(0.0, -1)
        assert exc_info.value.stage == "construction"

    def test_nan_distance_rejected(self):
        with pytest.raises(InvalidArgumentError):
            meters_to_degrees(0.0, float("nan"))


class TestDistanceDegrees:
    """Test conversion relative to a geometry."""

    def test_point_uses_its_latitude(self):
        assert distance_degrees(Point(170.0, 60.0), 1000) == pytest.approx(meters_to_degrees(60.0, 1000))

    def test_polygon_uses_latitude_furthest_from_equator(self):
        square = Polygon([(0, 40), (2, 40), (2, 42), (0, 42)])
        assert distance_degrees(square, 250) == pytest.approx(meters_to_degrees(42.0, 250))

    def test_southern_polygon_uses_southern_edge(self):
        square = Polygon([(0, -42), (2, -42), (2, -40), (0, -40)])
        assert distance_degrees(square, 250) == pytest.approx(meters_to_degrees(42.0, 250))

    def test_long_line_covers_its_northern_end(self):
        """A point 800 m east of the northern tip lies inside a 1000 m degree buffer."""
        line = LineString([(10, 0), (10, 70)])
        tip = Point(10, 70)
        east_of_tip = Point(10 + math.degrees(800 / (EARTH_RADIUS_M * math.cos(math.radians(70)))), 70)

        assert line.distance(east_of_tip) <= distance_degrees(line, 1000)
        assert tip.distance(east_of_tip) > meters_to_degrees(35.0, 1000)

    def test_points_at_different_latitudes_differ(self):
        assert distance_degrees(Point(0, 0), 1000) != distance_degrees(Point(0, 50), 1000)

    def test_empty_geometry_rejected(self):
        with pytest.raises(InvalidArgumentError):
            distance_degrees(Point(), 100)

    def test_missing_geometry_rejected(self):
        with pytest.raises(InvalidArgumentError):
            distance_degrees(None, 100)
