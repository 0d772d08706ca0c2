"""Tests for route distance tables and lookups."""

import math

import pytest

from cinematic.services.route_geometry import (
    FEET_PER_METER,
    build_route_stats,
    coordinate_at_distance,
    elevation_feet,
    find_nearest_route_point,
    grade_percent,
    haversine_meters,
    snap_to_route,
)

# 0.01 degrees of longitude along the equator
STEP_M = 1111.9508
STEP_MI = STEP_M / 1609.344


class TestBuildRouteStats:
    """Tests for build_route_stats."""

    def test_haversine_along_equator(self):
        """Test one 0.01 degree step on the equator."""
        assert haversine_meters((0.0, 0.0), (0.01, 0.0)) == pytest.approx(STEP_M, rel=1e-6)

    def test_cumulative_tables(self, route_stats):
        """Test that cumulative distances grow by one step per vertex."""
        assert route_stats.last_index == 5
        assert route_stats.cumulative_meters[0] == 0.0
        assert route_stats.cumulative_miles[1] == pytest.approx(STEP_MI, rel=1e-6)
        assert route_stats.total_miles == pytest.approx(5 * STEP_MI, rel=1e-6)
        assert route_stats.total_meters == route_stats.cumulative_meters[-1]

    def test_empty_geometry(self):
        """Test that no coordinates means no stats."""
        assert build_route_stats([]) is None
        assert build_route_stats(None) is None

    def test_single_point(self):
        """Test that a single vertex yields a zero-length route."""
        stats = build_route_stats([(1.0, 2.0)])

        assert stats.total_miles == 0.0
        assert stats.elevations == []


class TestLookups:
    """Tests for nearest-point and distance lookups."""

    def test_find_nearest_route_point(self, route_stats):
        """Test that the closest vertex index is returned with its distance."""
        index, distance = find_nearest_route_point(route_stats.coords, lat=0.0001, lon=0.021)

        assert index == 2
        assert distance < 200

    def test_find_nearest_on_empty_route(self):
        """Test that an empty coordinate list has no nearest point."""
        assert find_nearest_route_point([], 0.0, 0.0) is None

    def test_snap_to_route(self, route_stats):
        """Test that snapping reports the vertex and its cumulative mile."""
        snapped = snap_to_route(route_stats, lat=0.0, lon=0.0299)

        assert snapped.index == 3
        assert (snapped.lat, snapped.lon) == (0.0, 0.03)
        assert snapped.cumulative_mi == route_stats.cumulative_miles[3]
        assert snapped.distance_mi == pytest.approx(snapped.distance_m / 1609.344)

    def test_snap_without_stats(self):
        """Test that snapping needs geometry."""
        assert snap_to_route(None, 0.0, 0.0) is None

    def test_coordinate_at_distance(self, route_stats):
        """Test the first vertex at or beyond a distance, clamped to the route."""
        assert coordinate_at_distance(route_stats, 0.0).index == 0
        assert coordinate_at_distance(route_stats, 1.0).index == 2
        assert coordinate_at_distance(route_stats, 100.0).index == 5
        assert coordinate_at_distance(route_stats, -1.0).index == 0
        assert coordinate_at_distance(route_stats, math.nan) is None


class TestElevation:
    """Tests for elevation and grade lookups."""

    def test_elevation_feet(self, route_stats):
        """Test conversion of vertex elevation to feet."""
        assert elevation_feet(route_stats, 0) == pytest.approx(100 * FEET_PER_METER)
        assert elevation_feet(route_stats, 42) is None

    def test_grade_percent_uses_neighbours(self, route_stats):
        """Test grade across the previous and next vertices."""
        assert grade_percent(route_stats, 1) == pytest.approx(-10 / (2 * STEP_M) * 100, rel=1e-5)
        assert grade_percent(route_stats, 0) == pytest.approx(30 / STEP_M * 100, rel=1e-5)

    def test_grade_without_elevations(self, route_stats):
        """Test that missing elevation data yields no grade."""
        stats = build_route_stats(route_stats.coords)

        assert grade_percent(stats, 2) is None
