"""Tests for run path normalization."""

import pytest

from territory_run.core.errors import MalformedPathError, TooSmallError
from territory_run.core.normalizer import normalize


class TestRingClosing:
    """Test closing and parsing of raw paths."""

    def test_open_ring_is_closed(self, lonlat):
        path = lonlat([(0, 0), (100, 0), (100, 100), (0, 100)])

        run = normalize(path)

        coords = list(run.geometry.exterior.coords)
        assert coords[0] == coords[-1]
        assert len(coords) == 5
        assert run.area == pytest.approx(10_000, rel=1e-6)

    def test_consecutive_duplicates_dropped(self, lonlat):
        path = lonlat([(0, 0), (0, 0), (100, 0), (100, 100), (100, 100), (0, 100)])

        run = normalize(path)

        assert len(run.geometry.exterior.coords) == 5

    def test_altitude_is_dropped(self, lonlat):
        path = [(lon, lat, 120.0) for lon, lat in lonlat([(0, 0), (100, 0), (100, 100), (0, 100)])]

        run = normalize(path)

        assert not run.geometry.has_z

    def test_already_closed_ring_is_unchanged(self, square):
        polygon = square(0, 0, 50)
        ring = list(polygon.exterior.coords)

        run = normalize(ring)

        assert list(run.geometry.exterior.coords) == ring
        assert run.area == pytest.approx(2_500, rel=1e-6)

    def test_normalization_is_idempotent(self, lonlat):
        path = lonlat([(0, 0), (80, 0), (80, 60), (30, 90), (0, 60)])

        first = normalize(path)
        second = normalize(list(first.geometry.exterior.coords))

        assert second.area == first.area
        assert list(second.geometry.exterior.coords) == list(first.geometry.exterior.coords)


class TestMalformedPaths:
    """Test rejection of paths that cannot form a polygon."""

    def test_fewer_than_four_points(self, lonlat):
        with pytest.raises(MalformedPathError):
            normalize(lonlat([(0, 0), (100, 0), (100, 100)]))

    def test_closed_triangle_has_three_distinct_points(self, lonlat):
        with pytest.raises(MalformedPathError):
            normalize(lonlat([(0, 0), (100, 0), (100, 100), (0, 0)]))

    def test_repeated_points_do_not_count(self, lonlat):
        with pytest.raises(MalformedPathError):
            normalize(lonlat([(0, 0), (0, 0), (100, 0), (100, 0), (50, 50)]))

    def test_empty_path(self):
        with pytest.raises(MalformedPathError):
            normalize([])

    def test_coordinate_without_latitude(self, lonlat):
        path = lonlat([(0, 0), (100, 0), (100, 100), (0, 100)])
        path[2] = (path[2][0],)

        with pytest.raises(MalformedPathError):
            normalize(path)

    def test_non_finite_coordinate(self, lonlat):
        path = lonlat([(0, 0), (100, 0), (100, 100), (0, 100)])
        path[1] = (float("nan"), path[1][1])

        with pytest.raises(MalformedPathError):
            normalize(path)

    def test_collinear_points_enclose_nothing(self, lonlat):
        with pytest.raises(MalformedPathError):
            normalize(lonlat([(0, 0), (100, 0), (200, 0), (300, 0)]))


class TestSelfIntersection:
    """Test repair of self-intersecting paths."""

    def test_figure_eight_keeps_largest_loop(self, lonlat):
        # Crossing near (100, 67): left loop ~5 000 m², right loop ~20 000 m²
        path = lonlat([(0, 0), (300, 200), (300, 0), (0, 100)])

        run = normalize(path)

        assert run.geometry.is_valid
        assert run.area == pytest.approx(20_000, rel=1e-2)
        assert run.geometry.bounds[2] == pytest.approx(max(lon for lon, _ in path))

    def test_nested_second_lap_claims_whole_outer_loop(self, lonlat):
        path = lonlat([
            (0, 0), (100, 0), (100, 100), (0, 100), (0, 0),
            (25, 25), (25, 75), (75, 75), (75, 25), (25, 25), (0, 0),
        ])

        run = normalize(path)

        assert run.geometry.is_valid
        assert not run.geometry.interiors
        assert run.area == pytest.approx(10_000, rel=1e-6)

    def test_repaired_loop_below_minimum_is_rejected(self, lonlat):
        path = lonlat([(0, 0), (15, 10), (15, 0), (0, 5)])

        with pytest.raises(TooSmallError):
            normalize(path)


class TestMinimumArea:
    """Test the minimum territory size."""

    def test_below_minimum(self, square):
        with pytest.raises(TooSmallError) as exc_info:
            normalize(list(square(0, 0, 10).exterior.coords))

        assert exc_info.value.area == pytest.approx(100, rel=1e-6)
        assert exc_info.value.min_area == 200.0

    def test_custom_minimum(self, square):
        run = normalize(list(square(0, 0, 10).exterior.coords), min_area=50.0)

        assert run.area == pytest.approx(100, rel=1e-6)
