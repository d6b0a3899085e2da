"""Shared test fixtures."""

import uuid

import pytest
from pyproj import Transformer
from shapely.geometry import Polygon

from territory_run.core.types import RunAttempt, TerritorySnapshot

# EPSG:6933 is cylindrical, so axis-aligned rectangles in meters stay
# rectangles in lon/lat and their equal-area size is exact.
_to_wgs84 = Transformer.from_crs("EPSG:6933", "EPSG:4326", always_xy=True)

# Somewhere around 39°N, 10°E
ORIGIN_X = 1_000_000.0
ORIGIN_Y = 4_000_000.0


def meters_to_lonlat(points):
    """Convert (x, y) offsets in meters from the origin to (lon, lat) pairs."""
    return [_to_wgs84.transform(ORIGIN_X + x, ORIGIN_Y + y) for x, y in points]


def rectangle_polygon(x, y, width, height) -> Polygon:
    return Polygon(meters_to_lonlat([
        (x, y), (x + width, y), (x + width, y + height), (x, y + height)
    ]))


@pytest.fixture
def lonlat():
    """Builder converting metre offsets to (lon, lat) pairs."""
    return meters_to_lonlat


@pytest.fixture
def rectangle():
    """Builder for WGS84 rectangles given in meters: rectangle(x, y, width, height)."""
    return rectangle_polygon


@pytest.fixture
def square():
    """Builder for WGS84 squares given in meters: square(x, y, side)."""
    return lambda x, y, side: rectangle_polygon(x, y, side, side)


@pytest.fixture
def make_territory():
    """Factory for rival territory snapshots."""

    def factory(geometry, area, avg_speed=5.0, max_laps=1, owner_name="rival", version=1):
        return TerritorySnapshot(
            id=uuid.uuid4(),
            owner_id=uuid.uuid4(),
            geometry=geometry,
            area=area,
            best_lap_time=600.0,
            max_laps=max_laps,
            avg_speed=avg_speed,
            version=version,
            owner_name=owner_name,
        )

    return factory


@pytest.fixture
def attempt():
    """A run scoring 11000 with canonical weights."""
    return RunAttempt(duration_seconds=1200.0, laps=10, avg_speed=10.9)
