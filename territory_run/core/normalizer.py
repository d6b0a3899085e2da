"""
Polygon normalization for raw GPS run paths.

A run path is an ordered list of (longitude, latitude) pairs. Normalization:
- closes the ring when the first and last points differ
- splits a self-intersecting ring into its simple loops and keeps the largest
  (crossing artifacts are GPS slivers)
- rejects paths that enclose less than the minimum territory area
"""

import math
from typing import List, Sequence, Tuple

import structlog
from shapely.geometry import LineString, Polygon
from shapely.ops import polygonize, unary_union

from .errors import MalformedPathError, TooSmallError
from .geometry import area
from .types import RunPolygon

logger = structlog.get_logger()

DEFAULT_MIN_AREA_M2 = 200.0
MIN_DISTINCT_POINTS = 4

Point = Tuple[float, float]


def _parse_points(raw_coordinates: Sequence[Sequence[float]]) -> List[Point]:
    """Convert raw coordinate pairs to 2-D float tuples, dropping altitude."""
    points = []
    for index, coordinate in enumerate(raw_coordinates):
        if len(coordinate) < 2:
            raise MalformedPathError(f"Coordinate {index} is not a (longitude, latitude) pair")
        lon, lat = float(coordinate[0]), float(coordinate[1])
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise MalformedPathError(f"Coordinate {index} is not finite")
        points.append((lon, lat))
    return points


def _close_ring(points: List[Point]) -> List[Point]:
    ring = [points[0]]
    for point in points[1:]:
        if point != ring[-1]:
            ring.append(point)
    if ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def _dominant_loop(ring: List[Point]) -> Polygon:
    """
    Split a self-intersecting ring at its crossings and keep the largest loop.

    Faces from polygonize can have holes where a later lap ran inside an
    earlier one; a territory is the whole enclosed area, so holes are filled.
    """
    noded = unary_union(LineString(ring))
    loops = [Polygon(face.exterior) for face in polygonize(noded)]
    if not loops:
        raise MalformedPathError("Run path does not enclose any area")

    areas = [area(loop) for loop in loops]
    best = max(range(len(loops)), key=areas.__getitem__)

    logger.info(
        "Repaired self-intersecting run path",
        loops=len(loops),
        kept_area=areas[best],
    )
    return loops[best]


def normalize(
    raw_coordinates: Sequence[Sequence[float]],
    min_area: float = DEFAULT_MIN_AREA_M2,
) -> RunPolygon:
    """
    Turn a raw run path into a simple polygon with its area.

    Args:
        raw_coordinates: Ordered (longitude, latitude) pairs
        min_area: Smallest acceptable area in square meters

    Returns:
        RunPolygon with the normalized geometry and its area

    Raises:
        MalformedPathError: fewer than 4 distinct points, or no enclosed area
        TooSmallError: the polygon is smaller than ``min_area``
    """
    points = _parse_points(raw_coordinates)
    distinct = len(set(points))
    if distinct < MIN_DISTINCT_POINTS:
        raise MalformedPathError(
            f"Run path needs at least {MIN_DISTINCT_POINTS} distinct points, got {distinct}"
        )

    ring = _close_ring(points)
    polygon = Polygon(ring)
    if not polygon.is_valid:
        polygon = _dominant_loop(ring)

    run_area = area(polygon)
    if run_area < min_area:
        raise TooSmallError(run_area, min_area)

    return RunPolygon(geometry=polygon, area=run_area)
