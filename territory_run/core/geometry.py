"""
Area and spatial relation of run polygons and territories.

Geometries are WGS84 (lon, lat) polygons. Areas are measured after projecting
to an equal-area CRS so they are comparable in square meters at any latitude.
"""

from enum import Enum

import shapely
from pyproj import Transformer
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

WGS84 = "EPSG:4326"
# WGS 84 / NSIDC EASE-Grid 2.0 Global (cylindrical equal-area)
EQUAL_AREA_CRS = "EPSG:6933"

_to_equal_area = Transformer.from_crs(WGS84, EQUAL_AREA_CRS, always_xy=True)


class Relation(Enum):
    """Relation of polygon ``a`` to polygon ``b``."""

    DISJOINT = "disjoint"
    OVERLAP = "overlap"
    CONTAINS = "contains"  # a fully encloses b
    INSIDE = "inside"  # a is fully enclosed by b


def project_to_equal_area(geometry: BaseGeometry) -> BaseGeometry:
    """Project a WGS84 geometry to EPSG:6933 meters."""
    return shapely.transform(geometry, _to_equal_area.transform, interleaved=False)


def area(polygon: BaseGeometry) -> float:
    """Area in square meters."""
    if polygon.is_empty:
        return 0.0
    return abs(project_to_equal_area(polygon).area)


def relate(a: Polygon, b: Polygon) -> Relation:
    """
    Classify how ``a`` relates to ``b``.

    Containment is checked before overlap, ``a`` enclosing ``b`` first, so
    identical polygons are CONTAINS. A boundary-only contact has no area in
    common and is DISJOINT.
    """
    if a.contains(b):
        return Relation.CONTAINS
    if b.contains(a):
        return Relation.INSIDE

    common = a.intersection(b)
    if common.is_empty or common.area == 0:
        return Relation.DISJOINT
    return Relation.OVERLAP
