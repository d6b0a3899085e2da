"""
Errors raised by the conquest evaluation engine.

Caller-input problems (`InvalidRunPathError` and its subclasses) reject the
request and are never retried. `ConsistencyViolation` is an internal invariant
breach. `ConcurrentModification` is transient and the HTTP layer retries the
read-evaluate-write cycle. `UnionFailure` never leaves the planner.
"""

from typing import Optional


class TerritoryRunError(Exception):
    """Base class for all territory run errors."""


class InvalidRunPathError(TerritoryRunError):
    """The submitted run path cannot become a territory."""


class MalformedPathError(InvalidRunPathError):
    """Fewer than 4 distinct points, or coordinates that are not (lon, lat) pairs."""


class TooSmallError(InvalidRunPathError):
    """The normalized run polygon is below the minimum territory area."""

    def __init__(self, area: float, min_area: float):
        super().__init__(
            f"Run area {area:.1f} m² is below the minimum territory size of {min_area:.1f} m²"
        )
        self.area = area
        self.min_area = min_area


class ConsistencyViolation(TerritoryRunError):
    """A territory returned by the spatial pre-filter does not intersect the run."""

    def __init__(self, territory_id, message: Optional[str] = None):
        super().__init__(
            message
            or f"Territory {territory_id} was reported as intersecting but is disjoint from the run"
        )
        self.territory_id = territory_id


class ConcurrentModification(TerritoryRunError):
    """A territory changed between being read and being written."""

    def __init__(self, territory_id):
        super().__init__(f"Territory {territory_id} was modified concurrently")
        self.territory_id = territory_id


class UnionFailure(TerritoryRunError):
    """A conquered geometry could not be merged into the run polygon."""

    def __init__(self, territory_id, reason: str):
        super().__init__(f"Cannot merge territory {territory_id}: {reason}")
        self.territory_id = territory_id
        self.reason = reason
