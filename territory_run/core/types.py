"""
Value types shared by the conquest engine components.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from shapely.geometry import Polygon


@dataclass(frozen=True)
class RunAttempt:
    """Performance of one run, validated at the API boundary."""

    duration_seconds: float
    laps: int
    avg_speed: float

    @property
    def lap_time(self) -> float:
        """Seconds per lap; stored as the territory's best lap time."""
        return self.duration_seconds / self.laps


@dataclass(frozen=True)
class RunPolygon:
    """Normalized run polygon and its area in square meters."""

    geometry: Polygon
    area: float


@dataclass(frozen=True)
class TerritorySnapshot:
    """A rival territory as read by the persistence layer."""

    id: uuid.UUID
    owner_id: uuid.UUID
    geometry: Polygon
    area: float
    best_lap_time: float
    max_laps: int
    avg_speed: float
    version: int = 1
    owner_name: Optional[str] = None
