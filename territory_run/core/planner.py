"""
Territory mutation planning.

Turns a conquest outcome into the change-set the persistence layer applies in
one transaction. Planning performs no I/O.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import structlog
from shapely.errors import GEOSException
from shapely.geometry import Polygon

from .conquest import ConquestOutcome, OutcomeTag
from .errors import UnionFailure
from .geometry import area
from .types import RunAttempt, RunPolygon, TerritorySnapshot

logger = structlog.get_logger()


@dataclass(frozen=True)
class NewTerritory:
    """Territory record to insert."""

    owner_id: uuid.UUID
    geometry: Polygon
    area: float
    best_lap_time: float
    max_laps: int
    avg_speed: float
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class TerritoryDeletion:
    """Territory to delete, guarded by the version that was evaluated."""

    id: uuid.UUID
    version: int


@dataclass(frozen=True)
class MutationPlan:
    """All state changes for one evaluation; applied entirely or not at all."""

    create: Optional[NewTerritory] = None
    delete: Tuple[TerritoryDeletion, ...] = ()
    excluded_from_merge: Tuple[uuid.UUID, ...] = ()

    @property
    def is_noop(self) -> bool:
        return self.create is None and not self.delete


NOOP_PLAN = MutationPlan()


def _union(merged: Polygon, territory: TerritorySnapshot) -> Polygon:
    if not territory.geometry.is_valid:
        raise UnionFailure(territory.id, "territory geometry is invalid")
    try:
        candidate = merged.union(territory.geometry)
    except GEOSException as e:
        raise UnionFailure(territory.id, str(e)) from e
    if not isinstance(candidate, Polygon) or not candidate.is_valid:
        raise UnionFailure(territory.id, f"union is a {candidate.geom_type}, not a single polygon")
    return candidate


def merge_conquered(
    run_geometry: Polygon, territories: Iterable[TerritorySnapshot]
) -> Tuple[Polygon, List[uuid.UUID]]:
    """
    Union the run polygon with every conquered territory.

    A territory that cannot be merged into a single valid polygon is left out
    of the union and its id returned in the excluded list.
    """
    merged = run_geometry
    excluded = []
    for territory in territories:
        try:
            merged = _union(merged, territory)
        except UnionFailure as e:
            logger.warning(
                "Conquered territory excluded from merged geometry",
                territory_id=str(territory.id),
                lost_area=territory.area,
                reason=e.reason,
            )
            excluded.append(territory.id)
    return merged, excluded


def plan(
    run: RunPolygon,
    attempt: RunAttempt,
    outcome: ConquestOutcome,
    owner_id: uuid.UUID,
) -> MutationPlan:
    """
    Build the mutation plan for a conquest outcome.

    created  -> insert the run polygon as a new territory
    captured -> delete every conquered territory, insert their union with the run
    defended -> nothing changes
    """
    if outcome.tag is OutcomeTag.DEFENDED:
        return NOOP_PLAN

    if outcome.tag is OutcomeTag.CREATED:
        return MutationPlan(
            create=NewTerritory(
                owner_id=owner_id,
                geometry=run.geometry,
                area=run.area,
                best_lap_time=attempt.lap_time,
                max_laps=attempt.laps,
                avg_speed=attempt.avg_speed,
            )
        )

    conquered = outcome.conquered
    merged, excluded = merge_conquered(run.geometry, conquered)
    return MutationPlan(
        create=NewTerritory(
            owner_id=owner_id,
            geometry=merged,
            area=area(merged),
            best_lap_time=attempt.lap_time,
            max_laps=attempt.laps,
            avg_speed=attempt.avg_speed,
        ),
        delete=tuple(TerritoryDeletion(t.id, t.version) for t in conquered),
        excluded_from_merge=tuple(excluded),
    )
