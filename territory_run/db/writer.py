"""
Apply conquest mutation plans to PostGIS.

The writer works inside the caller's session; the session context manager
commits the whole plan or rolls all of it back.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from geoalchemy2.shape import from_shape
from sqlalchemy.orm import Session

from ..core.errors import ConcurrentModification
from ..core.planner import MutationPlan
from ..core.types import RunAttempt
from .models import Attempt, Territory

logger = structlog.get_logger()


class PlanWriter:
    """Persist a MutationPlan and its audit Attempt."""

    def __init__(self, session: Session):
        """Initialize writer with database session."""
        self.session = session

    def apply(
        self, plan: MutationPlan, attempt: RunAttempt, challenger_id: uuid.UUID
    ) -> Optional[uuid.UUID]:
        """
        Write every change of the plan.

        Conquered territories are deleted only if the row the engine evaluated
        is still there at the same version.

        Returns:
            Id of the created territory, None for a no-op plan

        Raises:
            ConcurrentModification: a conquered territory changed or vanished
        """
        if plan.is_noop:
            return None

        for deletion in plan.delete:
            deleted = (
                self.session.query(Territory)
                .filter(Territory.id == deletion.id, Territory.version == deletion.version)
                .delete(synchronize_session=False)
            )
            if deleted != 1:
                logger.warning(
                    "Conquered territory changed before write",
                    territory_id=str(deletion.id),
                    expected_version=deletion.version,
                )
                raise ConcurrentModification(deletion.id)

        new = plan.create
        territory = Territory(
            id=new.id,
            owner_id=new.owner_id,
            geometry=from_shape(new.geometry, srid=4326),
            area=new.area,
            best_lap_time=new.best_lap_time,
            max_laps=new.max_laps,
            avg_speed=new.avg_speed,
        )
        self.session.add(territory)

        self.session.add(
            Attempt(
                user_id=challenger_id,
                territory_id=new.id,
                duration_seconds=attempt.duration_seconds,
                laps=attempt.laps,
                avg_speed=attempt.avg_speed,
            )
        )
        self.session.flush()

        logger.info(
            "Mutation plan applied",
            territory_id=str(new.id),
            owner_id=str(challenger_id),
            deleted=len(plan.delete),
            area=new.area,
        )
        return territory.id
