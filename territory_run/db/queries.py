"""
PostGIS query utilities for territory data.

The intersection lookup here is the spatial pre-filter of the conquest engine:
it uses the GiST index on ``territories.geometry`` and hands the engine
immutable snapshots.
"""

from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

import structlog
from geoalchemy2.shape import from_shape, to_shape
from shapely.geometry import Polygon
from sqlalchemy import and_, func, not_
from sqlalchemy.orm import Session, joinedload

from ..core.types import TerritorySnapshot
from .models import Territory, User

logger = structlog.get_logger()


def to_snapshot(territory: Territory, owner_name: Optional[str] = None) -> TerritorySnapshot:
    """Detach a territory row into a value the engine can evaluate."""
    return TerritorySnapshot(
        id=territory.id,
        owner_id=territory.owner_id,
        geometry=to_shape(territory.geometry),
        area=territory.area,
        best_lap_time=territory.best_lap_time,
        max_laps=territory.max_laps,
        avg_speed=territory.avg_speed,
        version=territory.version,
        owner_name=owner_name,
    )


class TerritoryQueries:
    """Read queries for players and territories."""

    def __init__(self, session: Session):
        """Initialize with database session."""
        self.session = session

    def find_user(self, identifier: str) -> Optional[User]:
        """Find a user by id, falling back to username."""
        try:
            user_id = uuid.UUID(str(identifier))
        except ValueError:
            user_id = None

        if user_id is not None:
            user = self.session.query(User).filter(User.id == user_id).first()
            if user:
                return user

        return self.session.query(User).filter(User.username == identifier).first()

    def get_or_create_user(self, username: str) -> Tuple[User, bool]:
        """Return the user with this name, creating it if needed."""
        user = self.session.query(User).filter(User.username == username).first()
        if user:
            return user, False

        user = User(username=username)
        self.session.add(user)
        self.session.flush()
        logger.info("User created", user_id=str(user.id), username=username)
        return user, True

    def list_users(self) -> List[User]:
        return self.session.query(User).order_by(User.created_at).all()

    def list_territories(self) -> List[Territory]:
        """All territories with their owners loaded."""
        return (
            self.session.query(Territory)
            .options(joinedload(Territory.owner))
            .order_by(Territory.created_at)
            .all()
        )

    def find_intersecting(
        self, polygon: Polygon, exclude_owner_id: Optional[uuid.UUID] = None
    ) -> List[TerritorySnapshot]:
        """
        Territories sharing area with the polygon, oldest first.

        Boundary-only contact does not count as intersecting. Territories of
        ``exclude_owner_id`` (the challenger) are skipped.

        Args:
            polygon: Normalized run polygon (WGS84)
            exclude_owner_id: Owner whose territories are ignored

        Returns:
            Snapshots in the order the engine must evaluate them
        """
        shape = from_shape(polygon, srid=4326)

        conditions = [
            func.ST_Intersects(Territory.geometry, shape),
            not_(func.ST_Touches(Territory.geometry, shape)),
        ]
        if exclude_owner_id is not None:
            conditions.append(Territory.owner_id != exclude_owner_id)

        rows = (
            self.session.query(Territory, User.username)
            .join(User, Territory.owner_id == User.id)
            .filter(and_(*conditions))
            .order_by(Territory.created_at, Territory.id)
            .all()
        )

        logger.debug("Intersecting territories found", count=len(rows))
        return [to_snapshot(territory, username) for territory, username in rows]
