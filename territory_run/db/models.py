"""Database models for players, territories and run attempts."""

from sqlalchemy import CheckConstraint, Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.dialects.postgresql import UUID
from geoalchemy2 import Geometry
import uuid
from datetime import datetime

Base = declarative_base()


class User(Base):
    """A player."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    territories = relationship("Territory", back_populates="owner")
    attempts = relationship("Attempt", back_populates="user")


class Territory(Base):
    """An owned region of the map."""

    __tablename__ = "territories"
    __table_args__ = (CheckConstraint("area > 0", name="ck_territories_area_positive"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Single simple polygon, GiST indexed for the intersection pre-filter
    geometry = Column(Geometry("POLYGON", srid=4326), nullable=False)
    area = Column(Float, nullable=False)  # Square meters

    # Stats of the run that claimed it
    best_lap_time = Column(Float, nullable=False)  # Seconds per lap
    max_laps = Column(Integer, nullable=False)
    avg_speed = Column(Float, nullable=False)

    # Bumped by the ORM on every update of the row. Conquest only inserts and
    # deletes, so for those writes the row still existing is what the
    # id + version delete actually checks.
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    owner = relationship("User", back_populates="territories")
    attempts = relationship("Attempt", back_populates="territory", passive_deletes=True)


class Attempt(Base):
    """Append-only log of every run that created or captured a territory."""

    __tablename__ = "attempts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    # Kept after the territory is conquered by someone else
    territory_id = Column(
        UUID(as_uuid=True), ForeignKey("territories.id", ondelete="SET NULL"), nullable=True
    )

    duration_seconds = Column(Float, nullable=False)
    laps = Column(Integer, nullable=False)
    avg_speed = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="attempts")
    territory = relationship("Territory", back_populates="attempts")
