"""
Database utilities and models.

This package provides:
- SQLAlchemy models for the PostGIS schema
- Database connection management
- The spatial pre-filter for intersecting territories
- The mutation plan writer
"""

from .connection import Database, db
from .queries import TerritoryQueries, to_snapshot
from .writer import PlanWriter
from .models import Base, User, Territory, Attempt

__all__ = [
    # Connection management
    'Database', 'db',

    # Queries
    'TerritoryQueries', 'to_snapshot',

    # Writes
    'PlanWriter',

    # Models
    'Base', 'User', 'Territory', 'Attempt'
]
