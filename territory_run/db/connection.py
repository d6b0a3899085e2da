"""Database connection utilities."""

from sqlalchemy import create_engine, make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from typing import Optional
import structlog
from contextlib import contextmanager

from ..config.config import settings
from .models import Base

logger = structlog.get_logger()


class Database:
    """Database connection manager."""

    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.database_url
        self.engine = None
        self.SessionLocal = None

    def initialize(self):
        """Initialize database connection."""
        url = make_url(self.url)
        logger.info("Initializing database connection", host=url.host, database=url.database)

        # Create engine
        self.engine = create_engine(
            self.url,
            pool_pre_ping=True,
            echo=False,  # Set to True for SQL debugging
        )

        # Create session factory
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

        # Create tables
        self.create_tables()

        logger.info("Database connection initialized")

    def create_tables(self):
        """Create all tables."""
        try:
            # Ensure PostGIS extension exists
            with self.engine.connect() as conn:
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))

                conn.commit()

            # Create all tables
            Base.metadata.create_all(bind=self.engine)
            logger.info("Database tables created")

        except Exception as e:
            logger.error("Failed to create tables", error=str(e))
            raise

    @property
    def status(self) -> str:
        """Probe the connection; one of uninitialized, connected, disconnected."""
        if not self.engine:
            return self.UNINITIALIZED
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("Database probe failed", error=str(e))
            return self.DISCONNECTED
        return self.CONNECTED

    @property
    def is_ready(self) -> bool:
        return self.status == self.CONNECTED

    @contextmanager
    def get_session(self):
        """Get database session with automatic cleanup."""
        if not self.SessionLocal:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database instance
db = Database()
