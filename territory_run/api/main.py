"""FastAPI main application."""

import logging
import time
from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from geoalchemy2.shape import to_shape
from pydantic import BaseModel, ConfigDict, Field
from shapely.geometry import mapping

from ..config import settings
from ..core.conquest import ConquestRules, OutcomeTag
from ..core.engine import ConquestEngine, Evaluation
from ..core.errors import ConcurrentModification, ConsistencyViolation, InvalidRunPathError
from ..core.types import RunAttempt
from ..db.connection import Database, db
from ..db.queries import TerritoryQueries
from ..db.writer import PlanWriter

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

STARTED_AT = time.monotonic()

# Initialize FastAPI app
app = FastAPI(
    title="Territory Run API",
    description="Claim map territory by running closed loops around it",
    version=API_VERSION,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
# Altitude, when the device reports it, is ignored
GpsPoint = Annotated[List[float], Field(min_length=2, max_length=3)]


class RunRequest(BaseModel):
    """A completed run submitted for conquest."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, description="User id or username")
    raw_coordinates: List[GpsPoint] = Field(
        ..., alias="rawCoordinates", description="GPS trace as [longitude, latitude, altitude?] points"
    )
    duration_seconds: float = Field(..., alias="durationSeconds", gt=0, description="Run duration")
    laps: int = Field(..., ge=1, description="Laps completed")
    avg_speed: float = Field(..., alias="avgSpeed", gt=0, description="Average speed")


class RunResponse(BaseModel):
    """Result of a run; exactly one of created, captured, defended is true."""

    model_config = ConfigDict(populate_by_name=True)

    created: bool
    captured: bool
    defended: bool
    territory_id: Optional[str] = Field(None, alias="territoryId")
    new_owner: Optional[str] = Field(None, alias="newOwner")
    previous_owner: Optional[str] = Field(None, alias="previousOwner")
    defender_name: Optional[str] = Field(None, alias="defenderName")


class UserCreateRequest(BaseModel):
    """Request to register a player."""

    username: str = Field(..., min_length=1, max_length=100, description="Unique player name")


class UserResponse(BaseModel):
    """A player."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class TerritoryResponse(BaseModel):
    """A territory with its GeoJSON geometry."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(..., alias="ownerId")
    owner_name: Optional[str] = Field(None, alias="ownerName")
    geometry: Dict[str, Any]
    area: float
    best_lap_time: float = Field(..., alias="bestLapTime")
    max_laps: int = Field(..., alias="maxLaps")
    avg_speed: float = Field(..., alias="avgSpeed")


# Dependencies
def get_database() -> Database:
    """Database whose readiness the endpoints report."""
    return db


def get_engine() -> ConquestEngine:
    return ConquestEngine(ConquestRules.from_settings(settings))


def require_database(database: Database):
    """Raise 503 unless the database answers."""
    if not database.is_ready:
        raise HTTPException(status_code=503, detail="Database not connected")


def to_run_response(evaluation: Evaluation, territory_id, challenger_id) -> RunResponse:
    tag = evaluation.outcome.tag
    if tag is OutcomeTag.DEFENDED:
        return RunResponse(
            created=False,
            captured=False,
            defended=True,
            defender_name=evaluation.defender_name,
        )

    previous_owner = evaluation.previous_owner
    return RunResponse(
        created=tag is OutcomeTag.CREATED,
        captured=tag is OutcomeTag.CAPTURED,
        defended=False,
        territory_id=str(territory_id),
        new_owner=str(challenger_id),
        previous_owner=str(previous_owner) if previous_owner else None,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Starting Territory Run API")
    try:
        db.initialize()
    except Exception as e:
        # Keep serving; endpoints answer 503 until the database is reachable
        logger.error("Database initialization failed", error=str(e))
    logger.info("API startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Territory Run API")
    if db.engine is not None:
        db.engine.dispose()


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Territory Run API",
        "version": API_VERSION,
        "status": "active",
        "endpoints": {
            "health": "/health",
            "users": "/api/users",
            "territories": "/api/territories",
            "run": "/api/run",
        },
    }


@app.get("/health")
def health_check(database: Database = Depends(get_database)):
    """Health check endpoint."""
    return {
        "status": "OK",
        "database": database.status,
        "timestamp": datetime.utcnow().isoformat(),
        "uptime_seconds": round(time.monotonic() - STARTED_AT, 3),
    }


@app.post("/api/users", response_model=UserResponse)
def create_user(request: UserCreateRequest, database: Database = Depends(get_database)):
    """Register a player, or return the existing one with that name."""
    require_database(database)
    username = request.username.strip()
    if not username:
        raise HTTPException(status_code=400, detail="Username required")

    with database.get_session() as session:
        user, _ = TerritoryQueries(session).get_or_create_user(username)
        return UserResponse(id=str(user.id), username=user.username, created_at=user.created_at)


@app.get("/api/users", response_model=List[UserResponse])
def list_users(database: Database = Depends(get_database)):
    """List all players."""
    require_database(database)
    with database.get_session() as session:
        return [
            UserResponse(id=str(user.id), username=user.username, created_at=user.created_at)
            for user in TerritoryQueries(session).list_users()
        ]


@app.get("/api/territories", response_model=List[TerritoryResponse])
def list_territories(database: Database = Depends(get_database)):
    """List all territories with their owners."""
    require_database(database)
    with database.get_session() as session:
        return [
            TerritoryResponse(
                id=str(territory.id),
                owner_id=str(territory.owner_id),
                owner_name=territory.owner.username if territory.owner else None,
                geometry=mapping(to_shape(territory.geometry)),
                area=territory.area,
                best_lap_time=territory.best_lap_time,
                max_laps=territory.max_laps,
                avg_speed=territory.avg_speed,
            )
            for territory in TerritoryQueries(session).list_territories()
        ]


@app.post("/api/run", response_model=RunResponse)
def submit_run(
    request: RunRequest,
    database: Database = Depends(get_database),
    engine: ConquestEngine = Depends(get_engine),
):
    """
    Evaluate a run against the territories it crosses.

    The path is normalized before any database access. The read, evaluate and
    write steps run in one transaction and are retried when a rival territory
    changes underneath.
    """
    attempt = RunAttempt(
        duration_seconds=request.duration_seconds,
        laps=request.laps,
        avg_speed=request.avg_speed,
    )
    try:
        run = engine.prepare(request.raw_coordinates)
    except InvalidRunPathError as e:
        logger.info("Run path rejected", user=request.user_id, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    require_database(database)

    for attempt_number in range(1, settings.max_conflict_retries + 2):
        try:
            with database.get_session() as session:
                queries = TerritoryQueries(session)
                user = queries.find_user(request.user_id)
                if not user:
                    raise HTTPException(status_code=404, detail="User not found")

                rivals = queries.find_intersecting(run.geometry, exclude_owner_id=user.id)
                evaluation = engine.evaluate(run, attempt, user.id, rivals)
                territory_id = PlanWriter(session).apply(evaluation.plan, attempt, user.id)
                challenger_id = user.id

            return to_run_response(evaluation, territory_id, challenger_id)

        except ConcurrentModification as e:
            logger.warning(
                "Territory changed during run evaluation, retrying",
                attempt=attempt_number,
                territory_id=str(e.territory_id),
            )
        except ConsistencyViolation as e:
            logger.error("Run rejected on inconsistent territory data", territory_id=str(e.territory_id))
            raise HTTPException(status_code=500, detail="Territory data is inconsistent, no changes were made")

    raise HTTPException(status_code=409, detail="Territories changed concurrently, please retry the run")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
