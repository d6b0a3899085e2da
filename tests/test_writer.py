"""Tests for applying mutation plans to the database session."""

import uuid
from unittest.mock import MagicMock

import pytest

from territory_run.core.errors import ConcurrentModification
from territory_run.core.planner import MutationPlan, NewTerritory, TerritoryDeletion
from territory_run.db.models import Attempt, Territory
from territory_run.db.writer import PlanWriter


@pytest.fixture
def session():
    session = MagicMock()
    session.query.return_value.filter.return_value.delete.return_value = 1
    return session


@pytest.fixture
def new_territory(square):
    return NewTerritory(
        owner_id=uuid.uuid4(),
        geometry=square(0, 0, 100),
        area=10_000.0,
        best_lap_time=120.0,
        max_laps=10,
        avg_speed=10.9,
    )


class TestPlanWriter:
    """Test PlanWriter against a mocked session."""

    def test_noop_plan_touches_nothing(self, session, attempt):
        result = PlanWriter(session).apply(MutationPlan(), attempt, uuid.uuid4())

        assert result is None
        session.add.assert_not_called()
        session.query.assert_not_called()

    def test_created_plan_inserts_territory_and_attempt(self, session, attempt, new_territory):
        challenger = new_territory.owner_id

        result = PlanWriter(session).apply(MutationPlan(create=new_territory), attempt, challenger)

        assert result == new_territory.id
        added = [call.args[0] for call in session.add.call_args_list]
        assert [type(obj) for obj in added] == [Territory, Attempt]

        territory, audit = added
        assert territory.id == new_territory.id
        assert territory.owner_id == challenger
        assert territory.area == 10_000.0
        assert territory.max_laps == 10
        assert audit.user_id == challenger
        assert audit.territory_id == new_territory.id
        assert audit.duration_seconds == attempt.duration_seconds
        assert audit.laps == attempt.laps
        session.flush.assert_called_once()

    def test_captured_plan_deletes_by_version(self, session, attempt, new_territory):
        deletions = (TerritoryDeletion(uuid.uuid4(), 3), TerritoryDeletion(uuid.uuid4(), 1))

        PlanWriter(session).apply(
            MutationPlan(create=new_territory, delete=deletions), attempt, new_territory.owner_id
        )

        assert session.query.return_value.filter.return_value.delete.call_count == 2
        assert session.add.call_count == 2

    def test_changed_territory_raises_concurrent_modification(self, session, attempt, new_territory):
        session.query.return_value.filter.return_value.delete.return_value = 0
        stale = TerritoryDeletion(uuid.uuid4(), 7)

        with pytest.raises(ConcurrentModification) as exc_info:
            PlanWriter(session).apply(
                MutationPlan(create=new_territory, delete=(stale,)), attempt, new_territory.owner_id
            )

        assert exc_info.value.territory_id == stale.id
        session.add.assert_not_called()
