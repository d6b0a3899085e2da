"""
Conquest evaluation entry point.

The engine is stateless: rules are fixed at construction, every call works on
the data handed to it and returns new values. Fetching rivals and writing the
plan belong to the caller.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from .conquest import DEFAULT_RULES, ConquestOutcome, ConquestRules, evaluate_all
from .normalizer import normalize
from .planner import MutationPlan, plan
from .types import RunAttempt, RunPolygon, TerritorySnapshot

logger = structlog.get_logger()


@dataclass(frozen=True)
class Evaluation:
    """Outcome of one run together with the plan that realizes it."""

    outcome: ConquestOutcome
    plan: MutationPlan

    @property
    def territory_id(self) -> Optional[uuid.UUID]:
        return self.plan.create.id if self.plan.create else None

    @property
    def previous_owner(self) -> Optional[uuid.UUID]:
        conquered = self.outcome.conquered
        return conquered[0].owner_id if conquered else None

    @property
    def defender_name(self) -> Optional[str]:
        defender = self.outcome.defender
        return defender.owner_name if defender else None


class ConquestEngine:
    """Normalizes run paths and evaluates them against rival territories."""

    def __init__(self, rules: ConquestRules = DEFAULT_RULES):
        self.rules = rules

    def prepare(self, raw_coordinates) -> RunPolygon:
        """Normalize a raw run path; raises before any rival is looked up."""
        return normalize(raw_coordinates, min_area=self.rules.min_area)

    def evaluate(
        self,
        run: RunPolygon,
        attempt: RunAttempt,
        challenger_id: uuid.UUID,
        rivals: Sequence[TerritorySnapshot],
    ) -> Evaluation:
        outcome = evaluate_all(run, attempt, rivals, self.rules)
        mutation_plan = plan(run, attempt, outcome, challenger_id)

        logger.info(
            "Run evaluated",
            challenger_id=str(challenger_id),
            outcome=outcome.tag.value,
            run_area=run.area,
            rivals=len(rivals),
            deleted=len(mutation_plan.delete),
            excluded_from_merge=len(mutation_plan.excluded_from_merge),
        )
        return Evaluation(outcome=outcome, plan=mutation_plan)
