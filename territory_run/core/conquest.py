"""
Conquest rules: decide a run's battle against each rival territory.

Ruleset (containment + relative size + battle score), applied per rival:

1. A run fully enclosed by the rival loses, whatever its score.
2. A run enclosing a rival outside the comparable-size band wins outright.
3. Comparably sized claims (enclosing or overlapping) are decided by battle
   score; the challenger must score strictly higher.
4. An overlapping run outside the comparable-size band loses.

Across rivals the challenge is all-or-nothing: the first loss defends the
whole map against the run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import structlog

from .errors import ConsistencyViolation
from .geometry import Relation, relate
from .normalizer import DEFAULT_MIN_AREA_M2
from .scoring import DEFAULT_WEIGHTS, ScoreWeights, score
from .types import RunAttempt, RunPolygon, TerritorySnapshot

logger = structlog.get_logger()


class Verdict(Enum):
    """Result of one run against one rival territory."""

    WON = "won"
    AUTO_WON = "auto_won"
    LOST = "lost"


class OutcomeTag(Enum):
    """Aggregate result of one run against all intersecting rivals."""

    CREATED = "created"
    CAPTURED = "captured"
    DEFENDED = "defended"


@dataclass(frozen=True)
class ConquestRules:
    """Tunable rule parameters, fixed for a deployment."""

    size_ratio_min: float = 0.8
    size_ratio_max: float = 1.2
    weights: ScoreWeights = DEFAULT_WEIGHTS
    min_area: float = DEFAULT_MIN_AREA_M2

    @classmethod
    def from_settings(cls, settings) -> "ConquestRules":
        return cls(
            size_ratio_min=settings.size_ratio_min,
            size_ratio_max=settings.size_ratio_max,
            weights=ScoreWeights(
                speed=settings.score_weight_speed,
                laps=settings.score_weight_laps,
            ),
            min_area=settings.min_territory_area_m2,
        )

    def size_ok(self, size_ratio: float) -> bool:
        return self.size_ratio_min <= size_ratio <= self.size_ratio_max


DEFAULT_RULES = ConquestRules()


@dataclass(frozen=True)
class BattleResult:
    """Verdict of the run against a single territory."""

    territory: TerritorySnapshot
    verdict: Verdict
    relation: Relation
    size_ratio: Optional[float] = None
    reason: Optional[str] = None

    @property
    def won(self) -> bool:
        return self.verdict is not Verdict.LOST


@dataclass(frozen=True)
class ConquestOutcome:
    """Aggregate outcome of one run against every intersecting rival."""

    tag: OutcomeTag
    results: Tuple[BattleResult, ...] = ()

    @property
    def conquered(self) -> List[TerritorySnapshot]:
        if self.tag is not OutcomeTag.CAPTURED:
            return []
        return [result.territory for result in self.results]

    @property
    def defender(self) -> Optional[TerritorySnapshot]:
        if self.tag is not OutcomeTag.DEFENDED:
            return None
        return self.results[-1].territory

    @property
    def reason(self) -> Optional[str]:
        if self.tag is not OutcomeTag.DEFENDED:
            return None
        return self.results[-1].reason


def evaluate_one(
    run: RunPolygon,
    attempt: RunAttempt,
    territory: TerritorySnapshot,
    rules: ConquestRules = DEFAULT_RULES,
) -> BattleResult:
    """
    Decide the run's battle against one rival territory.

    Raises:
        ConsistencyViolation: the territory does not actually intersect the run
    """
    relation = relate(run.geometry, territory.geometry)

    if relation is Relation.DISJOINT:
        logger.error(
            "Spatial pre-filter returned a disjoint territory",
            territory_id=str(territory.id),
            run_area=run.area,
            territory_area=territory.area,
        )
        raise ConsistencyViolation(territory.id)

    if relation is Relation.INSIDE:
        return BattleResult(
            territory, Verdict.LOST, relation,
            reason="Run fully enclosed by rival territory, no contest",
        )

    size_ratio = run.area / territory.area
    size_ok = rules.size_ok(size_ratio)

    if relation is Relation.CONTAINS and not size_ok:
        return BattleResult(
            territory, Verdict.AUTO_WON, relation, size_ratio,
            reason="Run encloses a disproportionately smaller territory",
        )

    if not size_ok:
        return BattleResult(
            territory, Verdict.LOST, relation, size_ratio,
            reason=f"Size ratio {size_ratio:.2f} is outside the contest band",
        )

    challenger = score(attempt.avg_speed, attempt.laps, rules.weights)
    defender = score(territory.avg_speed, territory.max_laps, rules.weights)
    if challenger > defender:
        return BattleResult(
            territory, Verdict.WON, relation, size_ratio,
            reason=f"Score {challenger:.0f} beats {defender:.0f}",
        )
    return BattleResult(
        territory, Verdict.LOST, relation, size_ratio,
        reason=f"Score {challenger:.0f} does not beat {defender:.0f}",
    )


def evaluate_all(
    run: RunPolygon,
    attempt: RunAttempt,
    territories: Sequence[TerritorySnapshot],
    rules: ConquestRules = DEFAULT_RULES,
) -> ConquestOutcome:
    """
    Evaluate the run against every intersecting rival, in pre-filter order.

    The first lost battle stops evaluation and defends every territory,
    including those already beaten.
    """
    if not territories:
        return ConquestOutcome(OutcomeTag.CREATED)

    results = []
    for territory in territories:
        result = evaluate_one(run, attempt, territory, rules)
        results.append(result)
        if not result.won:
            logger.info(
                "Run defended against",
                territory_id=str(territory.id),
                relation=result.relation.value,
                reason=result.reason,
            )
            return ConquestOutcome(OutcomeTag.DEFENDED, tuple(results))

    return ConquestOutcome(OutcomeTag.CAPTURED, tuple(results))
