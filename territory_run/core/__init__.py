"""
Territory conquest evaluation engine.
"""

from .conquest import (
    BattleResult, ConquestOutcome, ConquestRules, OutcomeTag, Verdict,
    evaluate_all, evaluate_one
)
from .engine import ConquestEngine, Evaluation
from .errors import (
    ConcurrentModification, ConsistencyViolation, InvalidRunPathError,
    MalformedPathError, TerritoryRunError, TooSmallError, UnionFailure
)
from .geometry import Relation, area, relate
from .normalizer import normalize
from .planner import MutationPlan, NewTerritory, TerritoryDeletion, plan
from .scoring import ScoreWeights, score
from .types import RunAttempt, RunPolygon, TerritorySnapshot

__all__ = ['BattleResult', 'ConquestOutcome', 'ConquestRules', 'OutcomeTag', 'Verdict',
           'evaluate_all', 'evaluate_one', 'ConquestEngine', 'Evaluation',
           'ConcurrentModification', 'ConsistencyViolation', 'InvalidRunPathError',
           'MalformedPathError', 'TerritoryRunError', 'TooSmallError', 'UnionFailure',
           'Relation', 'area', 'relate', 'normalize',
           'MutationPlan', 'NewTerritory', 'TerritoryDeletion', 'plan',
           'ScoreWeights', 'score', 'RunAttempt', 'RunPolygon', 'TerritorySnapshot']
