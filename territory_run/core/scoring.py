"""Battle score used to break ties between comparably sized claims."""

from dataclasses import dataclass

WEIGHT_SPEED = 1000.0
WEIGHT_LAPS = 10.0


@dataclass(frozen=True)
class ScoreWeights:
    """Battle score weights, fixed for a deployment."""

    speed: float = WEIGHT_SPEED
    laps: float = WEIGHT_LAPS


DEFAULT_WEIGHTS = ScoreWeights()


def score(avg_speed: float, laps: int, weights: ScoreWeights = DEFAULT_WEIGHTS) -> float:
    """Weighted sum of average speed and laps; increasing in both."""
    return avg_speed * weights.speed + laps * weights.laps
