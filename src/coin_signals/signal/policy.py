"""Scoring policies: named threshold tables for the signal engine.

Every number the engine uses lives here, so dashboards that disagree on
thresholds share one engine and differ only by policy.
"""

import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import Horizon, VolatilityBucket

logger = logging.getLogger(__name__)


class Tier(BaseModel):
    """Award *points* when a value is above (or below) *threshold*."""

    model_config = ConfigDict(frozen=True)

    threshold: float
    points: float
    below: bool = False

    def matches(self, value: float) -> bool:
        if self.below:
            return value < self.threshold
        return value > self.threshold


def first_match(tiers: List[Tier], value: Optional[float]) -> float:
    """Points of the first matching tier, 0 if none match or value is absent."""
    if value is None:
        return 0.0
    for tier in tiers:
        if tier.matches(value):
            return tier.points
    return 0.0


class ScoreTable(BaseModel):
    """Additive adjustments for one score."""

    model_config = ConfigDict(frozen=True)

    base: float
    volume_ratio: List[Tier] = Field(default_factory=list)
    momentum: List[Tier] = Field(default_factory=list)
    market_cap: List[Tier] = Field(default_factory=list)
    ath: List[Tier] = Field(default_factory=list)
    noise_max: float = Field(ge=0.0, description="Upper bound of the noise term")


class VolatilityThresholds(BaseModel):
    """Bucket edges on |24h change %|."""

    model_config = ConfigDict(frozen=True)

    very_high: float
    high: float
    medium: float


class MagnitudeRange(BaseModel):
    """Half-open range [low, high) sampled by a uniform draw in [0, 1)."""

    model_config = ConfigDict(frozen=True)

    low: float
    high: float

    def draw(self, u: float) -> float:
        return self.low + u * (self.high - self.low)


class PredictionLadder(BaseModel):
    """Threshold ladder for one horizon.

    Dump ranges are magnitudes; the engine negates them.
    """

    model_config = ConfigDict(frozen=True)

    strong_threshold: float
    moderate_threshold: float
    strong_pump: MagnitudeRange
    strong_dump: MagnitudeRange
    moderate_pump: MagnitudeRange
    moderate_dump: MagnitudeRange
    neutral: MagnitudeRange = MagnitudeRange(low=-2.0, high=2.0)
    neutral_confidence: float = 50.0


class AdviceThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    strong: float = 80.0
    regular: float = 65.0
    lean: float = 50.0


class ScoringPolicy(BaseModel):
    """Complete configuration of the signal engine."""

    model_config = ConfigDict(frozen=True)

    name: str
    pump: ScoreTable
    dump: ScoreTable
    volatility: VolatilityThresholds
    ladders: Dict[Horizon, PredictionLadder]
    level_multipliers: Dict[VolatilityBucket, float]
    default_multiplier: float = 0.06
    stop_loss_factor: float = 0.7
    advice: AdviceThresholds = AdviceThresholds()

    def ladder(self, horizon: Horizon) -> PredictionLadder:
        return self.ladders[horizon]

    def multiplier(self, bucket: Optional[VolatilityBucket]) -> float:
        if bucket is None:
            return self.default_multiplier
        return self.level_multipliers.get(bucket, self.default_multiplier)


STANDARD_POLICY = ScoringPolicy(
    name="standard",
    pump=ScoreTable(
        base=50.0,
        volume_ratio=[
            Tier(threshold=0.15, points=20),
            Tier(threshold=0.08, points=10),
            Tier(threshold=0.03, points=5),
        ],
        momentum=[
            Tier(threshold=15, points=20),
            Tier(threshold=8, points=15),
            Tier(threshold=3, points=10),
            Tier(threshold=-5, points=-10, below=True),
        ],
        # smaller caps move harder
        market_cap=[
            Tier(threshold=5e8, points=15, below=True),
            Tier(threshold=2e9, points=10, below=True),
            Tier(threshold=1e10, points=5, below=True),
        ],
        ath=[
            Tier(threshold=-15, points=10),
            Tier(threshold=-30, points=5),
        ],
        noise_max=15.0,
    ),
    dump=ScoreTable(
        base=30.0,
        volume_ratio=[
            Tier(threshold=0.2, points=15),
            Tier(threshold=0.1, points=10),
        ],
        momentum=[
            Tier(threshold=-10, points=25, below=True),
            Tier(threshold=-5, points=15, below=True),
            # overbought, reversal risk
            Tier(threshold=20, points=10),
        ],
        market_cap=[
            Tier(threshold=1e9, points=15, below=True),
        ],
        ath=[
            Tier(threshold=-5, points=10),
        ],
        noise_max=10.0,
    ),
    volatility=VolatilityThresholds(very_high=20, high=12, medium=6),
    ladders={
        Horizon.SHORT: PredictionLadder(
            strong_threshold=75,
            moderate_threshold=60,
            strong_pump=MagnitudeRange(low=5, high=15),
            strong_dump=MagnitudeRange(low=5, high=13),
            moderate_pump=MagnitudeRange(low=2, high=8),
            moderate_dump=MagnitudeRange(low=2, high=7),
        ),
        Horizon.MEDIUM: PredictionLadder(
            strong_threshold=70,
            moderate_threshold=55,
            strong_pump=MagnitudeRange(low=8, high=23),
            strong_dump=MagnitudeRange(low=8, high=20),
            moderate_pump=MagnitudeRange(low=4, high=12),
            moderate_dump=MagnitudeRange(low=4, high=11),
        ),
    },
    level_multipliers={
        VolatilityBucket.VERY_HIGH: 0.12,
        VolatilityBucket.HIGH: 0.08,
        VolatilityBucket.MEDIUM: 0.06,
        VolatilityBucket.LOW: 0.04,
    },
)

# Same scoring, tighter volatility buckets.
SENSITIVE_POLICY = STANDARD_POLICY.model_copy(update={
    "name": "sensitive",
    "volatility": VolatilityThresholds(very_high=15, high=8, medium=3),
})

POLICIES: Dict[str, ScoringPolicy] = {
    STANDARD_POLICY.name: STANDARD_POLICY,
    SENSITIVE_POLICY.name: SENSITIVE_POLICY,
}


def get_policy(name: str) -> ScoringPolicy:
    """Look up a preset policy by name."""
    try:
        return POLICIES[name]
    except KeyError:
        logger.error(f"Unknown scoring policy '{name}', available: {sorted(POLICIES)}")
        raise
