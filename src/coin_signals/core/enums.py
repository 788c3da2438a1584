"""Core enumerations for the signal engine."""

from enum import Enum


class VolatilityBucket(str, Enum):
    """Coarse classification of the 24h price swing."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class Direction(str, Enum):
    """Predicted movement direction."""
    PUMP = "pump"
    DUMP = "dump"
    NEUTRAL = "neutral"


class Horizon(str, Enum):
    """Prediction horizons."""
    SHORT = "short"    # ~10 minutes
    MEDIUM = "medium"  # ~30 minutes


class Advice(str, Enum):
    """Trading recommendations."""
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD_LEAN_BUY = "HOLD_LEAN_BUY"
    HOLD = "HOLD"
    HOLD_LEAN_SELL = "HOLD_LEAN_SELL"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"
    AVOID = "AVOID"


class MomentumLabel(str, Enum):
    """Momentum signal labels."""
    STRONG = "STRONG MOMENTUM"
    WEAK = "WEAK MOMENTUM"


class Confidence(str, Enum):
    """Qualitative confidence levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DataSource(str, Enum):
    """Upstream market data providers."""
    GECKO = "gecko"
    FREECRYPTO = "freecrypto"
    CMC = "cmc"
    SYNTHETIC = "synthetic"
