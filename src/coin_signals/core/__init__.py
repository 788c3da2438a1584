"""Core module for the signal engine."""

from .models import (
    CoinSnapshot, Prediction, TradingLevels, SignalResult,
    MomentumSignal, KeyLevels, CoinAnalysis
)
from .enums import (
    VolatilityBucket, Direction, Horizon, Advice, MomentumLabel, Confidence, DataSource
)

__all__ = [
    "CoinSnapshot",
    "Prediction",
    "TradingLevels",
    "SignalResult",
    "MomentumSignal",
    "KeyLevels",
    "CoinAnalysis",
    "VolatilityBucket",
    "Direction",
    "Horizon",
    "Advice",
    "MomentumLabel",
    "Confidence",
    "DataSource",
]
