"""
Heuristic Crypto Pump/Dump Signal Engine

Scores normalized coin snapshots for pump and dump potential, predicts
short and medium horizon moves, and derives take-profit / stop-loss levels.
The engine is stateless; randomness is always supplied by the caller.
"""

__version__ = "0.1.0"
__author__ = "Coin Signals Team"

from .core.models import CoinSnapshot, SignalResult, Prediction, TradingLevels
from .core.enums import Advice, Direction, Horizon, VolatilityBucket
from .signal.engine import SignalEngine
from .signal.policy import ScoringPolicy, get_policy

__all__ = [
    "CoinSnapshot",
    "SignalResult",
    "Prediction",
    "TradingLevels",
    "Advice",
    "Direction",
    "Horizon",
    "VolatilityBucket",
    "SignalEngine",
    "ScoringPolicy",
    "get_policy",
]
