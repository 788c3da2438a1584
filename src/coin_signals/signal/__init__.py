"""Signal scoring module."""

from .engine import SignalEngine, clamp_score
from .policy import (
    ScoringPolicy,
    Tier,
    STANDARD_POLICY,
    SENSITIVE_POLICY,
    get_policy,
)
from .momentum import find_momentum_signals, analyze_coin

__all__ = [
    "SignalEngine",
    "clamp_score",
    "ScoringPolicy",
    "Tier",
    "STANDARD_POLICY",
    "SENSITIVE_POLICY",
    "get_policy",
    "find_momentum_signals",
    "analyze_coin",
]
