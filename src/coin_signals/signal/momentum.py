"""Momentum list and single-coin analysis."""

import logging
from typing import Iterable, List

from ..core.models import CoinAnalysis, CoinSnapshot, KeyLevels, MomentumSignal
from ..core.enums import Advice, Confidence, MomentumLabel

logger = logging.getLogger(__name__)

# Single-coin key levels, as fractions of the current price
ENTRY_BAND = 0.02
TAKE_PROFIT_PCT = 0.08
STOP_LOSS_PCT = 0.06


def find_momentum_signals(
    snapshots: Iterable[CoinSnapshot],
    min_abs_change: float = 5.0,
    limit: int = 5,
) -> List[MomentumSignal]:
    """Coins with the largest |24h change| above *min_abs_change*."""
    movers = [
        s for s in snapshots
        if abs(s.price_change_24h_pct) > min_abs_change
    ]
    movers.sort(key=lambda s: abs(s.price_change_24h_pct), reverse=True)

    signals = [
        MomentumSignal(
            symbol=s.label,
            name=s.name,
            change_pct=s.price_change_24h_pct,
            label=MomentumLabel.STRONG if s.price_change_24h_pct > 0 else MomentumLabel.WEAK,
        )
        for s in movers[:limit]
    ]
    logger.info(f"Found {len(signals)} momentum signals (|change| > {min_abs_change}%)")
    return signals


def analyze_coin(snapshot: CoinSnapshot) -> CoinAnalysis:
    """Multi-timeframe analysis of one coin with fixed key levels."""
    change_24h = snapshot.price_change_24h_pct
    change_7d = snapshot.price_change_7d_pct or 0.0

    if change_24h > 10 and change_7d > 15:
        summary = "Strong bullish momentum across multiple timeframes"
        advice, confidence = Advice.BUY, Confidence.HIGH
    elif change_24h < -8 and change_7d < -12:
        summary = "Significant downward pressure, high risk"
        advice, confidence = Advice.AVOID, Confidence.HIGH
    elif abs(change_24h) < 3:
        summary = "Consolidating, waiting for breakout direction"
        advice, confidence = Advice.HOLD, Confidence.MEDIUM
    else:
        summary = "Moderate volatility, monitor key levels"
        advice, confidence = Advice.HOLD, Confidence.MEDIUM

    price = snapshot.current_price
    levels = KeyLevels(
        entry_low=price * (1 - ENTRY_BAND),
        entry_high=price * (1 + ENTRY_BAND),
        take_profit=price * (1 + TAKE_PROFIT_PCT),
        stop_loss=price * (1 - STOP_LOSS_PCT),
    )

    return CoinAnalysis(
        symbol=snapshot.label,
        name=snapshot.name,
        current_price=price,
        change_24h_pct=change_24h,
        change_7d_pct=change_7d,
        summary=summary,
        advice=advice,
        confidence=confidence,
        levels=levels,
    )
