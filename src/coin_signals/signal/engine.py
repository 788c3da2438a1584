"""Heuristic pump/dump scoring and trading level derivation."""

import logging
from typing import Optional

import numpy as np

from ..core.models import CoinSnapshot, Prediction, SignalResult, TradingLevels, _finite_or_none
from ..core.enums import Advice, Direction, Horizon, VolatilityBucket
from .policy import ScoringPolicy, STANDARD_POLICY, first_match

logger = logging.getLogger(__name__)

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(score: float) -> float:
    """Clamp a score into [0, 100]. NaN maps to 0."""
    if np.isnan(score):
        return SCORE_MIN
    return float(min(max(score, SCORE_MIN), SCORE_MAX))


def _bounded_noise(noise: float, noise_max: float) -> float:
    """Noise clipped into the closed range [0, noise_max]; non-finite is 0."""
    value = _finite_or_none(noise)
    if value is None:
        return 0.0
    return float(np.clip(value, 0.0, noise_max))


def _draw(rng: Optional[np.random.Generator]) -> float:
    """Uniform draw in [0, 1); 0 when no generator is supplied."""
    if rng is None:
        return 0.0
    return float(rng.random())


class SignalEngine:
    """Stateless signal engine.

    Every operation is a pure function of its arguments and the policy.
    Randomness enters only through the explicit ``noise`` values or the
    ``rng`` generator passed by the caller.
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None):
        """Initialize signal engine."""
        self.policy = policy or STANDARD_POLICY
        logger.info(f"Signal engine initialized (policy: {self.policy.name})")

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def compute_pump_score(self, snapshot: CoinSnapshot, noise: float = 0.0) -> float:
        """Pump score in [0, 100].

        *noise* is clipped into [0, noise_max]; NaN or infinite noise counts as 0.
        """
        table = self.policy.pump
        score = table.base
        score += first_match(table.volume_ratio, snapshot.volume_ratio)
        score += first_match(table.momentum, snapshot.price_change_24h_pct)
        score += first_match(table.market_cap, snapshot.market_cap)
        score += first_match(table.ath, snapshot.ath_change_pct)
        score += _bounded_noise(noise, table.noise_max)
        return clamp_score(score)

    def compute_dump_score(self, snapshot: CoinSnapshot, noise: float = 0.0) -> float:
        """Dump score in [0, 100]. Independent of the pump score.

        *noise* is clipped into [0, noise_max] like the pump score.
        """
        table = self.policy.dump
        score = table.base
        score += first_match(table.momentum, snapshot.price_change_24h_pct)
        score += first_match(table.volume_ratio, snapshot.volume_ratio)
        score += first_match(table.market_cap, snapshot.market_cap)
        score += first_match(table.ath, snapshot.ath_change_pct)
        score += _bounded_noise(noise, table.noise_max)
        return clamp_score(score)

    def volatility_bucket(self, snapshot: CoinSnapshot) -> VolatilityBucket:
        """Bucket |24h change %| using the policy edges."""
        magnitude = abs(snapshot.price_change_24h_pct)
        edges = self.policy.volatility
        if magnitude > edges.very_high:
            return VolatilityBucket.VERY_HIGH
        if magnitude > edges.high:
            return VolatilityBucket.HIGH
        if magnitude > edges.medium:
            return VolatilityBucket.MEDIUM
        return VolatilityBucket.LOW

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def predict_movement(
        self,
        pump_score: float,
        dump_score: float,
        horizon: Horizon,
        rng: Optional[np.random.Generator] = None,
    ) -> Prediction:
        """Walk the horizon's threshold ladder, pump before dump at each tier."""
        ladder = self.policy.ladder(horizon)
        u = _draw(rng)

        if pump_score > ladder.strong_threshold:
            direction, confidence, change = Direction.PUMP, pump_score, ladder.strong_pump.draw(u)
        elif dump_score > ladder.strong_threshold:
            direction, confidence, change = Direction.DUMP, dump_score, -ladder.strong_dump.draw(u)
        elif pump_score > ladder.moderate_threshold:
            direction, confidence, change = Direction.PUMP, pump_score, ladder.moderate_pump.draw(u)
        elif dump_score > ladder.moderate_threshold:
            direction, confidence, change = Direction.DUMP, dump_score, -ladder.moderate_dump.draw(u)
        else:
            direction, confidence, change = (
                Direction.NEUTRAL, ladder.neutral_confidence, ladder.neutral.draw(u)
            )

        return Prediction(
            horizon=horizon,
            direction=direction,
            confidence=confidence,
            change_pct=change,
        )

    # ------------------------------------------------------------------
    # Levels & advice
    # ------------------------------------------------------------------

    def derive_trading_levels(
        self,
        current_price: float,
        volatility_bucket: Optional[VolatilityBucket],
        pump_score: float,
        dump_score: float,
    ) -> TradingLevels:
        """Take profit / stop loss bracketing *current_price*.

        Levels are not clamped; callers must check they stay positive.
        """
        multiplier = self.policy.multiplier(volatility_bucket)
        stop_distance = multiplier * self.policy.stop_loss_factor

        if pump_score > dump_score:
            take_profit = current_price * (1 + multiplier * pump_score / 100)
            stop_loss = current_price * (1 - stop_distance)
        else:
            take_profit = current_price * (1 - multiplier * dump_score / 100)
            stop_loss = current_price * (1 + stop_distance)

        if take_profit <= 0 or stop_loss <= 0:
            logger.warning(
                f"Non-positive trading level: tp={take_profit:.6f} sl={stop_loss:.6f} "
                f"(price={current_price}, multiplier={multiplier})"
            )

        return TradingLevels(take_profit=take_profit, stop_loss=stop_loss)

    def classify_advice(self, pump_score: float, dump_score: float) -> Advice:
        """First matching rule wins."""
        t = self.policy.advice
        if pump_score > t.strong:
            return Advice.STRONG_BUY
        if pump_score > t.regular:
            return Advice.BUY
        if dump_score > t.strong:
            return Advice.STRONG_SELL
        if dump_score > t.regular:
            return Advice.SELL
        if pump_score > t.lean:
            return Advice.HOLD_LEAN_BUY
        if dump_score > t.lean:
            return Advice.HOLD_LEAN_SELL
        return Advice.HOLD

    # ------------------------------------------------------------------
    # Full evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        snapshot: CoinSnapshot,
        rng: Optional[np.random.Generator] = None,
    ) -> SignalResult:
        """Evaluate a snapshot into a fresh SignalResult."""
        pump_noise = rng.uniform(0.0, self.policy.pump.noise_max) if rng is not None else 0.0
        dump_noise = rng.uniform(0.0, self.policy.dump.noise_max) if rng is not None else 0.0

        pump_score = self.compute_pump_score(snapshot, pump_noise)
        dump_score = self.compute_dump_score(snapshot, dump_noise)
        bucket = self.volatility_bucket(snapshot)

        result = SignalResult(
            symbol=snapshot.label,
            current_price=snapshot.current_price,
            pump_score=pump_score,
            dump_score=dump_score,
            volatility_bucket=bucket,
            short_term=self.predict_movement(pump_score, dump_score, Horizon.SHORT, rng),
            medium_term=self.predict_movement(pump_score, dump_score, Horizon.MEDIUM, rng),
            advice=self.classify_advice(pump_score, dump_score),
            levels=self.derive_trading_levels(
                snapshot.current_price, bucket, pump_score, dump_score
            ),
        )

        logger.debug(
            f"{result.symbol}: pump={pump_score:.1f} dump={dump_score:.1f} "
            f"vol={bucket.value} advice={result.advice.value}"
        )
        return result
