"""Core data models for the signal engine."""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import (
    Advice, Confidence, DataSource, Direction, Horizon, MomentumLabel, VolatilityBucket
)


def _finite_or_none(value: Any) -> Optional[float]:
    """Coerce *value* to a finite float, or None if that is not possible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class CoinSnapshot(BaseModel):
    """Normalized market snapshot of a single coin.

    Missing or malformed numeric fields are replaced by documented defaults
    so that scoring never sees NaN or divides by zero.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    coin_id: Optional[str] = Field(default=None, description="Provider coin id")
    symbol: Optional[str] = Field(default=None, description="Ticker symbol")
    name: Optional[str] = Field(default=None, description="Display name")
    source: DataSource = Field(default=DataSource.GECKO, description="Data provider")

    # Market data
    current_price: float = Field(default=0.0, description="Current price in USD")
    price_change_24h_pct: float = Field(default=0.0, description="24h price change %")
    price_change_7d_pct: Optional[float] = Field(default=None, description="7d price change %")
    volume_24h: float = Field(default=0.0, description="24h traded volume in USD")
    market_cap: float = Field(default=1.0, description="Market capitalization in USD")
    ath_change_pct: Optional[float] = Field(default=None, description="Distance from all-time high %")

    @field_validator('price_change_24h_pct', mode='before')
    @classmethod
    def default_change(cls, v):
        number = _finite_or_none(v)
        return 0.0 if number is None else number

    @field_validator('volume_24h', 'current_price', mode='before')
    @classmethod
    def non_negative(cls, v):
        number = _finite_or_none(v)
        if number is None or number < 0:
            return 0.0
        return number

    @field_validator('market_cap', mode='before')
    @classmethod
    def positive_market_cap(cls, v):
        number = _finite_or_none(v)
        if number is None or number <= 0:
            return 1.0
        return number

    @field_validator('ath_change_pct', 'price_change_7d_pct', mode='before')
    @classmethod
    def optional_pct(cls, v):
        return _finite_or_none(v)

    @field_validator('symbol', mode='before')
    @classmethod
    def upper_symbol(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def volume_ratio(self) -> float:
        """Volume to market cap ratio."""
        return self.volume_24h / self.market_cap

    @property
    def label(self) -> str:
        return self.symbol or self.coin_id or self.name or "---"


class Prediction(BaseModel):
    """Movement prediction for one horizon."""

    model_config = ConfigDict(frozen=True)

    horizon: Horizon = Field(description="Prediction horizon")
    direction: Direction = Field(description="Predicted direction")
    confidence: float = Field(ge=0.0, le=100.0, description="Confidence (0-100)")
    change_pct: float = Field(description="Expected price change %")


class TradingLevels(BaseModel):
    """Suggested exit levels."""

    model_config = ConfigDict(frozen=True)

    take_profit: float = Field(description="Take profit price")
    stop_loss: float = Field(description="Stop loss price")


class SignalResult(BaseModel):
    """Complete evaluation of one snapshot."""

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Coin label")
    current_price: float = Field(description="Price the levels were derived from")
    pump_score: float = Field(ge=0.0, le=100.0, description="Pump score (0-100)")
    dump_score: float = Field(ge=0.0, le=100.0, description="Dump score (0-100)")
    volatility_bucket: VolatilityBucket = Field(description="Volatility bucket")
    short_term: Prediction = Field(description="~10 minute prediction")
    medium_term: Prediction = Field(description="~30 minute prediction")
    advice: Advice = Field(description="Trading recommendation")
    levels: TradingLevels = Field(description="Take profit / stop loss")
    evaluated_at: datetime = Field(default_factory=datetime.now, description="Evaluation time")

    @property
    def bullish(self) -> bool:
        return self.pump_score > self.dump_score


class MomentumSignal(BaseModel):
    """A coin with significant 24h movement."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: Optional[str] = None
    change_pct: float
    label: MomentumLabel


class KeyLevels(BaseModel):
    """Entry zone and exits for a single-coin analysis."""

    model_config = ConfigDict(frozen=True)

    entry_low: float
    entry_high: float
    take_profit: float
    stop_loss: float


class CoinAnalysis(BaseModel):
    """Per-coin 24h/7d analysis."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    name: Optional[str] = None
    current_price: float
    change_24h_pct: float
    change_7d_pct: float
    summary: str
    advice: Advice
    confidence: Confidence
    levels: KeyLevels
