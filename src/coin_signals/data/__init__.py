"""Market data module."""

from .connector import (
    MarketDataConnector, HTTPMarketConnector, SyntheticMarketConnector, FetchError
)
from .normalizer import normalize_coin, normalize_coins

__all__ = [
    "MarketDataConnector",
    "HTTPMarketConnector",
    "SyntheticMarketConnector",
    "FetchError",
    "normalize_coin",
    "normalize_coins",
]
