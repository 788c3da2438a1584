"""Pytest configuration and fixtures."""

import pytest

from coin_signals.core.models import CoinSnapshot
from coin_signals.signal.engine import SignalEngine


@pytest.fixture
def engine():
    """Signal engine with the standard policy."""
    return SignalEngine()


@pytest.fixture
def pump_snapshot():
    """Small-cap coin running hot near its ATH."""
    return CoinSnapshot(
        symbol="pmp",
        name="Pumpcoin",
        current_price=2.0,
        price_change_24h_pct=18.0,
        volume_24h=2e8,
        market_cap=1e9,
        ath_change_pct=-5.0,
    )


@pytest.fixture
def dump_snapshot():
    """Large-cap coin selling off, no ATH data."""
    return CoinSnapshot(
        symbol="dmp",
        name="Dumpcoin",
        current_price=100.0,
        price_change_24h_pct=-12.0,
        volume_24h=1e7,
        market_cap=5e10,
    )


@pytest.fixture
def quiet_snapshot():
    """Large-cap coin with nothing happening."""
    return CoinSnapshot(
        symbol="qt",
        current_price=50.0,
        price_change_24h_pct=0.5,
        volume_24h=1e8,
        market_cap=1e11,
        ath_change_pct=-60.0,
    )
