"""Unit tests for momentum signals and single-coin analysis."""

import pytest

from coin_signals.core.models import CoinSnapshot
from coin_signals.core.enums import Advice, Confidence, MomentumLabel
from coin_signals.signal.momentum import analyze_coin, find_momentum_signals


def _snap(symbol, change, change_7d=None, price=100.0):
    return CoinSnapshot(
        symbol=symbol,
        name=symbol.title(),
        current_price=price,
        price_change_24h_pct=change,
        price_change_7d_pct=change_7d,
    )


class TestMomentumSignals:
    def test_filter_sort_and_limit(self):
        changes = {"A": 2, "B": -7, "C": 12, "D": 6, "E": -20, "F": 5.0, "G": 8, "H": 9}
        snapshots = [_snap(s, c) for s, c in changes.items()]
        signals = find_momentum_signals(snapshots)
        assert [s.symbol for s in signals] == ["E", "C", "H", "G", "B"]

    def test_labels(self):
        signals = find_momentum_signals([_snap("UP", 12), _snap("DOWN", -12)])
        labels = {s.symbol: s.label for s in signals}
        assert labels["UP"] == MomentumLabel.STRONG
        assert labels["DOWN"] == MomentumLabel.WEAK

    def test_no_movers(self):
        assert find_momentum_signals([_snap("A", 1), _snap("B", -5)]) == []

    def test_custom_threshold(self):
        signals = find_momentum_signals([_snap("A", 3), _snap("B", 1)], min_abs_change=2, limit=1)
        assert [s.symbol for s in signals] == ["A"]


class TestAnalyzeCoin:
    def test_strong_bullish(self):
        a = analyze_coin(_snap("BTC", 12, 20))
        assert a.advice == Advice.BUY
        assert a.confidence == Confidence.HIGH

    def test_downward_pressure(self):
        a = analyze_coin(_snap("BTC", -9, -13))
        assert a.advice == Advice.AVOID
        assert a.confidence == Confidence.HIGH

    def test_consolidating(self):
        a = analyze_coin(_snap("BTC", 1))
        assert a.advice == Advice.HOLD
        assert a.confidence == Confidence.MEDIUM
        assert "Consolidating" in a.summary
        assert a.change_7d_pct == 0.0

    def test_moderate(self):
        a = analyze_coin(_snap("BTC", 12))
        assert a.advice == Advice.HOLD
        assert "Moderate" in a.summary

    def test_key_levels(self):
        levels = analyze_coin(_snap("BTC", 0, price=100.0)).levels
        assert levels.entry_low == pytest.approx(98.0)
        assert levels.entry_high == pytest.approx(102.0)
        assert levels.take_profit == pytest.approx(108.0)
        assert levels.stop_loss == pytest.approx(94.0)
