"""Unit tests for SignalScanner."""

import numpy as np
import pandas as pd

from coin_signals.core.models import CoinSnapshot
from coin_signals.scanner.market_scanner import SignalScanner
from coin_signals.signal.engine import SignalEngine


def _snapshots():
    return [
        CoinSnapshot(symbol="hot", current_price=1.0, price_change_24h_pct=18,
                     volume_24h=2e8, market_cap=1e9, ath_change_pct=-5),
        CoinSnapshot(symbol="cold", current_price=100.0, price_change_24h_pct=-12,
                     volume_24h=1e7, market_cap=5e10),
        CoinSnapshot(symbol="meh", current_price=50.0, price_change_24h_pct=0.5,
                     volume_24h=1e8, market_cap=1e11, ath_change_pct=-60),
        CoinSnapshot(symbol="crash", current_price=0.01, price_change_24h_pct=-30,
                     volume_24h=2.4e7, market_cap=2e8, ath_change_pct=-40),
    ]


class TestSignalScanner:
    def setup_method(self):
        self.scanner = SignalScanner(SignalEngine(), {
            "max_results": 2,
            "alert_threshold": 75.0,
            "blacklist": ["SCAM"],
        })

    def test_scan_sorts_by_pump_score(self):
        results = self.scanner.scan(_snapshots())
        assert [r.symbol for r in results][0] == "HOT"
        pumps = [r.pump_score for r in results]
        assert pumps == sorted(pumps, reverse=True)

    def test_blacklist(self):
        snapshots = _snapshots() + [CoinSnapshot(symbol="scam", price_change_24h_pct=50)]
        results = self.scanner.scan(snapshots)
        assert "SCAM" not in [r.symbol for r in results]
        assert len(results) == 4

    def test_get_top_respects_max(self):
        self.scanner.scan(_snapshots())
        assert len(self.scanner.get_top()) == 2
        assert len(self.scanner.get_top(3)) == 3

    def test_alerts(self):
        self.scanner.scan(_snapshots())
        alerts = {r.symbol for r in self.scanner.get_alerts()}
        # crash: dump 30 + 25 + 10 + 15 = 80, pump 50 + 10 - 10 + 15 = 65
        assert alerts == {"HOT", "CRASH"}

    def test_rescan_replaces_results(self):
        first = self.scanner.scan(_snapshots())
        second = self.scanner.scan(_snapshots()[:1])
        assert len(second) == 1
        assert len(first) == 4
        assert len(self.scanner.last_results) == 1

    def test_scan_with_rng_is_reproducible(self):
        a = self.scanner.scan(_snapshots(), np.random.default_rng(5))
        b = self.scanner.scan(_snapshots(), np.random.default_rng(5))
        assert [r.pump_score for r in a] == [r.pump_score for r in b]

    def test_to_frame(self):
        self.scanner.scan(_snapshots())
        df = self.scanner.to_frame()
        assert isinstance(df, pd.DataFrame)
        assert df.index.name == "symbol"
        assert len(df) == 4
        assert df.loc["HOT", "pump_score"] == 100.0
        assert df.loc["COLD", "dump_score"] == 55.0
        assert df.loc["HOT", "advice"] == "STRONG_BUY"

    def test_to_frame_empty(self):
        df = SignalScanner().to_frame()
        assert df.empty
        assert "pump_score" in df.columns
