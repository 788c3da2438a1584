"""Scanner that evaluates and ranks a batch of coin snapshots."""

import logging
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..core.models import CoinSnapshot, SignalResult
from ..signal.engine import SignalEngine

logger = logging.getLogger(__name__)


class SignalScanner:
    """
    Runs the signal engine over every snapshot of a refresh cycle,
    ranks the results by pump score and flags alert-worthy coins.
    """

    def __init__(self, engine: Optional[SignalEngine] = None, config: Optional[Dict] = None):
        defaults = self._default_config()
        if config:
            defaults.update(config)
        self.config = defaults
        self.engine = engine or SignalEngine()
        self._last_results: List[SignalResult] = []

    @staticmethod
    def _default_config() -> Dict:
        return {
            "max_results": 20,
            "alert_threshold": 75.0,
            "blacklist": [],
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def scan(
        self,
        snapshots: Iterable[CoinSnapshot],
        rng: Optional[np.random.Generator] = None,
    ) -> List[SignalResult]:
        """Evaluate *snapshots* and replace the stored results."""
        blacklist = {s.upper() for s in self.config.get("blacklist", [])}

        results: List[SignalResult] = []
        for snapshot in snapshots:
            if snapshot.label in blacklist:
                continue
            results.append(self.engine.evaluate(snapshot, rng))

        # Sort descending by pump score, dump score breaks ties
        results.sort(key=lambda r: (r.pump_score, -r.dump_score), reverse=True)
        self._last_results = results

        logger.info(
            f"Scanned {len(results)} coins, {len(self.get_alerts())} above "
            f"alert threshold {self.config['alert_threshold']}"
        )
        return results

    def get_top(self, n: Optional[int] = None) -> List[SignalResult]:
        """Return top *n* results from the last scan."""
        n = n or self.config["max_results"]
        return self._last_results[:n]

    def get_alerts(self) -> List[SignalResult]:
        """Results whose pump or dump score reached the alert threshold."""
        threshold = self.config["alert_threshold"]
        return [
            r for r in self._last_results
            if r.pump_score >= threshold or r.dump_score >= threshold
        ]

    @property
    def last_results(self) -> List[SignalResult]:
        return list(self._last_results)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """Summary table of the last scan, indexed by symbol."""
        columns = [
            "symbol", "price", "pump_score", "dump_score", "volatility",
            "advice", "short_direction", "short_change_pct",
            "medium_direction", "medium_change_pct", "take_profit", "stop_loss",
        ]
        rows = [
            {
                "symbol": r.symbol,
                "price": r.current_price,
                "pump_score": r.pump_score,
                "dump_score": r.dump_score,
                "volatility": r.volatility_bucket.value,
                "advice": r.advice.value,
                "short_direction": r.short_term.direction.value,
                "short_change_pct": r.short_term.change_pct,
                "medium_direction": r.medium_term.direction.value,
                "medium_change_pct": r.medium_term.change_pct,
                "take_profit": r.levels.take_profit,
                "stop_loss": r.levels.stop_loss,
            }
            for r in self._last_results
        ]
        df = pd.DataFrame(rows, columns=columns)
        df.set_index("symbol", inplace=True)
        return df
