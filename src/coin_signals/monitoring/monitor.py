"""Monitoring for price API health and signal alerts."""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.enums import DataSource, Direction
from ..core.models import SignalResult

logger = logging.getLogger(__name__)


@dataclass
class SourceHealthStatus:
    """Price API health metrics."""
    is_healthy: bool = True
    last_response_ms: float = 0.0
    avg_response_ms: float = 0.0
    consecutive_failures: int = 0
    last_check: Optional[datetime] = None


@dataclass
class SignalAlert:
    """A pump or dump alert raised for one coin."""
    symbol: str
    direction: Direction
    score: float
    price: float
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> Tuple[str, Direction]:
        return (self.symbol, self.direction)


class AlertMonitor:
    """Tracks API health per source and de-duplicates alerts.

    An alert for a (symbol, direction) pair is raised once until
    :meth:`reset` is called or the pair drops below the threshold.
    """

    def __init__(
        self,
        alert_threshold: float = 75.0,
        max_consecutive_failures: int = 3,
        response_history_size: int = 50,
    ):
        self.alert_threshold = alert_threshold
        self.max_consecutive_failures = max_consecutive_failures
        self.response_history_size = response_history_size

        self._health: Dict[DataSource, SourceHealthStatus] = {}
        self._response_times: Dict[DataSource, deque] = {}
        self._active_alerts: Set[Tuple[str, Direction]] = set()
        self._alert_history: List[SignalAlert] = []

        logger.info("Alert monitor initialized")

    # ------------------------------------------------------------------
    # Source health
    # ------------------------------------------------------------------

    def record_fetch(self, source: DataSource, ok: bool, elapsed_ms: float = 0.0) -> SourceHealthStatus:
        """Record the outcome of one fetch against *source*."""
        source = DataSource(source)
        health = self._health.setdefault(source, SourceHealthStatus())
        times = self._response_times.setdefault(source, deque(maxlen=self.response_history_size))

        health.last_response_ms = elapsed_ms
        health.last_check = datetime.now()
        if ok:
            times.append(elapsed_ms)
            health.avg_response_ms = sum(times) / len(times)
            health.consecutive_failures = 0
            health.is_healthy = True
        else:
            health.consecutive_failures += 1
            health.is_healthy = health.consecutive_failures < self.max_consecutive_failures
            logger.warning(
                f"{source.value} fetch failed ({health.consecutive_failures} in a row)"
            )
        return health

    def source_health(self, source: DataSource) -> SourceHealthStatus:
        return self._health.get(DataSource(source), SourceHealthStatus())

    def is_healthy(self, source: DataSource) -> bool:
        return self.source_health(source).is_healthy

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def _alerts_for(self, result: SignalResult) -> List[SignalAlert]:
        alerts = []
        if result.pump_score >= self.alert_threshold:
            alerts.append(SignalAlert(result.symbol, Direction.PUMP, result.pump_score, result.current_price))
        if result.dump_score >= self.alert_threshold:
            alerts.append(SignalAlert(result.symbol, Direction.DUMP, result.dump_score, result.current_price))
        return alerts

    def filter_new_alerts(self, results: Iterable[SignalResult]) -> List[SignalAlert]:
        """Alerts not already raised; pairs that cooled off are re-armed."""
        current: Dict[Tuple[str, Direction], SignalAlert] = {}
        for result in results:
            for alert in self._alerts_for(result):
                current[alert.key] = alert

        new_alerts = [a for k, a in current.items() if k not in self._active_alerts]
        self._active_alerts = set(current)
        self._alert_history.extend(new_alerts)

        for alert in new_alerts:
            logger.info(
                f"ALERT {alert.direction.value.upper()} {alert.symbol}: "
                f"score={alert.score:.1f} price={alert.price}"
            )
        return new_alerts

    def get_alert_history(self) -> List[SignalAlert]:
        return list(self._alert_history)

    def reset(self):
        """Forget active alerts so they can fire again."""
        self._active_alerts.clear()
        logger.debug("Alert de-dup set cleared")
