"""Signal dashboard application."""

import asyncio
import logging
import signal
import sys
import time
from datetime import datetime
from typing import Dict, List, Optional
import os
from dotenv import load_dotenv

import numpy as np

load_dotenv()

from .core.models import CoinAnalysis, CoinSnapshot, MomentumSignal, SignalResult
from .core.enums import DataSource
from .data.connector import FetchError, HTTPMarketConnector, MarketDataConnector, SyntheticMarketConnector
from .signal.engine import SignalEngine
from .signal.policy import get_policy
from .signal.momentum import analyze_coin, find_momentum_signals
from .scanner.market_scanner import SignalScanner
from .monitoring.monitor import AlertMonitor, SignalAlert

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """Configure root logging for the application."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)


class SignalDashboard:
    """Application context: owns the connector, engine, scanner and monitor.

    All mutable dashboard state (refresh task, latest results, alert
    de-dup set) lives here and is torn down by :meth:`stop`.
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        connector: Optional[MarketDataConnector] = None,
    ):
        """Initialize signal dashboard."""
        defaults = self._default_config()
        if config:
            for key, val in config.items():
                if isinstance(val, dict) and key in defaults and isinstance(defaults[key], dict):
                    defaults[key].update(val)
                else:
                    defaults[key] = val
        self.config = defaults
        self._running = False
        self._refresh_task: Optional[asyncio.Task] = None

        self._init_components(connector)

        logger.info("Signal dashboard initialized")

    def _default_config(self) -> Dict:
        """Default configuration."""
        return {
            'data': {
                'source': 'gecko',
                'synthetic': False,
                'limit': 20,
                'seed': None,
                'timeout': 30,
                'cmc_api_key': os.getenv('CMC_API_KEY'),
                'freecrypto_api_key': os.getenv('FREECRYPTO_API_KEY'),
            },
            'signal': {
                'policy': 'standard',
            },
            'scanner': {
                'alert_threshold': 75.0,
                'max_results': 20,
                'blacklist': [],
            },
            'momentum': {
                'min_abs_change': 5.0,
                'limit': 5,
            },
            'refresh_interval_seconds': 30,
        }

    def _init_components(self, connector: Optional[MarketDataConnector]):
        """Initialize all dashboard components."""
        data_cfg = self.config['data']
        self.source = DataSource(data_cfg['source'])

        if connector is not None:
            self.connector = connector
        elif data_cfg.get('synthetic'):
            self.connector = SyntheticMarketConnector(seed=data_cfg.get('seed'))
            self.source = DataSource.SYNTHETIC
        else:
            self.connector = HTTPMarketConnector({
                'timeout': data_cfg.get('timeout', 30),
                'cmc_api_key': data_cfg.get('cmc_api_key'),
                'freecrypto_api_key': data_cfg.get('freecrypto_api_key'),
            })

        # Production randomness for the engine's noise and magnitude draws
        self.rng = np.random.default_rng(data_cfg.get('seed'))

        self.engine = SignalEngine(get_policy(self.config['signal']['policy']))
        self.scanner = SignalScanner(self.engine, self.config['scanner'])
        self.monitor = AlertMonitor(alert_threshold=self.config['scanner']['alert_threshold'])

        self._snapshots: List[CoinSnapshot] = []
        self._momentum: List[MomentumSignal] = []
        self._last_refresh: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    async def refresh(self) -> List[SignalResult]:
        """Fetch, evaluate and publish one cycle.

        On a fetch failure the previous results stay in place. When the
        configured source had to fall back, it is marked failed and the
        dashboard switches to the source that served the data.
        """
        limit = self.config['data']['limit']
        start = time.monotonic()
        try:
            snapshots, served = await self.connector.get_top_coins_with_fallback(self.source, limit)
        except FetchError as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            self.monitor.record_fetch(self.source, False, elapsed_ms)
            if e.source != self.source:
                self.monitor.record_fetch(e.source, False, elapsed_ms)
            logger.error(f"Refresh failed: {e}")
            return self.scanner.last_results

        elapsed_ms = (time.monotonic() - start) * 1000
        if served != self.source:
            self.monitor.record_fetch(self.source, False, elapsed_ms)
            logger.warning(f"Switching data source from {self.source.value} to {served.value}")
            self.source = served
        self.monitor.record_fetch(served, True, elapsed_ms)

        results = self.scanner.scan(snapshots, self.rng)
        momentum_cfg = self.config['momentum']
        self._momentum = find_momentum_signals(
            snapshots,
            min_abs_change=momentum_cfg['min_abs_change'],
            limit=momentum_cfg['limit'],
        )
        self._snapshots = snapshots
        self._last_refresh = datetime.now()

        self.monitor.filter_new_alerts(results)
        return results

    async def analyze(self, query: str) -> Optional[CoinAnalysis]:
        """Search one coin and analyze it."""
        try:
            snapshot = await self.connector.search_coin(query)
        except FetchError as e:
            logger.error(f"Search for '{query}' failed: {e}")
            return None
        if snapshot is None:
            return None
        return analyze_coin(snapshot)

    async def _refresh_loop(self):
        """Refresh on a fixed interval until stopped."""
        interval = self.config['refresh_interval_seconds']
        logger.info(f"Starting refresh loop (every {interval}s, source={self.source.value})")

        while self._running:
            try:
                await self.refresh()
            except Exception as e:
                logger.error(f"Error in refresh loop: {e}")
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Start the periodic refresh task."""
        if self._running:
            return
        logger.info("Starting signal dashboard...")

        if not await self.connector.ping():
            logger.warning("Primary API offline, relying on fallbacks")

        self._running = True
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self):
        """Stop refreshing and release the connector."""
        logger.info("Stopping signal dashboard...")
        self._running = False

        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

        await self.connector.close()
        self.monitor.reset()
        logger.info("Signal dashboard stopped")

    async def run(self):
        """Start and block until the refresh task ends."""
        await self.start()
        if self._refresh_task:
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        asyncio.create_task(self.stop())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def results(self) -> List[SignalResult]:
        return self.scanner.last_results

    @property
    def momentum_signals(self) -> List[MomentumSignal]:
        return list(self._momentum)

    @property
    def alerts(self) -> List[SignalAlert]:
        return self.monitor.get_alert_history()

    def get_status(self) -> Dict:
        """Get dashboard status."""
        return {
            'running': self._running,
            'source': self.source.value,
            'policy': self.engine.policy.name,
            'source_healthy': self.monitor.is_healthy(self.source),
            'coins': len(self._snapshots),
            'alerts': len(self.monitor.get_alert_history()),
            'last_refresh': self._last_refresh,
        }


def _config_from_env() -> Dict:
    """Build config dict from environment variables."""
    config: Dict = {}

    source = os.getenv('SIGNAL_SOURCE', '').strip().lower()
    synthetic = os.getenv('SIGNAL_SYNTHETIC', '').strip().lower()
    seed = os.getenv('SIGNAL_SEED', '').strip()
    if source or synthetic or seed:
        config['data'] = {}
        if source:
            config['data']['source'] = source
        if synthetic in ('1', 'true', 'yes'):
            config['data']['synthetic'] = True
        if seed:
            config['data']['seed'] = int(seed)

    policy = os.getenv('SIGNAL_POLICY', '').strip()
    if policy:
        config['signal'] = {'policy': policy}

    threshold = os.getenv('SIGNAL_ALERT_THRESHOLD', '').strip()
    blacklist = os.getenv('SIGNAL_BLACKLIST', '').strip()
    if threshold or blacklist:
        config['scanner'] = {}
        if threshold:
            config['scanner']['alert_threshold'] = float(threshold)
        if blacklist:
            config['scanner']['blacklist'] = [s.strip() for s in blacklist.split(',') if s.strip()]

    interval = os.getenv('SIGNAL_REFRESH_SECONDS', '').strip()
    if interval:
        config['refresh_interval_seconds'] = int(interval)

    return config


async def main():
    """Main entry point."""
    setup_logging(log_file=os.getenv('SIGNAL_LOG_FILE') or None)
    config = _config_from_env()

    dashboard = SignalDashboard(config if config else None)
    signal.signal(signal.SIGINT, dashboard._signal_handler)
    signal.signal(signal.SIGTERM, dashboard._signal_handler)

    try:
        await dashboard.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
    finally:
        await dashboard.stop()


def cli():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
