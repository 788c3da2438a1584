"""Market data connector interface and implementations."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple
import asyncio
import logging

import aiohttp
import numpy as np
from pydantic import ValidationError

from ..core.models import CoinSnapshot
from ..core.enums import DataSource
from .normalizer import from_gecko_detail, normalize_coins

logger = logging.getLogger(__name__)


API_CONFIG: Dict[DataSource, Dict[str, Any]] = {
    DataSource.GECKO: {
        'name': 'CoinGecko',
        'base_url': 'https://api.coingecko.com/api/v3',
        'endpoints': {
            'ping': '/ping',
            'top': '/coins/markets',
            'search': '/search',
            'coin': '/coins/',
        },
    },
    DataSource.FREECRYPTO: {
        'name': 'Free CryptoAPI',
        'base_url': 'https://api.freecryptoapi.com/v1',
        'endpoints': {
            'get_data': '/getData',
            'top': '/getTop',
        },
    },
    DataSource.CMC: {
        'name': 'CoinMarketCap',
        'base_url': 'https://pro-api.coinmarketcap.com/v1',
        'endpoints': {
            'top': '/cryptocurrency/listings/latest',
            'quotes': '/cryptocurrency/quotes/latest',
        },
    },
}


class FetchError(Exception):
    """Upstream price API request failed."""

    def __init__(self, source: DataSource, message: str, status: Optional[int] = None):
        self.source = DataSource(source)
        self.status = status
        self.message = message
        detail = f"{self.source.value} fetch failed"
        if status is not None:
            detail += f" (HTTP {status})"
        super().__init__(f"{detail}: {message}")


class MarketDataConnector(ABC):
    """Abstract base class for market data connectors."""

    @abstractmethod
    async def get_top_coins(
        self,
        source: DataSource = DataSource.GECKO,
        limit: int = 20
    ) -> List[CoinSnapshot]:
        """Get the top coins by market cap."""
        pass

    @abstractmethod
    async def search_coin(self, query: str) -> Optional[CoinSnapshot]:
        """Look up a single coin by name or symbol."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check the primary API is reachable."""
        pass

    @abstractmethod
    async def close(self):
        """Close connection."""
        pass

    async def get_top_coins_with_fallback(
        self,
        source: DataSource = DataSource.GECKO,
        limit: int = 20
    ) -> Tuple[List[CoinSnapshot], DataSource]:
        """Get top coins, falling back to CoinGecko if *source* fails.

        Returns the snapshots together with the source that served them.
        """
        source = DataSource(source)
        try:
            return await self.get_top_coins(source, limit), source
        except FetchError as e:
            if source == DataSource.GECKO:
                raise
            logger.warning(f"{e}; falling back to CoinGecko")
            return await self.get_top_coins(DataSource.GECKO, limit), DataSource.GECKO


class HTTPMarketConnector(MarketDataConnector):
    """aiohttp-based connector for the public price APIs."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize HTTP connector."""
        self.config = config or {}
        self.timeout = self.config.get('timeout', 30)
        self.cmc_api_key = self.config.get('cmc_api_key') or ''
        self.freecrypto_api_key = self.config.get('freecrypto_api_key') or ''
        self._session: Optional[aiohttp.ClientSession] = None
        logger.info(f"HTTP market connector initialized (timeout={self.timeout}s)")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _url(self, source: DataSource, endpoint: str) -> str:
        api = API_CONFIG[source]
        return f"{api['base_url']}{api['endpoints'][endpoint]}"

    async def _get_json(
        self,
        source: DataSource,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET *url* and decode JSON, raising FetchError on any failure."""
        session = await self._get_session()
        try:
            async with session.get(url, params=params, headers=headers) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise FetchError(source, error_text[:200], status=response.status)
                return await response.json()
        except FetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error fetching {url}: {e}")
            raise FetchError(source, str(e)) from e

    async def get_top_coins(
        self,
        source: DataSource = DataSource.GECKO,
        limit: int = 20
    ) -> List[CoinSnapshot]:
        """Get top coins from *source*."""
        source = DataSource(source)
        if source == DataSource.GECKO:
            payload = await self._get_json(source, self._url(source, 'top'), params={
                'vs_currency': 'usd',
                'order': 'market_cap_desc',
                'per_page': limit,
                'page': 1,
                'sparkline': 'false',
                'price_change_percentage': '24h,7d',
            })
            coins = payload
        elif source == DataSource.FREECRYPTO:
            headers = {}
            if self.freecrypto_api_key:
                headers['Authorization'] = f"Bearer {self.freecrypto_api_key}"
            payload = await self._get_json(source, self._url(source, 'top'), headers=headers)
            coins = payload.get('data') if isinstance(payload, dict) else None
        elif source == DataSource.CMC:
            if not self.cmc_api_key:
                raise FetchError(source, "CMC_API_KEY is not configured")
            payload = await self._get_json(
                source,
                self._url(source, 'top'),
                params={'limit': limit},
                headers={'X-CMC_PRO_API_KEY': self.cmc_api_key},
            )
            coins = payload.get('data') if isinstance(payload, dict) else None
        else:
            raise FetchError(source, "Source is not served over HTTP")

        if not isinstance(coins, list):
            raise FetchError(source, f"Unexpected payload type {type(coins).__name__}")

        snapshots = normalize_coins(coins[:limit], source)
        logger.info(f"Retrieved {len(snapshots)} coins from {API_CONFIG[source]['name']}")
        return snapshots

    async def search_coin(self, query: str) -> Optional[CoinSnapshot]:
        """Search CoinGecko and fetch market data for the best match."""
        query = query.strip()
        if not query:
            return None

        source = DataSource.GECKO
        results = await self._get_json(source, self._url(source, 'search'), params={'query': query})
        coins = results.get('coins') if isinstance(results, dict) else None
        if not coins:
            logger.info(f"No coin found for '{query}'")
            return None

        best = coins[0] if isinstance(coins, list) else None
        coin_id = best.get('id') if isinstance(best, dict) else None
        if not coin_id:
            raise FetchError(source, f"Search result for '{query}' has no coin id")
        detail = await self._get_json(
            source,
            f"{self._url(source, 'coin')}{coin_id}",
            params={
                'localization': 'false',
                'tickers': 'false',
                'market_data': 'true',
                'community_data': 'false',
                'developer_data': 'false',
                'sparkline': 'false',
            },
        )
        if not isinstance(detail, dict):
            raise FetchError(source, f"Unexpected payload type {type(detail).__name__}")
        try:
            return from_gecko_detail(detail)
        except ValidationError as e:
            raise FetchError(source, f"Malformed coin document for '{coin_id}': {e}") from e

    async def ping(self) -> bool:
        """Ping CoinGecko."""
        try:
            await self._get_json(DataSource.GECKO, self._url(DataSource.GECKO, 'ping'))
            return True
        except FetchError as e:
            logger.warning(f"API ping failed: {e}")
            return False


class SyntheticMarketConnector(MarketDataConnector):
    """Fabricates market snapshots locally from a seeded generator.

    Used when no network access is wanted, e.g. demos and tests.
    """

    DEFAULT_SYMBOLS = ('BTC', 'ETH', 'SOL', 'DOGE', 'PEPE', 'SHIB', 'ADA', 'XRP')

    def __init__(self, symbols: Optional[Sequence[str]] = None, seed: Optional[int] = None):
        self.symbols = list(symbols or self.DEFAULT_SYMBOLS)
        self.rng = np.random.default_rng(seed)
        logger.info(f"Synthetic connector initialized with {len(self.symbols)} symbols (seed={seed})")

    def _fabricate(self, symbol: str) -> CoinSnapshot:
        market_cap = float(10 ** self.rng.uniform(7, 12))
        return CoinSnapshot(
            coin_id=symbol.lower(),
            symbol=symbol,
            name=symbol,
            source=DataSource.SYNTHETIC,
            current_price=float(10 ** self.rng.uniform(-6, 5)),
            price_change_24h_pct=float(self.rng.normal(0, 10)),
            price_change_7d_pct=float(self.rng.normal(0, 20)),
            volume_24h=market_cap * float(self.rng.uniform(0.005, 0.3)),
            market_cap=market_cap,
            ath_change_pct=-float(self.rng.uniform(0, 90)),
        )

    async def get_top_coins(
        self,
        source: DataSource = DataSource.SYNTHETIC,
        limit: int = 20
    ) -> List[CoinSnapshot]:
        """Fabricate one snapshot per symbol; *source* is ignored."""
        snapshots = [self._fabricate(s) for s in self.symbols[:limit]]
        logger.debug(f"Fabricated {len(snapshots)} snapshots")
        return snapshots

    async def search_coin(self, query: str) -> Optional[CoinSnapshot]:
        symbol = query.strip().upper()
        if symbol not in self.symbols:
            return None
        return self._fabricate(symbol)

    async def ping(self) -> bool:
        return True

    async def close(self):
        pass
