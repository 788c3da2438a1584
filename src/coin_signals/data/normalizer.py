"""Map upstream price API payloads into CoinSnapshot."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..core.models import CoinSnapshot
from ..core.enums import DataSource

logger = logging.getLogger(__name__)


def _first(payload: Dict[str, Any], *keys: str) -> Any:
    """First non-None value among *keys*."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def _usd(section: Optional[Dict[str, Any]]) -> Any:
    if isinstance(section, dict):
        return section.get('usd')
    return section


def _section(value: Any) -> Dict[str, Any]:
    """Nested payload object, or an empty dict when it is missing or not an object."""
    return value if isinstance(value, dict) else {}


def from_gecko(coin: Dict[str, Any]) -> CoinSnapshot:
    """CoinGecko ``/coins/markets`` item."""
    return CoinSnapshot(
        coin_id=coin.get('id'),
        symbol=coin.get('symbol'),
        name=coin.get('name'),
        source=DataSource.GECKO,
        current_price=coin.get('current_price'),
        price_change_24h_pct=_first(
            coin, 'price_change_percentage_24h', 'price_change_percentage_24h_in_currency'
        ),
        price_change_7d_pct=coin.get('price_change_percentage_7d_in_currency'),
        volume_24h=coin.get('total_volume'),
        market_cap=coin.get('market_cap'),
        ath_change_pct=coin.get('ath_change_percentage'),
    )


def from_gecko_detail(coin: Dict[str, Any]) -> CoinSnapshot:
    """CoinGecko ``/coins/{id}`` document with ``market_data``."""
    market = _section(coin.get('market_data'))
    return CoinSnapshot(
        coin_id=coin.get('id'),
        symbol=coin.get('symbol'),
        name=coin.get('name'),
        source=DataSource.GECKO,
        current_price=_usd(market.get('current_price')),
        price_change_24h_pct=market.get('price_change_percentage_24h'),
        price_change_7d_pct=market.get('price_change_percentage_7d'),
        volume_24h=_usd(market.get('total_volume')),
        market_cap=_usd(market.get('market_cap')),
        ath_change_pct=_usd(market.get('ath_change_percentage')),
    )


def from_freecrypto(coin: Dict[str, Any]) -> CoinSnapshot:
    """Free CryptoAPI ``/getTop`` / ``/getData`` item."""
    return CoinSnapshot(
        coin_id=_first(coin, 'id', 'symbol'),
        symbol=coin.get('symbol'),
        name=coin.get('name'),
        source=DataSource.FREECRYPTO,
        current_price=_first(coin, 'price', 'last'),
        price_change_24h_pct=_first(coin, 'percent_change_24h', 'change_24h', 'daily_change_percentage'),
        price_change_7d_pct=_first(coin, 'percent_change_7d', 'change_7d'),
        volume_24h=_first(coin, 'volume_24h', 'volume'),
        market_cap=coin.get('market_cap'),
        ath_change_pct=coin.get('ath_change_percentage'),
    )


def from_cmc(coin: Dict[str, Any]) -> CoinSnapshot:
    """CoinMarketCap listing/quote item (USD quote)."""
    quote = _section(_section(coin.get('quote')).get('USD'))
    return CoinSnapshot(
        coin_id=str(coin['id']) if coin.get('id') is not None else coin.get('slug'),
        symbol=coin.get('symbol'),
        name=coin.get('name'),
        source=DataSource.CMC,
        current_price=quote.get('price'),
        price_change_24h_pct=quote.get('percent_change_24h'),
        price_change_7d_pct=quote.get('percent_change_7d'),
        volume_24h=quote.get('volume_24h'),
        market_cap=quote.get('market_cap'),
    )


_NORMALIZERS = {
    DataSource.GECKO: from_gecko,
    DataSource.FREECRYPTO: from_freecrypto,
    DataSource.CMC: from_cmc,
}


def normalize_coin(payload: Dict[str, Any], source: DataSource) -> CoinSnapshot:
    """Normalize one provider payload."""
    try:
        normalizer = _NORMALIZERS[DataSource(source)]
    except (KeyError, ValueError):
        raise ValueError(f"No normalizer for data source '{source}'")
    return normalizer(payload)


def normalize_coins(payloads: Iterable[Dict[str, Any]], source: DataSource) -> List[CoinSnapshot]:
    """Normalize a list of payloads, skipping malformed items."""
    snapshots: List[CoinSnapshot] = []
    skipped = 0
    for payload in payloads:
        if not isinstance(payload, dict):
            skipped += 1
            continue
        try:
            snapshots.append(normalize_coin(payload, source))
        except ValidationError as e:
            skipped += 1
            logger.warning(f"Skipping malformed {DataSource(source).value} coin {payload.get('symbol')}: {e}")

    logger.debug(f"Normalized {len(snapshots)} coins from {DataSource(source).value} (skipped {skipped})")
    return snapshots
