"""Unit tests for market data connectors."""

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock

from coin_signals.core.enums import DataSource
from coin_signals.data.connector import (
    FetchError,
    HTTPMarketConnector,
    SyntheticMarketConnector,
)


def _gecko_coin(symbol="btc", change=1.0):
    return {
        "id": symbol,
        "symbol": symbol,
        "name": symbol.upper(),
        "current_price": 10.0,
        "market_cap": 1e9,
        "total_volume": 5e7,
        "price_change_percentage_24h": change,
        "ath_change_percentage": -20.0,
    }


def _mock_session(status=200, json_data=None, text="", get_side_effect=None):
    """Session whose get() yields a single canned response."""
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.closed = False
    if get_side_effect is not None:
        session.get = MagicMock(side_effect=get_side_effect)
    else:
        session.get = MagicMock(return_value=context)
    return session


class TestFetchError:
    def test_message(self):
        err = FetchError(DataSource.CMC, "rate limited", status=429)
        assert err.source == DataSource.CMC
        assert err.status == 429
        assert "HTTP 429" in str(err)
        assert "cmc" in str(err)


class TestHTTPMarketConnector:
    def setup_method(self):
        self.connector = HTTPMarketConnector({"timeout": 5, "cmc_api_key": "test-key"})

    @pytest.mark.asyncio
    async def test_gecko_top_coins(self):
        self.connector._get_json = AsyncMock(return_value=[_gecko_coin("btc"), _gecko_coin("eth")])
        snapshots = await self.connector.get_top_coins(DataSource.GECKO, limit=20)

        assert [s.symbol for s in snapshots] == ["BTC", "ETH"]
        source, url = self.connector._get_json.call_args.args
        assert source == DataSource.GECKO
        assert url.endswith("/coins/markets")
        params = self.connector._get_json.call_args.kwargs["params"]
        assert params["vs_currency"] == "usd"
        assert params["per_page"] == 20

    @pytest.mark.asyncio
    async def test_limit_truncates(self):
        self.connector._get_json = AsyncMock(return_value=[_gecko_coin(f"c{i}") for i in range(5)])
        snapshots = await self.connector.get_top_coins(DataSource.GECKO, limit=2)
        assert len(snapshots) == 2

    @pytest.mark.asyncio
    async def test_cmc_sends_api_key(self):
        self.connector._get_json = AsyncMock(return_value={"data": [{
            "id": 1, "symbol": "BTC", "name": "Bitcoin",
            "quote": {"USD": {"price": 60000, "market_cap": 1.2e12, "volume_24h": 3e10}},
        }]})
        snapshots = await self.connector.get_top_coins(DataSource.CMC)
        assert snapshots[0].current_price == 60000
        headers = self.connector._get_json.call_args.kwargs["headers"]
        assert headers["X-CMC_PRO_API_KEY"] == "test-key"

    @pytest.mark.asyncio
    async def test_cmc_without_key(self):
        connector = HTTPMarketConnector()
        with pytest.raises(FetchError):
            await connector.get_top_coins(DataSource.CMC)

    @pytest.mark.asyncio
    async def test_freecrypto_unexpected_payload(self):
        self.connector._get_json = AsyncMock(return_value={"status": "error"})
        with pytest.raises(FetchError):
            await self.connector.get_top_coins(DataSource.FREECRYPTO)

    @pytest.mark.asyncio
    async def test_non_200_raises_fetch_error(self):
        self.connector._get_session = AsyncMock(return_value=_mock_session(status=503, text="unavailable"))
        with pytest.raises(FetchError) as exc_info:
            await self.connector.get_top_coins(DataSource.GECKO)
        assert exc_info.value.status == 503

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self):
        session = _mock_session(get_side_effect=aiohttp.ClientConnectionError("refused"))
        self.connector._get_session = AsyncMock(return_value=session)
        with pytest.raises(FetchError) as exc_info:
            await self.connector.get_top_coins(DataSource.GECKO)
        assert exc_info.value.status is None

    @pytest.mark.asyncio
    async def test_get_json_success(self):
        self.connector._get_session = AsyncMock(return_value=_mock_session(json_data={"gecko_says": "ok"}))
        assert await self.connector.ping() is True

    @pytest.mark.asyncio
    async def test_ping_failure(self):
        self.connector._get_session = AsyncMock(return_value=_mock_session(status=500))
        assert await self.connector.ping() is False

    @pytest.mark.asyncio
    async def test_fallback_to_gecko(self):
        gecko = [_gecko_coin("btc")]

        async def fake_top(source, limit=20):
            if source == DataSource.FREECRYPTO:
                raise FetchError(source, "down", status=500)
            return gecko

        self.connector.get_top_coins = AsyncMock(side_effect=fake_top)
        result, served = await self.connector.get_top_coins_with_fallback(DataSource.FREECRYPTO)
        assert result == gecko
        assert served == DataSource.GECKO
        assert self.connector.get_top_coins.await_count == 2

    @pytest.mark.asyncio
    async def test_gecko_failure_not_retried(self):
        self.connector.get_top_coins = AsyncMock(side_effect=FetchError(DataSource.GECKO, "down"))
        with pytest.raises(FetchError):
            await self.connector.get_top_coins_with_fallback(DataSource.GECKO)
        assert self.connector.get_top_coins.await_count == 1

    @pytest.mark.asyncio
    async def test_primary_source_reported_when_it_serves(self):
        self.connector.get_top_coins = AsyncMock(return_value=[])
        _, served = await self.connector.get_top_coins_with_fallback(DataSource.CMC)
        assert served == DataSource.CMC

    @pytest.mark.asyncio
    async def test_search_hit_without_id(self):
        self.connector._get_json = AsyncMock(return_value={"coins": [{"name": "Bitcoin"}]})
        with pytest.raises(FetchError):
            await self.connector.search_coin("bitcoin")
        assert self.connector._get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_search_unexpected_payload(self):
        self.connector._get_json = AsyncMock(return_value=["not", "a", "dict"])
        assert await self.connector.search_coin("bitcoin") is None

    @pytest.mark.asyncio
    async def test_search_malformed_detail(self):
        self.connector._get_json = AsyncMock(side_effect=[
            {"coins": [{"id": "bitcoin"}]},
            {"id": "bitcoin", "symbol": 42},
        ])
        with pytest.raises(FetchError):
            await self.connector.search_coin("bitcoin")

    @pytest.mark.asyncio
    async def test_search_coin(self):
        detail = {
            "id": "bitcoin", "symbol": "btc", "name": "Bitcoin",
            "market_data": {
                "current_price": {"usd": 65000},
                "price_change_percentage_24h": 2.0,
                "market_cap": {"usd": 1.2e12},
                "total_volume": {"usd": 3e10},
            },
        }
        self.connector._get_json = AsyncMock(side_effect=[{"coins": [{"id": "bitcoin"}]}, detail])
        snapshot = await self.connector.search_coin("bitcoin")
        assert snapshot.symbol == "BTC"
        assert snapshot.current_price == 65000
        assert self.connector._get_json.call_args.args[1].endswith("/coins/bitcoin")

    @pytest.mark.asyncio
    async def test_search_coin_not_found(self):
        self.connector._get_json = AsyncMock(return_value={"coins": []})
        assert await self.connector.search_coin("zzzz") is None

    @pytest.mark.asyncio
    async def test_search_empty_query(self):
        self.connector._get_json = AsyncMock()
        assert await self.connector.search_coin("   ") is None
        self.connector._get_json.assert_not_awaited()


class TestSyntheticMarketConnector:
    @pytest.mark.asyncio
    async def test_seeded_is_reproducible(self):
        a = await SyntheticMarketConnector(seed=11).get_top_coins()
        b = await SyntheticMarketConnector(seed=11).get_top_coins()
        assert [s.model_dump() for s in a] == [s.model_dump() for s in b]

    @pytest.mark.asyncio
    async def test_snapshots_are_plausible(self):
        connector = SyntheticMarketConnector(symbols=["AAA", "BBB", "CCC"], seed=1)
        snapshots = await connector.get_top_coins(limit=2)
        assert [s.symbol for s in snapshots] == ["AAA", "BBB"]
        for s in snapshots:
            assert s.source == DataSource.SYNTHETIC
            assert s.current_price > 0
            assert s.volume_24h <= s.market_cap * 0.3
            assert s.ath_change_pct <= 0

    @pytest.mark.asyncio
    async def test_search(self):
        connector = SyntheticMarketConnector(seed=1)
        assert (await connector.search_coin("btc")).symbol == "BTC"
        assert await connector.search_coin("nope") is None
        assert await connector.ping() is True
        await connector.close()
