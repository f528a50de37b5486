"""Tests for the bit.team connector with mocked HTTP responses."""

import asyncio
import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from bitteam.errors import (
    AuthenticationRequired,
    CurrencyNotFound,
    ExchangeError,
    InvalidAddress,
    InvalidSignature,
    MalformedResponse,
    MarketNotFound,
    RateLimited,
    TransportError,
)
from bitteam.exchanges.base import BaseExchangeClient
from bitteam.exchanges.bitteam import BitteamClient
from bitteam.exchanges.signer import NONCE_HEADER, SIGNATURE_HEADER, NonceSource


def create_async_response(status=200, json_data=None):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


def routed_client(routes, api_key="test_key", api_secret="test_secret"):
    """Build a client whose transport answers from ``routes`` (url fragment -> body)."""
    client = BitteamClient(api_key, api_secret, nonce_source=NonceSource(clock=lambda: 1000))
    calls = []

    async def fake_request(method, url, headers=None, body=None):
        calls.append({"method": method, "url": url, "headers": headers or {}, "body": body})
        for fragment in sorted(routes, key=len, reverse=True):
            if fragment in url:
                await asyncio.sleep(0)
                return routes[fragment]
        raise AssertionError(f"unexpected request {method} {url}")

    client.request = fake_request
    return client, calls


@pytest.fixture
def routes(envelope, currency_record, pair_record, order_record, user_trade_record, transaction_record):
    usdt = dict(currency_record, symbol="usdt", title="Tether", decimals=6, blockChain="Ethereum")
    return {
        "trade/api/currencies": envelope({"currencies": [currency_record, usdt]}),
        "trade/api/pairs": envelope({"count": 1, "pairs": [pair_record]}),
        "trade/api/pair/": envelope({"pair": pair_record}),
        "trade/api/cmc/trades/": envelope([
            {"trade_id": 2, "price": "1972.1", "base_volume": "0.25", "timestamp": 1684152064512, "type": "sell"},
            {"trade_id": 1, "price": "1971.0", "base_volume": "1", "timestamp": 1684152000000, "type": "buy"},
        ]),
        "api/tw/history/": envelope({"data": [
            {"time": 1684152120000, "open": "2", "high": "3", "low": "1", "close": "2.5", "volume": "4"},
            {"time": 1684152060000, "open": "1", "high": "2", "low": "1", "close": "2", "volume": "3"},
        ]}),
        "trade/api/ccxt/balance": envelope({"balance": [
            {"symbol": "usdt", "available": "1000", "locked": "25"},
            {"symbol": "btc", "available": "0.5", "locked": "0"},
        ]}),
        "trade/api/ccxt/order/": envelope(order_record),
        "trade/api/ccxt/ordersOfUser": envelope({"count": 1, "orders": [dict(order_record, status="created")]}),
        "trade/api/ccxt/tradesOfUser": envelope({"count": 1, "trades": [user_trade_record]}),
        "trade/api/ccxt/ordercreate": envelope(dict(order_record, status="created")),
        "trade/api/ccxt/cancel-order": envelope({"message": "The request to cancel the order has been sent"}),
        "trade/api/ccxt/cancelallorder": envelope({"message": "ok"}),
        "trade/api/ccxt/depositAddress": envelope({"address": "0x7a16fF8270133F063aAb6C9977183D9e72835428"}),
        "trade/api/transactionsOfUser": envelope({"count": 2, "transactions": [
            transaction_record,
            dict(transaction_record, id=2, type="withdraw", status=2, currency={"symbol": "btc", "decimals": 8}),
        ]}),
    }


class TestPublicEndpoints:
    """Tests for market data endpoints."""

    @pytest.mark.asyncio
    async def test_fetch_currencies(self, routes):
        client, calls = routed_client(routes)

        currencies = await client.fetch_currencies()

        assert set(currencies) == {"BTC", "USDT"}
        assert currencies["BTC"].limits.withdraw.min == Decimal("0.0005")
        assert calls[0]["url"] == "https://bit.team/trade/api/currencies"
        assert calls[0]["headers"] == {}

    @pytest.mark.asyncio
    async def test_markets_loaded_once_for_concurrent_calls(self, routes):
        client, calls = routed_client(routes)

        ticker, book = await asyncio.gather(
            client.fetch_ticker("ETH/USDT"),
            client.fetch_order_book("ETH/USDT"),
        )

        market_fetches = [c for c in calls if c["url"].endswith("trade/api/pairs")]
        assert len(market_fetches) == 1
        assert ticker.symbol == book.symbol == "ETH/USDT"

    @pytest.mark.asyncio
    async def test_fetch_ticker(self, routes):
        client, calls = routed_client(routes)

        ticker = await client.fetch_ticker("ETH/USDT")

        assert calls[-1]["url"] == "https://bit.team/trade/api/pair/eth_usdt"
        assert ticker.last == Decimal("1976.715012")
        assert ticker.bid == Decimal("1975.9")
        assert ticker.open is None

    @pytest.mark.asyncio
    async def test_fetch_ticker_accepts_pair_id(self, routes):
        client, _ = routed_client(routes)
        ticker = await client.fetch_ticker("eth_usdt")
        assert ticker.symbol == "ETH/USDT"

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, routes):
        client, _ = routed_client(routes)
        with pytest.raises(MarketNotFound):
            await client.fetch_ticker("DOGE/USDT")

    @pytest.mark.asyncio
    async def test_fetch_tickers(self, routes):
        client, _ = routed_client(routes)
        tickers = await client.fetch_tickers()
        assert list(tickers) == ["ETH/USDT"]
        assert await client.fetch_tickers(["BTC/USDT"]) == {}

    @pytest.mark.asyncio
    async def test_fetch_order_book(self, routes):
        client, _ = routed_client(routes)

        book = await client.fetch_order_book("ETH/USDT", limit=1)

        assert [lvl.price for lvl in book.asks] == [Decimal("1977.1")]
        assert [lvl.price for lvl in book.bids] == [Decimal("1975.9")]

    @pytest.mark.asyncio
    async def test_fetch_ohlcv(self, routes):
        client, calls = routed_client(routes)

        candles = await client.fetch_ohlcv("ETH/USDT", "1d")

        assert calls[-1]["url"] == "https://history.bit.team/api/tw/history/eth_usdt/1D"
        assert [c.timestamp for c in candles] == [1684152060000, 1684152120000]

    @pytest.mark.asyncio
    async def test_fetch_ohlcv_since_and_limit(self, routes):
        client, _ = routed_client(routes)
        candles = await client.fetch_ohlcv("ETH/USDT", "5m", since=1684152100000, limit=5)
        assert [c.timestamp for c in candles] == [1684152120000]

    @pytest.mark.asyncio
    async def test_fetch_ohlcv_unsupported_timeframe(self, routes):
        client, _ = routed_client(routes)
        with pytest.raises(ValueError):
            await client.fetch_ohlcv("ETH/USDT", "4h")

    @pytest.mark.asyncio
    async def test_fetch_trades(self, routes):
        client, calls = routed_client(routes)

        trades = await client.fetch_trades("ETH/USDT", limit=1)

        assert calls[-1]["url"] == "https://bit.team/trade/api/cmc/trades/eth_usdt"
        assert len(trades) == 1
        assert trades[0].id == "2"
        assert trades[0].cost == Decimal("1972.1") * Decimal("0.25")

    @pytest.mark.asyncio
    async def test_malformed_pairs_response(self):
        client, _ = routed_client({"trade/api/pairs": {"ok": True}})
        with pytest.raises(MalformedResponse):
            await client.load_markets()
        assert client.markets.entries == {}


class TestPrivateEndpoints:
    """Tests for account and trading endpoints."""

    @pytest.mark.asyncio
    async def test_fetch_balance(self, routes):
        client, calls = routed_client(routes)

        balances = await client.fetch_balance()

        assert balances["USDT"].total == Decimal("1025")
        assert balances.free["BTC"] == Decimal("0.5")
        headers = calls[-1]["headers"]
        assert headers[NONCE_HEADER] == "1000"
        assert SIGNATURE_HEADER in headers

    @pytest.mark.asyncio
    async def test_private_call_without_credentials(self, routes):
        client, calls = routed_client(routes, api_key=None, api_secret=None)
        with pytest.raises(AuthenticationRequired):
            await client.fetch_balance()
        assert calls == []

    @pytest.mark.asyncio
    async def test_sequential_private_calls_increase_nonce(self, routes):
        client, calls = routed_client(routes)

        await client.fetch_balance()
        await client.fetch_balance()

        nonces = [int(c["headers"][NONCE_HEADER]) for c in calls]
        assert nonces[1] > nonces[0]

    @pytest.mark.asyncio
    async def test_fetch_order(self, routes):
        client, calls = routed_client(routes)

        order = await client.fetch_order("106494347")

        assert calls[-1]["url"] == "https://bit.team/trade/api/ccxt/order/106494347"
        assert order.status == "closed"
        assert order.symbol == "ETH/USDT"

    @pytest.mark.asyncio
    async def test_fetch_open_orders(self, routes):
        client, calls = routed_client(routes)

        orders = await client.fetch_open_orders("ETH/USDT")

        assert calls[-1]["url"] == "https://bit.team/trade/api/ccxt/ordersOfUser?pair=eth_usdt&type=active"
        assert [o.status for o in orders] == ["open"]

    @pytest.mark.asyncio
    async def test_fetch_closed_and_all_orders(self, routes):
        client, calls = routed_client(routes)

        await client.fetch_closed_orders(limit=5)
        assert calls[-1]["url"].endswith("ordersOfUser?limit=5&type=closed")

        await client.fetch_orders()
        assert calls[-1]["url"].endswith("ordersOfUser?type=all")

    @pytest.mark.asyncio
    async def test_fetch_my_trades_resolves_uncached_pair(self, routes):
        client, _ = routed_client(routes)

        trades = await client.fetch_my_trades()

        assert trades[0].symbol == "DEL/USDT"
        assert trades[0].taker_or_maker == "maker"

    @pytest.mark.asyncio
    async def test_create_order(self, routes):
        client, calls = routed_client(routes)

        order = await client.create_order("ETH/USDT", "limit", "buy", "0.00448", Decimal("1700"))

        call = calls[-1]
        assert call["method"] == "POST"
        assert call["url"] == "https://bit.team/trade/api/ccxt/ordercreate"
        assert json.loads(call["body"]) == {
            "amount": "0.00448",
            "pairId": 2,
            "price": "1700",
            "side": "buy",
            "type": "limit",
        }
        assert order.status == "open"
        assert order.symbol == "ETH/USDT"

    @pytest.mark.asyncio
    async def test_create_order_sends_plain_decimals(self, routes):
        client, calls = routed_client(routes)

        await client.create_order("ETH/USDT", "limit", "buy", "1e3", 0.0000001)

        body = json.loads(calls[-1]["body"])
        assert body["amount"] == "1000"
        assert body["price"] == "0.0000001"
        assert "E" not in calls[-1]["body"]

    @pytest.mark.asyncio
    async def test_create_market_order_omits_price(self, routes):
        client, calls = routed_client(routes)

        await client.create_order("ETH/USDT", "market", "sell", 1)

        assert "price" not in json.loads(calls[-1]["body"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args",
        [
            ("ETH/USDT", "limit", "buy", "1"),
            ("ETH/USDT", "stop", "buy", "1", "10"),
            ("ETH/USDT", "limit", "hold", "1", "10"),
            ("ETH/USDT", "market", "buy", "0"),
        ],
    )
    async def test_create_order_validation(self, routes, args):
        client, calls = routed_client(routes)
        with pytest.raises(ValueError):
            await client.create_order(*args)
        assert calls == []

    @pytest.mark.asyncio
    async def test_cancel_order(self, routes):
        client, calls = routed_client(routes)

        order = await client.cancel_order("106494347", "ETH/USDT")

        assert json.loads(calls[-1]["body"]) == {"id": "106494347"}
        assert order.id == "106494347"
        assert order.status == "canceled"
        assert order.symbol == "ETH/USDT"

    @pytest.mark.asyncio
    async def test_cancel_all_orders(self, routes):
        client, calls = routed_client(routes)
        await client.cancel_all_orders("ETH/USDT")
        assert json.loads(calls[-1]["body"]) == {"pairId": 2}


class TestFundingEndpoints:
    """Tests for deposit addresses and transactions."""

    @pytest.mark.asyncio
    async def test_fetch_deposit_address(self, routes):
        client, calls = routed_client(routes)

        address = await client.fetch_deposit_address("USDT")

        assert calls[-1]["url"].endswith("trade/api/ccxt/depositAddress?currency=usdt")
        assert address.currency == "USDT"
        assert address.network == "Ethereum"

    @pytest.mark.asyncio
    async def test_invalid_deposit_address(self, routes, envelope):
        routes["trade/api/ccxt/depositAddress"] = envelope({"address": "not an address"})
        client, _ = routed_client(routes)
        with pytest.raises(InvalidAddress):
            await client.fetch_deposit_address("USDT")

    @pytest.mark.asyncio
    async def test_unknown_currency(self, routes):
        client, _ = routed_client(routes)
        with pytest.raises(CurrencyNotFound):
            await client.fetch_deposit_address("XRP")

    @pytest.mark.asyncio
    async def test_fetch_deposits_and_withdrawals(self, routes):
        client, calls = routed_client(routes)

        deposits = await client.fetch_deposits("USDT")
        assert calls[-1]["url"].endswith("transactionsOfUser?currency=usdt&type=deposit")
        assert [(t.currency, t.status) for t in deposits] == [("USDT", "ok")]

        withdrawals = await client.fetch_withdrawals()
        assert [(t.currency, t.status) for t in withdrawals] == [("BTC", "pending")]

        everything = await client.fetch_transactions()
        assert len(everything) == 2


class TestTransport:
    """Tests for HTTP error mapping."""

    def _client(self, resp=None, error=None):
        client = BitteamClient("test_key", "test_secret")
        session = MagicMock()
        if error is not None:
            session.request = MagicMock(side_effect=error)
        else:
            session.request = MagicMock(return_value=resp)
        client._ensure_session = AsyncMock(return_value=session)
        return client, session

    @pytest.mark.asyncio
    async def test_success(self):
        client, session = self._client(create_async_response(200, {"ok": True, "result": {"pairs": []}}))

        data = await client.request("GET", "https://bit.team/trade/api/pairs")

        assert data == {"ok": True, "result": {"pairs": []}}
        assert session.request.call_args.args == ("GET", "https://bit.team/trade/api/pairs")

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        client, _ = self._client(create_async_response(429, {"ok": False}))
        with pytest.raises(RateLimited):
            await client.request("GET", "https://bit.team/trade/api/pairs")

    @pytest.mark.asyncio
    async def test_rejected_signature(self):
        client, _ = self._client(create_async_response(401, {"ok": False, "message": "bad sign"}))
        with pytest.raises(InvalidSignature):
            await client.request("GET", "https://bit.team/x", {SIGNATURE_HEADER: "abc"})

    @pytest.mark.asyncio
    async def test_unauthenticated(self):
        client, _ = self._client(create_async_response(403, None))
        with pytest.raises(AuthenticationRequired):
            await client.request("GET", "https://bit.team/x")

    @pytest.mark.asyncio
    async def test_server_error(self):
        client, _ = self._client(create_async_response(502, None))
        with pytest.raises(TransportError):
            await client.request("GET", "https://bit.team/x")

    @pytest.mark.asyncio
    async def test_provider_error(self):
        client, _ = self._client(create_async_response(200, {"ok": False, "message": "Insufficient funds"}))
        with pytest.raises(ExchangeError, match="Insufficient funds"):
            await client.request("POST", "https://bit.team/x")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        resp = create_async_response(200)
        resp.json = AsyncMock(side_effect=json.JSONDecodeError("bad", "<html>", 0))
        client, _ = self._client(resp)
        with pytest.raises(MalformedResponse):
            await client.request("GET", "https://bit.team/x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()])
    async def test_network_errors(self, error):
        client, _ = self._client(error=error)
        with pytest.raises(TransportError):
            await client.request("GET", "https://bit.team/x")

    @pytest.mark.asyncio
    async def test_close(self):
        client = BitteamClient()
        session = MagicMock()
        session.close = AsyncMock()
        client.session = session

        async with client:
            pass

        session.close.assert_awaited_once()
        assert client.session is None

    def test_base_url_must_be_provided(self):
        class NoUrlClient(BaseExchangeClient):
            async def load_markets(self, reload=False):
                return {}

            async def fetch_balance(self):
                raise NotImplementedError

        with pytest.raises(TypeError):
            NoUrlClient("nourl")
