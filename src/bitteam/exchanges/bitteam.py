"""bit.team exchange connector."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, TypeVar

from ..errors import MalformedResponse
from .base import BaseExchangeClient, ProxyConfig
from .markets import CurrencyCache, MarketCache
from .normalization import number_to_string, safe_string, to_decimal, unwrap_result
from .parsers import (
    parse_balance,
    parse_currency,
    parse_deposit_address,
    parse_market,
    parse_ohlcv,
    parse_order,
    parse_order_book,
    parse_ticker,
    parse_trade,
    parse_transaction,
)
from .protocol import (
    OHLCV,
    Balances,
    Currency,
    DepositAddress,
    Market,
    Order,
    OrderBook,
    Ticker,
    Trade,
    Transaction,
)
from .signer import NonceSource

logger = logging.getLogger(__name__)

T = TypeVar("T", Trade, Order, Transaction, OHLCV)

TIMEFRAMES = {
    "1m": "1",
    "5m": "5",
    "15m": "15",
    "60m": "60",
    "1d": "1D",
}

ORDER_TYPES = {"limit", "market"}
ORDER_SIDES = {"buy", "sell"}


def _filter_since_limit(items: Iterable[T], since: int | None, limit: int | None) -> list[T]:
    result = [
        item for item in items
        if since is None or item.timestamp is None or item.timestamp >= since
    ]
    if limit is not None:
        result = result[:limit]
    return result


def _as_list(value: Any, what: str) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise MalformedResponse(f"Expected a list of {what}, got {type(value).__name__}")
    return value


class BitteamClient(BaseExchangeClient):
    """bit.team spot exchange client."""

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        proxy: ProxyConfig | None = None,
        timeout: float = 10.0,
        base_url: str = "https://bit.team",
        history_url: str = "https://history.bit.team",
        nonce_source: NonceSource | None = None,
        markets: MarketCache | None = None,
        currencies: CurrencyCache | None = None,
        **options: Any,
    ):
        super().__init__(
            "bitteam",
            api_key,
            api_secret,
            proxy=proxy,
            timeout=timeout,
            nonce_source=nonce_source,
            **options,
        )
        self.base_url = base_url.rstrip("/")
        self.history_url = history_url.rstrip("/")
        self.markets = markets or MarketCache(self.fetch_markets)
        self.currencies = currencies or CurrencyCache(self._fetch_currency_list)

    def get_base_url(self) -> str:
        return self.base_url

    # Reference data

    async def _fetch_currency_list(self) -> list[Currency]:
        response = await self.public_request("GET", "trade/api/currencies")
        records = _as_list(unwrap_result(response, "currencies"), "currencies")
        return [parse_currency(record) for record in records]

    async def fetch_currencies(self) -> dict[str, Currency]:
        """Fetch currencies keyed by code and refresh the currency cache."""
        return await self.currencies.ensure_loaded(reload=True)

    async def fetch_markets(self) -> list[Market]:
        response = await self.public_request("GET", "trade/api/pairs")
        records = _as_list(unwrap_result(response, "pairs"), "pairs")
        return [parse_market(record) for record in records]

    async def load_markets(self, reload: bool = False) -> dict[str, Market]:
        return await self.markets.ensure_loaded(reload=reload)

    async def market(self, symbol: str) -> Market:
        await self.load_markets()
        return self.markets.market(symbol)

    async def currency(self, code: str) -> Currency:
        await self.currencies.ensure_loaded()
        return self.currencies.currency(code)

    # Market data

    async def _fetch_pair(self, symbol: str) -> tuple[Market, dict[str, Any]]:
        market = await self.market(symbol)
        response = await self.public_request("GET", "trade/api/pair/{name}", {"name": market.id})
        return market, unwrap_result(response, "pair")

    async def fetch_ticker(self, symbol: str) -> Ticker:
        market, pair = await self._fetch_pair(symbol)
        return parse_ticker(pair, market)

    async def fetch_tickers(self, symbols: list[str] | None = None) -> dict[str, Ticker]:
        """Fetch tickers of every market from the pairs listing."""
        await self.load_markets()
        response = await self.public_request("GET", "trade/api/pairs")
        tickers: dict[str, Ticker] = {}
        for record in _as_list(unwrap_result(response, "pairs"), "pairs"):
            market = self.markets.resolve(record.get("name", ""))
            if symbols is not None and market.symbol not in symbols:
                continue
            tickers[market.symbol] = parse_ticker(record, market)
        return tickers

    async def fetch_order_book(self, symbol: str, limit: int | None = None) -> OrderBook:
        market, pair = await self._fetch_pair(symbol)
        return parse_order_book(pair, market, limit)

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
    ) -> list[OHLCV]:
        resolution = TIMEFRAMES.get(timeframe)
        if resolution is None:
            supported = ", ".join(TIMEFRAMES)
            raise ValueError(f"Unsupported timeframe: {timeframe}. Supported timeframes: {supported}")
        market = await self.market(symbol)
        response = await self.public_request(
            "GET",
            "api/tw/history/{pairName}/{resolution}",
            {"pairName": market.id, "resolution": resolution},
            base_url=self.history_url,
        )
        candles = [parse_ohlcv(raw) for raw in _as_list(unwrap_result(response, "data"), "candles")]
        candles.sort(key=lambda c: c.timestamp)
        return _filter_since_limit(candles, since, limit)

    async def fetch_trades(
        self, symbol: str, since: int | None = None, limit: int | None = None
    ) -> list[Trade]:
        market = await self.market(symbol)
        response = await self.public_request("GET", "trade/api/cmc/trades/{pair}", {"pair": market.id})
        records = _as_list(unwrap_result(response), "trades")
        trades = [parse_trade(record, market) for record in records]
        return _filter_since_limit(trades, since, limit)

    # Account

    async def fetch_balance(self) -> Balances:
        response = await self.private_request("GET", "trade/api/ccxt/balance")
        entries = _as_list(unwrap_result(response, "balance"), "balances")
        return parse_balance(entries, info=unwrap_result(response))

    async def fetch_order(self, order_id: str, symbol: str | None = None) -> Order:
        await self.load_markets()
        market = self.markets.market(symbol) if symbol else None
        response = await self.private_request("GET", "trade/api/ccxt/order/{id}", {"id": order_id})
        return parse_order(unwrap_result(response), market, self.markets.resolve)

    async def _fetch_orders_of_type(
        self, order_type: str, symbol: str | None, since: int | None, limit: int | None
    ) -> list[Order]:
        await self.load_markets()
        market = self.markets.market(symbol) if symbol else None
        params = {
            "type": order_type,
            "pair": market.id if market else None,
            "limit": limit,
        }
        response = await self.private_request("GET", "trade/api/ccxt/ordersOfUser", params)
        records = _as_list(unwrap_result(response, "orders"), "orders")
        orders = [parse_order(record, market, self.markets.resolve) for record in records]
        return _filter_since_limit(orders, since, limit)

    async def fetch_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        return await self._fetch_orders_of_type("all", symbol, since, limit)

    async def fetch_open_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        return await self._fetch_orders_of_type("active", symbol, since, limit)

    async def fetch_closed_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        return await self._fetch_orders_of_type("closed", symbol, since, limit)

    async def fetch_my_trades(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Trade]:
        await self.load_markets()
        market = self.markets.market(symbol) if symbol else None
        params = {
            "pairId": market.pair_id if market else None,
            "limit": limit,
        }
        response = await self.private_request("GET", "trade/api/ccxt/tradesOfUser", params)
        records = _as_list(unwrap_result(response, "trades"), "trades")
        trades = [parse_trade(record, market, self.markets.resolve) for record in records]
        return _filter_since_limit(trades, since, limit)

    # Funding

    async def fetch_deposit_address(self, code: str) -> DepositAddress:
        currency = await self.currency(code)
        response = await self.private_request(
            "GET", "trade/api/ccxt/depositAddress", {"currency": currency.id}
        )
        return parse_deposit_address(unwrap_result(response), currency)

    async def _fetch_transactions_of_type(
        self, tx_type: str | None, code: str | None, since: int | None, limit: int | None
    ) -> list[Transaction]:
        currency = await self.currency(code) if code else None
        params = {
            "type": tx_type,
            "currency": currency.id if currency else None,
            "limit": limit,
        }
        response = await self.private_request("GET", "trade/api/transactionsOfUser", params)
        records = _as_list(unwrap_result(response, "transactions"), "transactions")
        transactions = [parse_transaction(record) for record in records]
        if currency is not None:
            transactions = [tx for tx in transactions if tx.currency in (None, currency.code)]
        if tx_type is not None:
            transactions = [tx for tx in transactions if tx.type == tx_type]
        return _filter_since_limit(transactions, since, limit)

    async def fetch_deposits(
        self, code: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Transaction]:
        return await self._fetch_transactions_of_type("deposit", code, since, limit)

    async def fetch_withdrawals(
        self, code: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Transaction]:
        return await self._fetch_transactions_of_type("withdraw", code, since, limit)

    async def fetch_transactions(
        self, code: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Transaction]:
        return await self._fetch_transactions_of_type(None, code, since, limit)

    # Trading

    async def create_order(
        self,
        symbol: str,
        type: str,
        side: str,
        amount: Decimal | str | float,
        price: Decimal | str | float | None = None,
    ) -> Order:
        order_type, order_side = type.lower(), side.lower()
        if order_type not in ORDER_TYPES:
            raise ValueError(f"Unsupported order type: {type}")
        if order_side not in ORDER_SIDES:
            raise ValueError(f"Unsupported order side: {side}")
        quantity = to_decimal(amount)
        if quantity is None or quantity <= 0:
            raise ValueError(f"Invalid order amount: {amount}")
        limit_price = to_decimal(price)
        if order_type == "limit" and limit_price is None:
            raise ValueError("Limit orders require a price")

        market = await self.market(symbol)
        params = {
            "pairId": market.pair_id if market.pair_id is not None else market.id,
            "side": order_side,
            "type": order_type,
            "amount": number_to_string(quantity),
            "price": number_to_string(limit_price) if order_type == "limit" else None,
        }
        response = await self.private_request("POST", "trade/api/ccxt/ordercreate", params)
        order = parse_order(unwrap_result(response), market)
        logger.info("Created %s %s order %s on %s", order_type, order_side, order.id, market.symbol)
        return order

    async def cancel_order(self, order_id: str, symbol: str | None = None) -> Order:
        await self.load_markets()
        market = self.markets.market(symbol) if symbol else None
        response = await self.private_request(
            "POST", "trade/api/ccxt/cancel-order", {"id": order_id}
        )
        result = unwrap_result(response)
        # Result is either the cancelled order or a bare {"message": ...}.
        echoed = isinstance(result, dict) and safe_string(result, ("id", "orderId")) is not None
        if echoed and (market is not None or "pair" in result):
            return parse_order(result, market, self.markets.resolve)
        logger.info("Cancelled order %s", order_id)
        return Order(
            id=str(order_id),
            symbol=market.symbol if market else None,
            status="canceled",
            info=result if isinstance(result, dict) else {"result": result},
        )

    async def cancel_all_orders(self, symbol: str | None = None) -> Any:
        """Cancel every open order, optionally restricted to one market."""
        market = await self.market(symbol) if symbol else None
        params = {"pairId": market.pair_id if market else None}
        response = await self.private_request("POST", "trade/api/ccxt/cancelallorder", params)
        return unwrap_result(response)
