"""Canonical domain model and the protocol every connector implements."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class MinMax:
    min: Decimal | None = None
    max: Decimal | None = None


@dataclass(frozen=True, slots=True)
class CurrencyLimits:
    withdraw: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True, slots=True)
class Currency:
    """A currency listed by the provider.

    ``fee`` and ``limits`` are None when the provider record carries no
    withdrawal limits.
    """

    id: str
    code: str
    name: str | None = None
    active: bool | None = None
    fee: Decimal | None = None
    precision: int | None = None
    limits: CurrencyLimits | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class MarketPrecision:
    base: int | None = None
    quote: int | None = None


@dataclass(frozen=True, slots=True)
class MarketLimits:
    price: MinMax = field(default_factory=MinMax)
    amount: MinMax = field(default_factory=MinMax)
    cost: MinMax = field(default_factory=MinMax)


@dataclass(frozen=True, slots=True)
class Market:
    """A spot trading pair.

    ``id`` is the provider pair name (``eth_usdt``), ``symbol`` the unified
    ``BASE/QUOTE`` form. ``pair_id`` is the numeric id order endpoints expect.
    """

    id: str
    symbol: str
    base: str
    quote: str
    base_id: str
    quote_id: str
    pair_id: int | None = None
    active: bool | None = None
    taker: Decimal | None = None
    maker: Decimal | None = None
    precision: MarketPrecision = field(default_factory=MarketPrecision)
    limits: MarketLimits = field(default_factory=MarketLimits)
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class Ticker:
    """Point-in-time market snapshot. Fields the provider omits stay None."""

    symbol: str
    timestamp: int | None = None
    high: Decimal | None = None
    low: Decimal | None = None
    bid: Decimal | None = None
    ask: Decimal | None = None
    open: Decimal | None = None
    close: Decimal | None = None
    last: Decimal | None = None
    percentage: Decimal | None = None
    base_volume: Decimal | None = None
    quote_volume: Decimal | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class OrderBookLevel:
    price: Decimal
    amount: Decimal


@dataclass(frozen=True, slots=True)
class OrderBook:
    """Asks ascending, bids descending, best price first."""

    symbol: str
    asks: tuple[OrderBookLevel, ...] = ()
    bids: tuple[OrderBookLevel, ...] = ()
    timestamp: int | None = None


@dataclass(frozen=True, slots=True)
class OHLCV:
    timestamp: int
    open: Decimal | None
    high: Decimal | None
    low: Decimal | None
    close: Decimal | None
    volume: Decimal | None


@dataclass(frozen=True, slots=True)
class Fee:
    currency: str | None
    cost: Decimal


@dataclass(frozen=True, slots=True)
class Trade:
    """A public or private fill. ``cost`` is always derived from price and amount."""

    id: str | None
    symbol: str
    timestamp: int | None = None
    side: str | None = None
    taker_or_maker: str | None = None
    price: Decimal | None = None
    amount: Decimal | None = None
    order_id: str | None = None
    fee: Fee | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def cost(self) -> Decimal | None:
        if self.price is None or self.amount is None:
            return None
        return self.price * self.amount


@dataclass(frozen=True, slots=True)
class Order:
    """A private order. ``status`` is one of open, canceled, closed, expired."""

    id: str
    symbol: str | None
    status: str
    client_order_id: str | None = None
    timestamp: int | None = None
    type: str | None = None
    side: str | None = None
    price: Decimal | None = None
    amount: Decimal | None = None
    filled: Decimal | None = None
    average: Decimal | None = None
    fee: Fee | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def remaining(self) -> Decimal | None:
        if self.amount is None or self.filled is None:
            return None
        return self.amount - self.filled


@dataclass(frozen=True, slots=True)
class Balance:
    """Represents account balance for a single asset."""

    asset: str
    free: Decimal
    used: Decimal

    @property
    def total(self) -> Decimal:
        return self.free + self.used


@dataclass(frozen=True, slots=True)
class Balances:
    """Balances of every asset with free/used/total aggregate views."""

    assets: dict[str, Balance] = field(default_factory=dict)
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __getitem__(self, code: str) -> Balance:
        return self.assets[code]

    def __contains__(self, code: object) -> bool:
        return code in self.assets

    @property
    def free(self) -> dict[str, Decimal]:
        return {code: b.free for code, b in self.assets.items()}

    @property
    def used(self) -> dict[str, Decimal]:
        return {code: b.used for code, b in self.assets.items()}

    @property
    def total(self) -> dict[str, Decimal]:
        return {code: b.total for code, b in self.assets.items()}


@dataclass(frozen=True, slots=True)
class Transaction:
    """A deposit or withdrawal. ``status`` is ok, failed, pending or None."""

    id: str | None
    currency: str | None
    type: str | None
    amount: Decimal | None
    status: str | None
    timestamp: int | None = None
    address_from: str | None = None
    address_to: str | None = None
    txid: str | None = None
    fee: Fee | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class DepositAddress:
    currency: str
    address: str
    tag: str | None = None
    network: str | None = None
    info: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class ExchangeClient(Protocol):
    """Protocol for the unified exchange API."""

    async def load_markets(self, reload: bool = False) -> dict[str, Market]:
        """Populate the market cache once and return markets keyed by symbol.

        Args:
            reload: Replace the cached markets with a fresh fetch

        Returns:
            Markets keyed by unified symbol
        """
        ...

    async def fetch_currencies(self) -> dict[str, Currency]:
        """Fetch every listed currency keyed by its unified code."""
        ...

    async def fetch_markets(self) -> list[Market]:
        """Fetch every listed market, bypassing the cache."""
        ...

    async def fetch_ticker(self, symbol: str) -> Ticker:
        """Fetch a ticker snapshot.

        Args:
            symbol: Unified symbol (e.g., 'ETH/USDT')
        """
        ...

    async def fetch_order_book(self, symbol: str, limit: int | None = None) -> OrderBook:
        """Fetch the order book of a market.

        Args:
            symbol: Unified symbol
            limit: Keep at most this many levels per side
        """
        ...

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "1m",
        since: int | None = None,
        limit: int | None = None,
    ) -> list[OHLCV]:
        """Fetch candles.

        Args:
            symbol: Unified symbol
            timeframe: One of 1m, 5m, 15m, 60m, 1d
            since: Earliest candle timestamp in milliseconds
            limit: Maximum number of candles
        """
        ...

    async def fetch_trades(
        self, symbol: str, since: int | None = None, limit: int | None = None
    ) -> list[Trade]:
        """Fetch recent public trades of a market."""
        ...

    async def fetch_order(self, order_id: str, symbol: str | None = None) -> Order:
        """Fetch a single private order by id."""
        ...

    async def fetch_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        """Fetch orders in every state."""
        ...

    async def fetch_open_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        """Fetch active orders."""
        ...

    async def fetch_closed_orders(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Order]:
        """Fetch finished orders."""
        ...

    async def fetch_my_trades(
        self, symbol: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Trade]:
        """Fetch the account's own fills."""
        ...

    async def fetch_deposit_address(self, code: str) -> DepositAddress:
        """Fetch the deposit address of a currency.

        Raises:
            InvalidAddress: The returned address fails chain validation
        """
        ...

    async def fetch_deposits(
        self, code: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Transaction]:
        """Fetch deposits, optionally for a single currency."""
        ...

    async def fetch_withdrawals(
        self, code: str | None = None, since: int | None = None, limit: int | None = None
    ) -> list[Transaction]:
        """Fetch withdrawals, optionally for a single currency."""
        ...

    async def fetch_balance(self) -> Balances:
        """Fetch account balances."""
        ...

    async def create_order(
        self,
        symbol: str,
        type: str,
        side: str,
        amount: Decimal | str | float,
        price: Decimal | str | float | None = None,
    ) -> Order:
        """Place an order.

        Args:
            symbol: Unified symbol
            type: 'limit' or 'market'
            side: 'buy' or 'sell'
            amount: Order quantity in base currency
            price: Limit price, required for limit orders
        """
        ...

    async def cancel_order(self, order_id: str, symbol: str | None = None) -> Order:
        """Cancel an active order."""
        ...

    async def close(self) -> None:
        """Close the HTTP session."""
        ...
