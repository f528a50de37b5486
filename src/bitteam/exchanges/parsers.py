"""Provider payload parsers producing canonical entities.

Every parser takes one raw record (and optionally the market it belongs to)
and returns one entity. Optional fields the provider omits become None;
missing identifiers raise MalformedResponse.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Iterable

from ..errors import MalformedResponse, MarketNotFound
from .addresses import check_address
from .markets import synthesize_market
from .normalization import (
    currency_code,
    market_symbol,
    parse_timestamp,
    safe_bool,
    safe_decimal,
    safe_integer,
    safe_string,
    safe_value,
    split_pair,
    to_decimal,
)
from .protocol import (
    OHLCV,
    Balance,
    Balances,
    Currency,
    CurrencyLimits,
    DepositAddress,
    Fee,
    Market,
    MarketLimits,
    MarketPrecision,
    MinMax,
    Order,
    OrderBook,
    OrderBookLevel,
    Ticker,
    Trade,
    Transaction,
)

logger = logging.getLogger(__name__)

MarketResolver = Callable[[str], Market]

# Provider fee rates are integers in units of 1e-5 (200 -> 0.002).
FEE_RATE_SCALE = Decimal("100000")

ORDER_STATUSES = {
    "created": "open",
    "executing": "open",
    "cancelled": "canceled",
    "accepted": "closed",
    "rejected": "closed",
}

TRANSACTION_STATUSES = {
    1: "ok",
    -1: "failed",
    2: "pending",
    3: "pending",
}

TRANSACTION_TYPES = {
    "deposit": "deposit",
    "withdraw": "withdraw",
    "withdrawal": "withdraw",
}


def parse_order_status(status: Any) -> str:
    """Map a provider order status; anything unrecognised is ``expired``."""
    key = status.strip().lower() if isinstance(status, str) else None
    if key not in ORDER_STATUSES:
        logger.debug("Unmapped order status %r", status)
        return "expired"
    return ORDER_STATUSES[key]


def parse_transaction_status(status: Any) -> str | None:
    """Map a numeric transaction status code; unknown codes give None."""
    code = to_decimal(status)
    if code is None or code != code.to_integral_value():
        mapped = None
    else:
        mapped = TRANSACTION_STATUSES.get(int(code))
    if mapped is None:
        logger.debug("Unmapped transaction status %r", status)
    return mapped


def _require_string(raw: dict[str, Any], key: str | tuple[str, ...], entity: str) -> str:
    value = safe_string(raw, key)
    if value is None:
        raise MalformedResponse(f"{entity} record is missing {key!r}: {raw!r:.200}")
    return value


def _scale(value: Decimal | None, divisor: Decimal) -> Decimal | None:
    return None if value is None else value / divisor


def parse_currency(raw: dict[str, Any]) -> Currency:
    """Parse a ``currencies`` record.

    The ``symbol`` field is the provider currency id; ``txLimits`` carries the
    withdrawal fee and bounds.
    """
    currency_id = _require_string(raw, "symbol", "currency")
    tx_limits = safe_value(raw, "txLimits")
    if isinstance(tx_limits, dict):
        fee = safe_decimal(tx_limits, "withdrawCommissionFixed")
        limits = CurrencyLimits(
            withdraw=MinMax(
                min=safe_decimal(tx_limits, "minWithdraw"),
                max=safe_decimal(tx_limits, "maxWithdraw"),
            )
        )
    else:
        logger.debug("Currency %s has no txLimits", currency_id)
        fee = None
        limits = None
    return Currency(
        id=currency_id,
        code=currency_code(currency_id),
        name=safe_string(raw, "title"),
        active=safe_bool(raw, "active"),
        fee=fee,
        precision=safe_integer(raw, "decimals"),
        limits=limits,
        info=raw,
    )


def parse_market(raw: dict[str, Any]) -> Market:
    """Parse a ``pairs`` record.

    Base and quote come from ``fullName`` ("ETH USDT"); ``name`` ("eth_usdt")
    is only used as the market id.
    """
    market_id = _require_string(raw, "name", "market")
    full_name = _require_string(raw, "fullName", "market")
    try:
        base, quote = split_pair(full_name, " ")
    except MarketNotFound as e:
        raise MalformedResponse(f"Market {market_id} has unparseable fullName {full_name!r}") from e

    settings = safe_value(raw, "settings", {})
    taker = safe_decimal(raw, "takerFee")
    maker = safe_decimal(raw, "makerFee")
    return Market(
        id=market_id,
        symbol=market_symbol(base, quote),
        base=base,
        quote=quote,
        base_id=safe_string(safe_value(raw, "baseAsset"), "symbol", base.lower()),
        quote_id=safe_string(safe_value(raw, "quoteAsset"), "symbol", quote.lower()),
        pair_id=safe_integer(raw, "id"),
        active=safe_bool(raw, "active"),
        taker=_scale(taker, FEE_RATE_SCALE),
        maker=_scale(maker, FEE_RATE_SCALE),
        precision=MarketPrecision(
            base=safe_integer(raw, "baseStep"),
            quote=safe_integer(raw, "quoteStep"),
        ),
        limits=MarketLimits(
            price=MinMax(
                min=safe_decimal(settings, "price_min"),
                max=safe_decimal(settings, "price_max"),
            ),
            amount=MinMax(
                min=safe_decimal(settings, "lot_size_min"),
                max=safe_decimal(settings, "lot_size_max"),
            ),
            cost=MinMax(min=safe_decimal(settings, "limit_usd")),
        ),
        info=raw,
    )


def _market_for(
    raw: dict[str, Any], market: Market | None, resolve: MarketResolver | None
) -> Market:
    if market is not None:
        return market
    pair = safe_string(raw, ("pair", "name"))
    if pair is None:
        raise MalformedResponse(f"Record carries no pair: {raw!r:.200}")
    return (resolve or synthesize_market)(pair)


def _parse_level(level: Any) -> OrderBookLevel | None:
    if isinstance(level, (list, tuple)) and len(level) >= 2:
        price, amount = to_decimal(level[0]), to_decimal(level[1])
    elif isinstance(level, dict):
        price = safe_decimal(level, "price")
        amount = safe_decimal(level, ("quantity", "amount"))
    else:
        price = amount = None
    if price is None or amount is None:
        logger.debug("Skipping unparseable order book level %r", level)
        return None
    return OrderBookLevel(price, amount)


def _parse_levels(levels: Iterable[Any], limit: int | None) -> tuple[OrderBookLevel, ...]:
    parsed = [lvl for lvl in (_parse_level(level) for level in levels) if lvl is not None]
    if limit is not None:
        parsed = parsed[:limit]
    return tuple(parsed)


def parse_order_book(
    raw: dict[str, Any],
    market: Market | None = None,
    limit: int | None = None,
) -> OrderBook:
    """Parse the order book embedded in a pair detail record.

    Levels keep the provider's order, which is already best price first.
    """
    market = _market_for(raw, market, None)
    book = safe_value(raw, ("orderBook", "orderbook"), {})
    return OrderBook(
        symbol=market.symbol,
        asks=_parse_levels(safe_value(book, ("sell", "asks"), []), limit),
        bids=_parse_levels(safe_value(book, ("buy", "bids"), []), limit),
        timestamp=parse_timestamp(safe_value(book, "timestamp")),
    )


def parse_ticker(raw: dict[str, Any], market: Market | None = None) -> Ticker:
    """Parse a pair record into a ticker.

    Bid and ask come from the embedded order book when present. The provider
    has no open price, so ``open`` is always None.
    """
    market = _market_for(raw, market, None)
    book = parse_order_book(raw, market, limit=1)
    last = safe_decimal(raw, "lastPrice")
    return Ticker(
        symbol=market.symbol,
        timestamp=parse_timestamp(safe_value(raw, "updatedAt")),
        high=safe_decimal(raw, "highPrice24"),
        low=safe_decimal(raw, "lowPrice24"),
        bid=book.bids[0].price if book.bids else None,
        ask=book.asks[0].price if book.asks else None,
        close=last,
        last=last,
        percentage=safe_decimal(raw, "change24"),
        base_volume=safe_decimal(raw, "volume24"),
        quote_volume=safe_decimal(raw, "quoteVolume24"),
        info=raw,
    )


def parse_fee(raw: Any) -> Fee | None:
    """Parse ``{amount, symbol, decimals}``; amounts are integer units of 10**-decimals."""
    if not isinstance(raw, dict):
        return None
    cost = safe_decimal(raw, "amount")
    if cost is None:
        return None
    decimals = safe_integer(raw, "decimals")
    if decimals is not None:
        cost = cost.scaleb(-decimals)
    symbol = safe_string(raw, "symbol")
    return Fee(currency=currency_code(symbol) if symbol else None, cost=cost)


def parse_trade(
    raw: dict[str, Any],
    market: Market | None = None,
    resolve: MarketResolver | None = None,
) -> Trade:
    """Parse a public or private trade record.

    ``isBuyerMaker`` decides maker/taker; the fee is taken from the matching
    ``feeMaker``/``feeTaker`` object.
    """
    market = _market_for(raw, market, resolve)
    taker_or_maker = "maker" if safe_bool(raw, "isBuyerMaker") else "taker"
    fee_key = "feeMaker" if taker_or_maker == "maker" else "feeTaker"
    side = safe_string(raw, ("side", "type"))
    return Trade(
        id=safe_string(raw, ("tradeId", "trade_id", "id")),
        symbol=market.symbol,
        timestamp=parse_timestamp(safe_value(raw, ("timestamp", "createdAt"))),
        side=side.lower() if side else None,
        taker_or_maker=taker_or_maker,
        price=safe_decimal(raw, "price"),
        amount=safe_decimal(raw, ("quantity", "base_volume", "amount")),
        order_id=safe_string(raw, "orderId"),
        fee=parse_fee(safe_value(raw, fee_key)),
        info=raw,
    )


def parse_order(
    raw: dict[str, Any],
    market: Market | None = None,
    resolve: MarketResolver | None = None,
) -> Order:
    market = _market_for(raw, market, resolve)
    order_type = safe_string(raw, "type")
    side = safe_string(raw, "side")
    average = safe_decimal(raw, "executedPrice")
    return Order(
        id=_require_string(raw, ("id", "orderId"), "order"),
        symbol=market.symbol,
        status=parse_order_status(safe_value(raw, "status")),
        client_order_id=safe_string(raw, "orderCid"),
        timestamp=parse_timestamp(safe_value(raw, ("createdAt", "timestamp"))),
        type=order_type.lower() if order_type else None,
        side=side.lower() if side else None,
        price=safe_decimal(raw, "price"),
        amount=safe_decimal(raw, "quantity"),
        filled=safe_decimal(raw, "executed"),
        average=average if average else None,
        fee=parse_fee(safe_value(raw, "fee")),
        info=raw,
    )


def parse_balance(entries: Iterable[dict[str, Any]], info: Any = None) -> Balances:
    """Parse ``balance`` entries of ``{symbol, available, locked}``."""
    zero = Decimal("0")
    assets: dict[str, Balance] = {}
    for entry in entries:
        symbol = _require_string(entry, "symbol", "balance")
        code = currency_code(symbol)
        assets[code] = Balance(
            asset=code,
            free=safe_decimal(entry, ("available", "free"), zero),
            used=safe_decimal(entry, ("locked", "used"), zero),
        )
    return Balances(assets=assets, info=info if isinstance(info, dict) else {"balance": info})


def parse_transaction(raw: dict[str, Any]) -> Transaction:
    currency = safe_value(raw, "currency")
    if isinstance(currency, dict):
        symbol = safe_string(currency, "symbol")
    else:
        symbol = safe_string(raw, ("currency", "symbol"))
    tx_type = safe_string(raw, "type")
    return Transaction(
        id=safe_string(raw, "id"),
        currency=currency_code(symbol) if symbol else None,
        type=TRANSACTION_TYPES.get(tx_type.lower()) if tx_type else None,
        amount=safe_decimal(raw, "amount"),
        status=parse_transaction_status(safe_value(raw, "status")),
        timestamp=parse_timestamp(safe_value(raw, ("timestamp", "createdAt"))),
        address_from=safe_string(raw, "sender"),
        address_to=safe_string(raw, "recipient"),
        txid=safe_string(raw, ("txHash", "transactionCoreId")),
        fee=parse_fee(safe_value(raw, "fee")),
        info=raw,
    )


def parse_deposit_address(raw: dict[str, Any], currency: Currency) -> DepositAddress:
    """Parse a deposit address record and validate it for its chain.

    Raises:
        InvalidAddress: The address does not match the chain format
    """
    network = safe_string(raw, "blockChain") or safe_string(currency.info, "blockChain")
    address = check_address(safe_string(raw, "address"), network)
    return DepositAddress(
        currency=currency.code,
        address=address,
        tag=safe_string(raw, ("tag", "memo")),
        network=network,
        info=raw,
    )


def parse_ohlcv(raw: dict[str, Any]) -> OHLCV:
    timestamp = parse_timestamp(safe_value(raw, ("time", "timestamp")))
    if timestamp is None:
        raise MalformedResponse(f"Candle has no time: {raw!r:.200}")
    return OHLCV(
        timestamp=timestamp,
        open=safe_decimal(raw, "open"),
        high=safe_decimal(raw, "high"),
        low=safe_decimal(raw, "low"),
        close=safe_decimal(raw, "close"),
        volume=safe_decimal(raw, "volume"),
    )
