"""Exchange adapters and connectivity layer."""

from .protocol import (
    ExchangeClient,
    Balance,
    Balances,
    Currency,
    DepositAddress,
    Market,
    OHLCV,
    Order,
    OrderBook,
    Ticker,
    Trade,
    Transaction,
)
from .normalization import unwrap_result, split_pair
from .markets import CacheState, CurrencyCache, MarketCache
from .signer import NonceSource, RequestSigner
from .base import BaseExchangeClient, ProxyConfig
from .bitteam import BitteamClient
from .factory import create_exchange_client, create_client_from_settings, EXCHANGE_CLIENTS

__all__ = [
    "ExchangeClient",
    "Balance",
    "Balances",
    "Currency",
    "DepositAddress",
    "Market",
    "OHLCV",
    "Order",
    "OrderBook",
    "Ticker",
    "Trade",
    "Transaction",
    "unwrap_result",
    "split_pair",
    "CacheState",
    "CurrencyCache",
    "MarketCache",
    "NonceSource",
    "RequestSigner",
    "BaseExchangeClient",
    "ProxyConfig",
    "BitteamClient",
    "create_exchange_client",
    "create_client_from_settings",
    "EXCHANGE_CLIENTS",
]
