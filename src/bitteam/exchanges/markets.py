"""Lazily populated market and currency caches."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

from ..errors import CurrencyNotFound, MarketNotFound
from .normalization import market_symbol, split_pair
from .protocol import Currency, Market

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _retrieve_exception(task: asyncio.Future[None]) -> None:
    # Waiters that gave up leave nobody else to retrieve a failure.
    if not task.cancelled():
        task.exception()


class CacheState(str, Enum):
    COLD = "cold"
    POPULATING = "populating"
    WARM = "warm"


class EntityCache(Generic[T]):
    """Populate-once, read-many store for provider reference data.

    Concurrent ``ensure_loaded`` calls share one in-flight fetch. The fetch
    runs as its own task, so a caller abandoning its await does not cancel it
    for the others. Entries are swapped in only after the loader succeeds.
    """

    kind = "entity"

    def __init__(self, loader: Callable[[], Awaitable[Iterable[T]]]):
        self._loader = loader
        self._entries: dict[str, T] = {}
        self._index: dict[str, T] = {}
        self._warm = False
        self._inflight: asyncio.Task[None] | None = None

    @property
    def state(self) -> CacheState:
        if self._inflight is not None:
            return CacheState.POPULATING
        return CacheState.WARM if self._warm else CacheState.COLD

    @property
    def entries(self) -> dict[str, T]:
        return dict(self._entries)

    def _keys(self, entity: T) -> tuple[str, tuple[str, ...]]:
        """Return the primary key and any secondary lookup keys."""
        raise NotImplementedError()

    async def ensure_loaded(self, reload: bool = False) -> dict[str, T]:
        if self._warm and not reload and self._inflight is None:
            return self.entries
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._populate())
            self._inflight.add_done_callback(_retrieve_exception)
        await asyncio.shield(self._inflight)
        return self.entries

    async def _populate(self) -> None:
        try:
            entities = list(await self._loader())
            entries: dict[str, T] = {}
            index: dict[str, T] = {}
            for entity in entities:
                primary, secondary = self._keys(entity)
                entries[primary] = entity
                index[primary] = entity
                for key in secondary:
                    index[key] = entity
            self._entries, self._index = entries, index
            self._warm = True
            logger.info("Loaded %d %s entries", len(entries), self.kind)
        except Exception as e:
            logger.error("Failed to load %s cache: %s", self.kind, e)
            raise
        finally:
            self._inflight = None

    def get(self, key: str) -> T | None:
        return self._index.get(key)


class MarketCache(EntityCache[Market]):
    """Markets keyed by unified symbol, also indexed by provider pair id."""

    kind = "market"

    def _keys(self, entity: Market) -> tuple[str, tuple[str, ...]]:
        return entity.symbol, (entity.id,)

    def market(self, symbol: str) -> Market:
        """Strict lookup by unified symbol or provider pair id."""
        market = self.get(symbol)
        if market is None:
            raise MarketNotFound(f"Unknown market: {symbol}")
        return market

    def resolve(self, symbol_or_id: str, separator: str = "_") -> Market:
        """Look up a market, synthesizing a minimal one for uncached pair strings."""
        market = self.get(symbol_or_id)
        if market is not None:
            return market
        return synthesize_market(symbol_or_id, separator)


class CurrencyCache(EntityCache[Currency]):
    """Currencies keyed by unified code, also indexed by provider id."""

    kind = "currency"

    def _keys(self, entity: Currency) -> tuple[str, tuple[str, ...]]:
        return entity.code, (entity.id,)

    def currency(self, code: str) -> Currency:
        currency = self.get(code) or self.get(code.upper())
        if currency is None:
            raise CurrencyNotFound(f"Unknown currency: {code}")
        return currency


def synthesize_market(identifier: str, separator: str = "_", info: dict[str, Any] | None = None) -> Market:
    """Build a bare market from a pair string such as ``del_usdt``.

    Raises:
        MarketNotFound: The identifier contains no separator
    """
    base, quote = split_pair(identifier, separator)
    return Market(
        id=identifier,
        symbol=market_symbol(base, quote),
        base=base,
        quote=quote,
        base_id=base.lower(),
        quote_id=quote.lower(),
        info=info or {},
    )
