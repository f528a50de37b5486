"""Typer-based CLI for querying the exchange."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from .errors import ExchangeError

if TYPE_CHECKING:
    from .exchanges.base import BaseExchangeClient

T = TypeVar("T")


# Import with local function to avoid circular imports
def _load_settings(config_path: Optional[Path] = None):
    from .config import load_settings
    return load_settings(config_path)

def _create_client(settings):
    from .exchanges.factory import create_client_from_settings
    return create_client_from_settings(settings)

def _configure_logging(settings):
    from .logging import configure_logging
    return configure_logging(settings)

app = typer.Typer(help="bit.team exchange connector CLI")
console = Console()
logger = logging.getLogger(__name__)


def run_cli(argv: list[str] | None = None) -> None:
    """Run CLI with optional argv parameter."""
    app(argv)


def _fmt(value: Any) -> str:
    return "-" if value is None else str(value)


def _run(config: Optional[Path], action: Callable[["BaseExchangeClient"], Awaitable[T]]) -> T:
    """Build a client from settings, run one coroutine against it and close it."""
    try:
        settings = _load_settings(config)
        _configure_logging(settings)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    client = _create_client(settings)

    async def _main() -> T:
        try:
            return await action(client)
        finally:
            await client.close()

    try:
        return asyncio.run(_main())
    except (ExchangeError, ValueError) as e:
        logger.error("Command failed: %s", e)
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def currencies(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List currencies with withdrawal fees and limits."""
    result = _run(config, lambda client: client.fetch_currencies())

    table = Table(title="Currencies")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Active")
    table.add_column("Precision", justify="right")
    table.add_column("Withdraw Fee", justify="right")
    table.add_column("Withdraw Min", justify="right")
    table.add_column("Withdraw Max", justify="right")

    for code, currency in sorted(result.items()):
        limits = currency.limits.withdraw if currency.limits else None
        table.add_row(
            code,
            _fmt(currency.name),
            _fmt(currency.active),
            _fmt(currency.precision),
            _fmt(currency.fee),
            _fmt(limits.min if limits else None),
            _fmt(limits.max if limits else None),
        )
    console.print(table)


@app.command()
def markets(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """List markets."""
    result = _run(config, lambda client: client.load_markets())

    table = Table(title="Markets")
    table.add_column("Symbol", style="cyan")
    table.add_column("Id")
    table.add_column("Active")
    table.add_column("Maker", justify="right")
    table.add_column("Taker", justify="right")
    table.add_column("Price Min", justify="right")
    table.add_column("Price Max", justify="right")

    for symbol, market in sorted(result.items()):
        table.add_row(
            symbol,
            market.id,
            _fmt(market.active),
            _fmt(market.maker),
            _fmt(market.taker),
            _fmt(market.limits.price.min),
            _fmt(market.limits.price.max),
        )
    console.print(table)


@app.command()
def ticker(
    symbol: str = typer.Argument(..., help="Unified symbol, e.g. ETH/USDT"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show a ticker snapshot."""
    result = _run(config, lambda client: client.fetch_ticker(symbol))

    table = Table(title=f"Ticker {result.symbol}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    for name in ("last", "bid", "ask", "high", "low", "percentage", "base_volume", "quote_volume"):
        table.add_row(name, _fmt(getattr(result, name)))
    console.print(table)


@app.command()
def orderbook(
    symbol: str = typer.Argument(..., help="Unified symbol, e.g. ETH/USDT"),
    limit: int = typer.Option(10, help="Levels per side"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show the order book."""
    result = _run(config, lambda client: client.fetch_order_book(symbol, limit))

    table = Table(title=f"Order Book {result.symbol}")
    table.add_column("Bid Amount", justify="right")
    table.add_column("Bid", style="green", justify="right")
    table.add_column("Ask", style="red", justify="right")
    table.add_column("Ask Amount", justify="right")
    for i in range(max(len(result.bids), len(result.asks))):
        bid = result.bids[i] if i < len(result.bids) else None
        ask = result.asks[i] if i < len(result.asks) else None
        table.add_row(
            _fmt(bid.amount if bid else None),
            _fmt(bid.price if bid else None),
            _fmt(ask.price if ask else None),
            _fmt(ask.amount if ask else None),
        )
    console.print(table)


@app.command()
def trades(
    symbol: str = typer.Argument(..., help="Unified symbol, e.g. ETH/USDT"),
    limit: int = typer.Option(20, help="Maximum number of trades"),
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show recent public trades."""
    result = _run(config, lambda client: client.fetch_trades(symbol, limit=limit))

    table = Table(title=f"Trades {symbol}")
    table.add_column("Id")
    table.add_column("Time", justify="right")
    table.add_column("Side")
    table.add_column("Price", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Cost", justify="right")
    for trade in result:
        table.add_row(
            _fmt(trade.id),
            _fmt(trade.timestamp),
            _fmt(trade.side),
            _fmt(trade.price),
            _fmt(trade.amount),
            _fmt(trade.cost),
        )
    console.print(table)


@app.command()
def balance(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Show account balances."""
    result = _run(config, lambda client: client.fetch_balance())

    table = Table(title="Balances")
    table.add_column("Asset", style="cyan")
    table.add_column("Free", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Total", justify="right")
    for code, entry in sorted(result.assets.items()):
        table.add_row(code, str(entry.free), str(entry.used), str(entry.total))
    console.print(table)


@app.command()
def config_show(
    config: Optional[Path] = typer.Option(None, help="Path to config file"),
) -> None:
    """Print the effective configuration with secrets redacted."""
    try:
        settings = _load_settings(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print_json(json.dumps(settings.redacted()))


def main() -> None:
    run_cli()
