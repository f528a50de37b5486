"""Factory for creating exchange client instances."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Type

from .base import BaseExchangeClient, ProxyConfig
from .bitteam import BitteamClient

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)


EXCHANGE_CLIENTS: dict[str, Type[BaseExchangeClient]] = {
    "bitteam": BitteamClient,
}


def create_exchange_client(
    exchange: str,
    api_key: str | None = None,
    api_secret: str | None = None,
    *,
    proxy: dict[str, Any] | None = None,
    **options: Any,
) -> BaseExchangeClient:
    """Create an exchange client instance.

    Args:
        exchange: Exchange name
        api_key: API key (optional for public endpoints)
        api_secret: API secret (optional for public endpoints)
        proxy: Proxy configuration (url, username, password)
        **options: Additional exchange-specific options

    Returns:
        Configured exchange client

    Raises:
        ValueError: If exchange is not supported
        ValueError: If only one of api_key/api_secret is given
    """
    exchange_lower = exchange.lower()

    if exchange_lower not in EXCHANGE_CLIENTS:
        supported = ", ".join(EXCHANGE_CLIENTS.keys())
        raise ValueError(
            f"Unsupported exchange: {exchange}. Supported exchanges: {supported}"
        )

    if bool(api_key) != bool(api_secret):
        raise ValueError(f"{exchange} requires both api_key and api_secret")

    client_class = EXCHANGE_CLIENTS[exchange_lower]

    proxy_config = None
    if proxy:
        proxy_config = ProxyConfig(
            url=proxy.get("url"),
            username=proxy.get("username"),
            password=proxy.get("password"),
        )

    return client_class(api_key, api_secret, proxy=proxy_config, **options)


def create_client_from_settings(settings: "Settings") -> BaseExchangeClient:
    """Create the configured exchange client."""
    exchange = settings.exchange
    creds = exchange.credentials
    if creds is None:
        logger.warning("No credentials configured for %s, private endpoints disabled", exchange.name)

    proxy = None
    if settings.proxy.enabled and settings.proxy.url:
        proxy = {
            "url": settings.proxy.url,
            "username": settings.proxy.username,
            "password": settings.proxy.password.get_secret_value() if settings.proxy.password else None,
        }

    client = create_exchange_client(
        exchange.name,
        creds.api_key.get_secret_value() if creds else None,
        creds.api_secret.get_secret_value() if creds else None,
        proxy=proxy,
        base_url=exchange.base_url,
        history_url=exchange.history_url,
        timeout=exchange.timeout,
        **exchange.options,
    )
    logger.info("Initialized exchange client for %s", exchange.name)
    return client
