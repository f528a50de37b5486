"""Base client class with the HTTP transport and request signing."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import aiohttp

from ..errors import (
    AuthenticationRequired,
    ExchangeError,
    InvalidSignature,
    MalformedResponse,
    RateLimited,
    TransportError,
)
from .protocol import Balances, Market
from .signer import NonceSource, RequestSigner, build_query, implode_path

logger = logging.getLogger(__name__)


class ProxyConfig:
    """HTTP proxy configuration."""

    def __init__(self, url: str | None = None, username: str | None = None, password: str | None = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            protocol = self.url.split("://")[0] if "://" in self.url else "http"
            rest = self.url.split("://")[1] if "://" in self.url else self.url
            return f"{protocol}://{self.username}:{self.password}@{rest}"
        return self.url


class BaseExchangeClient(ABC):
    """Base class for exchange connectors."""

    user_agent = "bitteam-connector/1.0"

    def __init__(
        self,
        name: str,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        proxy: ProxyConfig | None = None,
        timeout: float = 10.0,
        nonce_source: NonceSource | None = None,
        **options: Any,
    ):
        """Initialize exchange client.

        Args:
            name: Exchange name
            api_key: API key, required only for private endpoints
            api_secret: API secret, required only for private endpoints
            proxy: Proxy configuration
            timeout: Total request timeout in seconds
            nonce_source: Nonce counter shared by every signed request
            **options: Additional exchange-specific options
        """
        self.name = name
        self.api_key = api_key
        self.api_secret = api_secret
        self.proxy = proxy or ProxyConfig()
        self.timeout = timeout
        self.options = options
        self.signer = RequestSigner(api_key, api_secret, nonce_source=nonce_source)
        self.session: aiohttp.ClientSession | None = None

    @abstractmethod
    def get_base_url(self) -> str:
        """Get base API URL."""
        ...

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self.session

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            TransportError: Network failure, timeout or 5xx status
            RateLimited: HTTP 429
            InvalidSignature: HTTP 401/403 on a signed request
            AuthenticationRequired: HTTP 401/403 on an unsigned request
            ExchangeError: Provider reported ``ok: false``
            MalformedResponse: Body is not JSON
        """
        session = await self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                data=body or None,
                headers=headers,
                proxy=self.proxy.proxy_url,
            ) as resp:
                status = resp.status
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        message = data.get("message") if isinstance(data, dict) else None
        if status == 429:
            raise RateLimited(f"{self.name} rate limit exceeded: {message or status}")
        if status in (401, 403):
            signed = bool(headers) and any(h.lower().endswith("signature") for h in headers)
            error = InvalidSignature if signed else AuthenticationRequired
            raise error(f"{self.name} rejected credentials: {message or status}")
        if status >= 500:
            raise TransportError(f"{method} {url} returned {status}")
        if status >= 400:
            raise ExchangeError(f"{self.name} error {status}: {message or 'no message'}")
        if data is None:
            raise MalformedResponse(f"{method} {url} returned a non-JSON body")
        if isinstance(data, dict) and data.get("ok") is False:
            raise ExchangeError(f"{self.name} error: {message or data}")
        return data

    async def public_request(
        self,
        method: str,
        template: str,
        params: dict[str, Any] | None = None,
        *,
        base_url: str | None = None,
    ) -> Any:
        """Call an unauthenticated endpoint; leftover params become the query string."""
        path, remaining = implode_path(template, params or {})
        query = build_query(remaining)
        url = f"{base_url or self.get_base_url()}/{path}"
        if query:
            url = f"{url}?{query}"
        return await self.request(method, url)

    async def private_request(
        self,
        method: str,
        template: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Call an authenticated endpoint with signed headers."""
        path, remaining = implode_path(template, params or {})
        signed = self.signer.sign_request(method, path, remaining)
        logger.debug("Signed %s /%s", method, signed.path)
        url = f"{self.get_base_url()}/{signed.path}"
        return await self.request(method, url, signed.headers, signed.body)

    @abstractmethod
    async def load_markets(self, reload: bool = False) -> dict[str, Market]:
        """Populate the market cache."""
        ...

    @abstractmethod
    async def fetch_balance(self) -> Balances:
        """Fetch account balances."""
        ...

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "BaseExchangeClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
