"""Request signing for private endpoints."""

from __future__ import annotations

import hashlib
import hmac
import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import urlencode

from ..errors import AuthenticationRequired

API_KEY_HEADER = "X-BT-APIKEY"
NONCE_HEADER = "X-BT-NONCE"
SIGNATURE_HEADER = "X-BT-SIGNATURE"

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class NonceSource:
    """Millisecond nonces that strictly increase, even within one tick."""

    def __init__(self, clock: Callable[[], int] | None = None):
        self._clock = clock or _now_ms
        self._last = 0

    @property
    def last(self) -> int:
        return self._last

    def next(self) -> int:
        nonce = max(int(self._clock()), self._last + 1)
        self._last = nonce
        return nonce


def generate_signature(secret: str, message: str, method: str = "hmac-sha256") -> str:
    """Generate a hex HMAC signature.

    Args:
        secret: Secret key
        message: Message to sign
        method: Signature method (hmac-sha256 or hmac-sha512)

    Returns:
        Hex-encoded signature
    """
    if method == "hmac-sha256":
        digest = hashlib.sha256
    elif method == "hmac-sha512":
        digest = hashlib.sha512
    else:
        raise ValueError(f"Unsupported signature method: {method}")
    return hmac.new(secret.encode(), message.encode(), digest).hexdigest()


def canonical_json(params: dict[str, Any]) -> str:
    """Serialize params with sorted keys and no whitespace.

    The transport sends this exact string as the request body.
    """
    if not params:
        return ""
    return json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)


def implode_path(template: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Fill ``{name}`` placeholders and return the params left over."""
    remaining = dict(params)

    def _fill(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in remaining:
            raise ValueError(f"Missing path parameter '{name}' for {template}")
        return str(remaining.pop(name))

    return _PLACEHOLDER.sub(_fill, template), remaining


def build_query(params: dict[str, Any]) -> str:
    """Encode params as a query string, dropping None values."""
    return urlencode(sorted((k, v) for k, v in params.items() if v is not None))


@dataclass(slots=True)
class SignedRequest:
    path: str
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)


class RequestSigner:
    """Builds authentication headers for one API credential.

    The signer owns its NonceSource; every ``sign`` call consumes a nonce.
    """

    def __init__(
        self,
        api_key: str | None,
        api_secret: str | None,
        *,
        nonce_source: NonceSource | None = None,
        method: str = "hmac-sha256",
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.nonce_source = nonce_source or NonceSource()
        self.method = method

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def sign(self, path: str, body: str = "") -> dict[str, str]:
        """Sign ``nonce + "/" + path + body``.

        Args:
            path: Request path without leading slash, including any query string
            body: Serialized request body, empty for GET requests

        Returns:
            Headers carrying the API key, nonce and signature

        Raises:
            AuthenticationRequired: No API key or secret configured
        """
        if not self.has_credentials:
            raise AuthenticationRequired("API key and secret are required for private endpoints")
        nonce = str(self.nonce_source.next())
        message = nonce + "/" + path.lstrip("/") + body
        signature = generate_signature(self.api_secret, message, self.method)
        return {
            API_KEY_HEADER: self.api_key,
            NONCE_HEADER: nonce,
            SIGNATURE_HEADER: signature,
        }

    def sign_request(self, method: str, path: str, params: dict[str, Any] | None = None) -> SignedRequest:
        """Sign a private call; GET params go to the query string, others to a JSON body."""
        params = {k: v for k, v in (params or {}).items() if v is not None}
        if method.upper() == "GET":
            query = build_query(params)
            signed_path = f"{path}?{query}" if query else path
            return SignedRequest(signed_path, "", self.sign(signed_path))
        body = canonical_json(params)
        headers = self.sign(path, body)
        if body:
            headers["Content-Type"] = "application/json"
        return SignedRequest(path, body, headers)
