"""Exception hierarchy raised by the connector."""

from __future__ import annotations


class ExchangeError(Exception):
    """Base class for every error raised by the connector."""


class MalformedResponse(ExchangeError):
    """Response envelope or a structurally required field is missing."""


class MarketNotFound(ExchangeError):
    """Symbol or pair id cannot be resolved to a market."""


class CurrencyNotFound(ExchangeError):
    """Currency code cannot be resolved to a provider currency."""


class AuthenticationRequired(ExchangeError):
    """Private endpoint called without API credentials."""


class InvalidSignature(ExchangeError):
    """Provider rejected the request credentials or signature."""


class InvalidAddress(ExchangeError):
    """Address does not match the format of its chain."""


class TransportError(ExchangeError):
    """Network failure, timeout or unexpected HTTP status."""


class RateLimited(TransportError):
    """Provider answered with HTTP 429."""
