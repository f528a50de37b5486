"""Field access, envelope and symbol helpers shared by the parsers."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from ..errors import MalformedResponse, MarketNotFound

logger = logging.getLogger(__name__)

# Integer timestamps below this are treated as seconds rather than milliseconds.
_SECONDS_CUTOFF = 100_000_000_000
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _lookup(obj: Any, key: str | tuple[str, ...]) -> Any:
    """Return the first non-None value among the candidate keys."""
    if not isinstance(obj, Mapping):
        return None
    keys = (key,) if isinstance(key, str) else key
    for k in keys:
        value = obj.get(k)
        if value is not None:
            return value
    return None


def safe_value(obj: Any, key: str | tuple[str, ...], default: Any = None) -> Any:
    value = _lookup(obj, key)
    return default if value is None else value


def safe_string(obj: Any, key: str | tuple[str, ...], default: str | None = None) -> str | None:
    value = _lookup(obj, key)
    if value is None or isinstance(value, (dict, list)):
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def safe_decimal(obj: Any, key: str | tuple[str, ...], default: Decimal | None = None) -> Decimal | None:
    """Read a decimal field; unparseable values and NaN yield ``default``.

    Values go through ``str`` first so floats keep their shortest repr.
    """
    value = _lookup(obj, key)
    return to_decimal(value, default)


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    if value is None or isinstance(value, bool) or value == "":
        return default
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result


def number_to_string(value: Decimal) -> str:
    """Render a decimal in plain notation (``1E-7`` -> ``0.0000001``)."""
    return format(value, "f")


def safe_integer(obj: Any, key: str | tuple[str, ...], default: int | None = None) -> int | None:
    number = safe_decimal(obj, key)
    if number is None:
        return default
    return int(number)


def safe_bool(obj: Any, key: str | tuple[str, ...], default: bool | None = None) -> bool | None:
    value = _lookup(obj, key)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return default


def parse_timestamp(value: Any) -> int | None:
    """Convert seconds, milliseconds or ISO-8601 strings to epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    number = to_decimal(value)
    if number is None and isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable timestamp %r", value)
            return None
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return (moment - _EPOCH) // timedelta(milliseconds=1)
    if number is None:
        return None
    if abs(number) < _SECONDS_CUTOFF:
        number *= 1000
    return int(number)


def unwrap_result(response: Any, field: str | None = None) -> Any:
    """Strip the ``{"result": ...}`` envelope.

    Args:
        response: Decoded JSON body
        field: Name of the payload inside ``result``

    Returns:
        ``response["result"][field]`` or ``response["result"]``

    Raises:
        MalformedResponse: ``result`` or the named field is absent
    """
    if not isinstance(response, Mapping) or response.get("result") is None:
        raise MalformedResponse(f"Response has no 'result' envelope: {response!r:.200}")
    result = response["result"]
    if field is None:
        return result
    if not isinstance(result, Mapping) or field not in result:
        raise MalformedResponse(f"Response result has no '{field}' field")
    return result[field]


def currency_code(currency_id: str) -> str:
    """Provider currency ids are lowercase tickers (``btc``)."""
    return currency_id.strip().upper()


def market_symbol(base: str, quote: str) -> str:
    return f"{base}/{quote}"


def split_pair(value: str, separator: str = "_") -> tuple[str, str]:
    """Split a provider pair string into upper-cased base and quote.

    - del_usdt -> (DEL, USDT)
    - ETH USDT (separator=" ") -> (ETH, USDT)

    Raises:
        MarketNotFound: The separator does not occur in ``value``
    """
    if not value or separator not in value.strip():
        raise MarketNotFound(f"Cannot derive base/quote from {value!r}")
    base, quote = value.strip().split(separator, 1)
    base, quote = base.strip(), quote.strip()
    if not base or not quote:
        raise MarketNotFound(f"Cannot derive base/quote from {value!r}")
    return currency_code(base), currency_code(quote)
