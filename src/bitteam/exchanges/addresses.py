"""Deposit address format checks per chain."""

from __future__ import annotations

import re

from ..errors import InvalidAddress

_EVM = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BITCOIN = re.compile(r"^(bc1[02-9ac-hj-np-z]{11,71}|[13][1-9A-HJ-NP-Za-km-z]{25,34})$")
_TRON = re.compile(r"^T[1-9A-HJ-NP-Za-km-z]{33}$")

CHAIN_PATTERNS: dict[str, re.Pattern[str]] = {
    "bitcoin": _BITCOIN,
    "btc": _BITCOIN,
    "ethereum": _EVM,
    "eth": _EVM,
    "erc20": _EVM,
    "bsc": _EVM,
    "bep20": _EVM,
    "binance smart chain": _EVM,
    "polygon": _EVM,
    "tron": _TRON,
    "trx": _TRON,
    "trc20": _TRON,
}


def check_address(address: str | None, network: str | None = None) -> str:
    """Validate ``address`` for ``network`` and return it unchanged.

    Chains without a known pattern only need a non-empty address without
    whitespace.

    Raises:
        InvalidAddress: The address is empty or does not match its chain
    """
    if not address or any(ch.isspace() for ch in address):
        raise InvalidAddress(f"Invalid address: {address!r}")
    pattern = CHAIN_PATTERNS.get((network or "").strip().lower())
    if pattern is not None and not pattern.match(address):
        raise InvalidAddress(f"Address {address!r} is not a valid {network} address")
    return address
