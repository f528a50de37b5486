"""bitteam: unified connector for the bit.team exchange."""

from .settings import Settings
from .exchanges import BitteamClient, ExchangeClient, create_exchange_client
from . import errors

__all__ = [
    "Settings",
    "BitteamClient",
    "ExchangeClient",
    "create_exchange_client",
    "errors",
]
