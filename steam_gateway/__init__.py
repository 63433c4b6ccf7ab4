"""Key-rotating, rate-limit aware async client for the Steam Web API."""

from steam_gateway.core.exceptions import (
    RateLimitedError,
    StorageError,
    TransportError,
)
from steam_gateway.request import SteamApiClient, close_client, get, get_client, post

__all__ = [
    "RateLimitedError",
    "StorageError",
    "SteamApiClient",
    "TransportError",
    "close_client",
    "get",
    "get_client",
    "post",
]
