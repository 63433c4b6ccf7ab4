from typing import Any, Optional

from steam_gateway.core.config import settings
from steam_gateway.core.telemetry import get_logger
from steam_gateway.providers.store.factory import (
    close_store_provider,
    get_store_provider,
)
from .client import SteamApiClient

logger = get_logger(__name__)

# Global instance
_client: Optional[SteamApiClient] = None


def get_client() -> SteamApiClient:
    """
    Get the process-wide client built from settings.
    Lazily initializes it on first access.
    """
    global _client

    if _client is None:
        config = settings.to_client_config()
        _client = SteamApiClient(config, get_store_provider())
        logger.info(f"Initialized Steam API client with {len(config.api_keys)} keys")

    return _client


async def close_client() -> None:
    """Close and drop the process-wide client and the shared store it used."""
    global _client

    if _client is not None:
        await _client.aclose()
        _client = None
    await close_store_provider()


def reset_client() -> None:
    """Drop the process-wide client without closing it. Useful for testing."""
    global _client
    _client = None


async def get(path: str, **options) -> Any:
    return await get_client().get(path, **options)


async def post(path: str, **options) -> Any:
    return await get_client().post(path, **options)
