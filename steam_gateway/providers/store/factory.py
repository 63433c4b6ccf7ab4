from typing import Optional

from steam_gateway.core.config import settings
from steam_gateway.core.constants import StoreProvider
from steam_gateway.core.telemetry import get_logger

from .interface import KeyValueStoreInterface
from .memory_store import MemoryStore
from .redis_store import RedisStore

logger = get_logger(__name__)

# Global instance
_store_provider: Optional[KeyValueStoreInterface] = None


def get_store_provider() -> KeyValueStoreInterface:
    """
    Get the configured shared store.

    Returns:
        KeyValueStoreInterface: The store provider instance
    """
    global _store_provider

    if _store_provider is None:
        match settings.store_provider:
            case StoreProvider.MEMORY:
                _store_provider = MemoryStore()
            case _:
                _store_provider = RedisStore()
        logger.info(f"Initialized {settings.store_provider.value} store provider")

    return _store_provider


def reset_store_provider() -> None:
    """Drop the cached store. Useful for testing."""
    global _store_provider
    _store_provider = None


async def close_store_provider() -> None:
    """Disconnect and drop the cached store."""
    global _store_provider

    if _store_provider is not None:
        await _store_provider.disconnect()
        _store_provider = None
