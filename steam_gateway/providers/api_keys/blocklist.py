from typing import Iterable, List

from steam_gateway.core.constants import BLOCKED_KEY_PREFIX, BLOCK_TTL_SECONDS
from steam_gateway.core.exceptions import StorageError
from steam_gateway.core.telemetry import get_logger, mask_key
from steam_gateway.providers.store.interface import KeyValueStoreInterface

logger = get_logger(__name__)


class BlocklistManager:
    """Temporary bans for keys that were just rate limited."""

    def __init__(self, store: KeyValueStoreInterface, ttl: int = BLOCK_TTL_SECONDS):
        self.store = store
        self.ttl = ttl

    @staticmethod
    def block_key(api_key: str) -> str:
        return f"{BLOCKED_KEY_PREFIX}{api_key}"

    async def quarantine(self, api_key: str) -> None:
        """
        Block api_key for the cool-down window, replacing any existing block.

        Raises:
            StorageError: If the block could not be written
        """
        await self.store.set_with_ttl(self.block_key(api_key), "1", self.ttl)
        logger.warning(f"Key {mask_key(api_key)} quarantined for {self.ttl}s")

    async def is_blocked(self, api_key: str) -> bool:
        try:
            return await self.store.exists(self.block_key(api_key))
        except StorageError as e:
            logger.warning(
                f"Failed to read block state of {mask_key(api_key)}, "
                f"treating it as available: {e}"
            )
            return False

    async def filter_available(self, pool: Iterable[str]) -> List[str]:
        """Keys of pool that are not blocked, in pool order."""
        return [key for key in pool if not await self.is_blocked(key)]
