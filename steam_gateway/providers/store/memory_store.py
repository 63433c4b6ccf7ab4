import time
from typing import Callable, Dict, List, Optional
from dataclasses import dataclass

from .interface import KeyValueStoreInterface
from steam_gateway.core.telemetry import get_logger

logger = get_logger(__name__)


@dataclass
class StoreEntry:
    """Represents a stored value with expiration."""

    value: str
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        """Check if this entry has expired."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class MemoryStore(KeyValueStoreInterface):
    """In-memory store for single-process deployments and tests."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._data: Dict[str, StoreEntry] = {}
        self._clock = clock
        logger.info("Memory store provider initialized")

    def _live_entry(self, key: str) -> Optional[StoreEntry]:
        entry = self._data.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._data[key]
            return None

        return entry

    async def _cleanup_expired(self) -> None:
        """Remove expired entries from the store."""
        now = self._clock()
        expired_keys = [
            key for key, entry in self._data.items() if entry.is_expired(now)
        ]

        for key in expired_keys:
            del self._data[key]

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired store entries")

    async def increment(self, key: str) -> int:
        entry = self._live_entry(key)
        if entry is None:
            self._data[key] = StoreEntry(value="1")
            return 1

        value = int(entry.value) + 1
        entry.value = str(value)
        return value

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def set_with_ttl(self, key: str, value: str, ttl: int) -> None:
        self._data[key] = StoreEntry(value=value, expires_at=self._clock() + ttl)
        logger.debug(f"Stored entry with TTL {ttl}")

    async def expire(self, key: str, ttl: int) -> bool:
        entry = self._live_entry(key)
        if entry is None:
            return False

        entry.expires_at = self._clock() + ttl
        return True

    async def list_keys_by_prefix(self, prefix: str) -> List[str]:
        await self._cleanup_expired()
        return [key for key in self._data if key.startswith(prefix)]

    async def multi_get(self, keys: List[str]) -> List[Optional[str]]:
        values = []
        for key in keys:
            entry = self._live_entry(key)
            values.append(entry.value if entry else None)
        return values

    async def disconnect(self) -> None:
        # Nothing to release; entries stay readable
        pass

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left before key expires, None if it has no expiry or is gone."""
        entry = self._live_entry(key)
        if entry is None or entry.expires_at is None:
            return None
        return entry.expires_at - self._clock()
