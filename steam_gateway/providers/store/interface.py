from abc import ABC, abstractmethod
from typing import List, Optional


class KeyValueStoreInterface(ABC):
    """Interface for the shared TTL-capable key-value store.

    Implementations raise StorageError when the backend fails; callers decide
    whether a failure is fatal.
    """

    @abstractmethod
    async def increment(self, key: str) -> int:
        """
        Atomically increment an integer counter, creating it at 1.

        Args:
            key: The counter key

        Returns:
            The value after the increment
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """
        Check if a key exists (and has not expired).

        Args:
            key: The key to check

        Returns:
            True if key exists, False otherwise
        """
        pass

    @abstractmethod
    async def set_with_ttl(self, key: str, value: str, ttl: int) -> None:
        """
        Set a value with an expiry, replacing any existing entry.

        Args:
            key: The key
            value: The value to store
            ttl: Time to live in seconds
        """
        pass

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """
        Set the expiry of an existing key.

        Args:
            key: The key
            ttl: Time to live in seconds

        Returns:
            True if the expiry was set, False if the key does not exist
        """
        pass

    @abstractmethod
    async def list_keys_by_prefix(self, prefix: str) -> List[str]:
        """
        Get all live keys starting with a prefix.

        Args:
            prefix: The prefix to match (e.g., "steam-plugin:useKey:2024-01-01:")

        Returns:
            List of matching keys
        """
        pass

    @abstractmethod
    async def multi_get(self, keys: List[str]) -> List[Optional[str]]:
        """
        Get several values at once.

        Args:
            keys: The keys to read

        Returns:
            Values in the same order as keys, None for missing keys
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release any connection held by the store."""
        pass
