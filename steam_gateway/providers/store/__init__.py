from .interface import KeyValueStoreInterface
from .memory_store import MemoryStore
from .redis_store import RedisStore
from .factory import close_store_provider, get_store_provider, reset_store_provider

__all__ = [
    "KeyValueStoreInterface",
    "MemoryStore",
    "RedisStore",
    "close_store_provider",
    "get_store_provider",
    "reset_store_provider",
]
