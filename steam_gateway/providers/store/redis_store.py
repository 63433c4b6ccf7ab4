import asyncio
import re
from typing import List, Optional
import redis.asyncio as redis
from redis.exceptions import RedisError

from steam_gateway.core.config import settings
from steam_gateway.core.exceptions import StorageError
from .interface import KeyValueStoreInterface
from steam_gateway.core.telemetry import get_logger, trace_span

logger = get_logger(__name__)

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _escape_glob(value: str) -> str:
    """Escape characters that SCAN MATCH treats as wildcards."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisStore(KeyValueStoreInterface):
    """Redis-backed shared store. Safe to share between processes."""

    def __init__(self):
        self.host = settings.redis_host
        self.port = settings.redis_port
        self.password = settings.redis_password
        self.db = settings.redis_db
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._connect_lock = asyncio.Lock()

    @trace_span
    async def connect(self) -> bool:
        """Connect to Redis."""
        # A previous failed attempt may have left a client with an open pool
        await self._close_client()
        try:
            self._client = redis.Redis(
                host=self.host,
                port=self.port,
                password=self.password,
                db=self.db,
                decode_responses=True,
            )
            # Test connection
            await self._client.ping()
            self._connected = True
            logger.info("Redis store provider connected")
            return True
        except RedisError as e:
            logger.error(f"Failed to connect to Redis store: {e}")
            self._connected = False
            return False

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._close_client()
            logger.info("Redis store provider disconnected")

    async def _close_client(self) -> None:
        client, self._client = self._client, None
        self._connected = False
        if client is None:
            return
        try:
            await client.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis client: {e}")

    async def _ensure_connected(self) -> redis.Redis:
        """Ensure Redis connection is active."""
        if self._connected:
            return self._client
        async with self._connect_lock:
            # Another caller may have connected while we waited
            if not self._connected and not await self.connect():
                raise StorageError(
                    f"Redis store unavailable at {self.host}:{self.port}/{self.db}"
                )
            return self._client

    async def increment(self, key: str) -> int:
        client = await self._ensure_connected()
        try:
            return int(await client.incr(key))
        except RedisError as e:
            raise StorageError(f"Failed to increment counter: {e}") from e

    async def exists(self, key: str) -> bool:
        client = await self._ensure_connected()
        try:
            return bool(await client.exists(key))
        except RedisError as e:
            raise StorageError(f"Failed to check key: {e}") from e

    async def set_with_ttl(self, key: str, value: str, ttl: int) -> None:
        client = await self._ensure_connected()
        try:
            await client.set(key, value, ex=ttl)
        except RedisError as e:
            raise StorageError(f"Failed to set key: {e}") from e

    async def expire(self, key: str, ttl: int) -> bool:
        client = await self._ensure_connected()
        try:
            return bool(await client.expire(key, ttl))
        except RedisError as e:
            raise StorageError(f"Failed to set expiry: {e}") from e

    @trace_span
    async def list_keys_by_prefix(self, prefix: str) -> List[str]:
        # SCAN instead of KEYS so large databases are not blocked
        client = await self._ensure_connected()
        try:
            return [
                key async for key in client.scan_iter(match=f"{_escape_glob(prefix)}*")
            ]
        except RedisError as e:
            raise StorageError(f"Failed to list keys for {prefix}: {e}") from e

    async def multi_get(self, keys: List[str]) -> List[Optional[str]]:
        if not keys:
            return []

        client = await self._ensure_connected()
        try:
            return await client.mget(keys)
        except RedisError as e:
            raise StorageError(f"Failed to read {len(keys)} keys: {e}") from e
