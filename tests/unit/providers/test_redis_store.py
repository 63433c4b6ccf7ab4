import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

from steam_gateway.core.constants import StoreProvider
from steam_gateway.core.exceptions import StorageError
from steam_gateway.providers.store import factory as store_factory
from steam_gateway.providers.store.memory_store import MemoryStore
from steam_gateway.providers.store.redis_store import RedisStore

REDIS_CLASS = "steam_gateway.providers.store.redis_store.redis.Redis"


async def _aiter(items):
    for item in items:
        yield item


class TestRedisStore:
    """Unit tests for the Redis-backed store."""

    @pytest.fixture
    def redis_store(self):
        with patch("steam_gateway.providers.store.redis_store.settings") as mock_settings:
            mock_settings.redis_host = "localhost"
            mock_settings.redis_port = 6379
            mock_settings.redis_password = None
            mock_settings.redis_db = 0
            return RedisStore()

    @pytest.fixture
    def mock_redis_client(self, redis_store):
        client = AsyncMock(spec=redis.Redis)
        redis_store._client = client
        redis_store._connected = True
        return client

    @pytest.mark.asyncio
    async def test_increment(self, redis_store, mock_redis_client):
        """Test increment maps to INCR."""
        mock_redis_client.incr = AsyncMock(return_value=3)

        assert await redis_store.increment("counter") == 3
        mock_redis_client.incr.assert_called_once_with("counter")

    @pytest.mark.asyncio
    async def test_exists(self, redis_store, mock_redis_client):
        """Test exists reports a present key."""
        mock_redis_client.exists = AsyncMock(return_value=1)

        assert await redis_store.exists("steam-plugin:429key:abc") is True
        mock_redis_client.exists.assert_called_once_with("steam-plugin:429key:abc")

    @pytest.mark.asyncio
    async def test_exists_false(self, redis_store, mock_redis_client):
        """Test exists reports a missing key."""
        mock_redis_client.exists = AsyncMock(return_value=0)

        assert await redis_store.exists("steam-plugin:429key:abc") is False

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, redis_store, mock_redis_client):
        """Test set_with_ttl writes the value with an expiry."""
        mock_redis_client.set = AsyncMock(return_value=True)

        await redis_store.set_with_ttl("steam-plugin:429key:abc", "1", 600)

        mock_redis_client.set.assert_called_once_with(
            "steam-plugin:429key:abc", "1", ex=600
        )

    @pytest.mark.asyncio
    async def test_expire(self, redis_store, mock_redis_client):
        """Test expire maps to EXPIRE."""
        mock_redis_client.expire = AsyncMock(return_value=True)

        assert await redis_store.expire("counter", 86400) is True
        mock_redis_client.expire.assert_called_once_with("counter", 86400)

    @pytest.mark.asyncio
    async def test_list_keys_by_prefix_uses_scan(self, redis_store, mock_redis_client):
        """Test prefix listing iterates SCAN with a trailing wildcard."""
        mock_redis_client.scan_iter = MagicMock(
            return_value=_aiter(["p:2024-03-15:a", "p:2024-03-15:b"])
        )

        keys = await redis_store.list_keys_by_prefix("p:2024-03-15:")

        assert keys == ["p:2024-03-15:a", "p:2024-03-15:b"]
        mock_redis_client.scan_iter.assert_called_once_with(match="p:2024-03-15:*")

    @pytest.mark.asyncio
    async def test_list_keys_by_prefix_escapes_wildcards(
        self, redis_store, mock_redis_client
    ):
        """Test glob characters in the prefix are matched literally."""
        mock_redis_client.scan_iter = MagicMock(return_value=_aiter([]))

        await redis_store.list_keys_by_prefix("p:/api?[x]:")

        mock_redis_client.scan_iter.assert_called_once_with(match=r"p:/api\?\[x\]:*")

    @pytest.mark.asyncio
    async def test_multi_get(self, redis_store, mock_redis_client):
        """Test multi_get maps to MGET."""
        mock_redis_client.mget = AsyncMock(return_value=["2", None])

        assert await redis_store.multi_get(["a", "b"]) == ["2", None]
        mock_redis_client.mget.assert_called_once_with(["a", "b"])

    @pytest.mark.asyncio
    async def test_multi_get_empty_skips_redis(self, redis_store, mock_redis_client):
        """Test an empty key list never reaches Redis."""
        mock_redis_client.mget = AsyncMock()

        assert await redis_store.multi_get([]) == []
        mock_redis_client.mget.assert_not_called()

    @pytest.mark.asyncio
    async def test_redis_errors_become_storage_errors(
        self, redis_store, mock_redis_client
    ):
        """Test Redis failures surface as StorageError."""
        mock_redis_client.incr = AsyncMock(side_effect=RedisConnectionError("down"))

        with pytest.raises(StorageError):
            await redis_store.increment("counter")

    @pytest.mark.asyncio
    async def test_storage_error_omits_key_name(self, redis_store, mock_redis_client):
        """Test error messages do not repeat store keys holding API keys."""
        mock_redis_client.incr = AsyncMock(side_effect=RedisConnectionError("down"))

        with pytest.raises(StorageError) as exc_info:
            await redis_store.increment("steam-plugin:useKey:2024-03-15:SECRETKEY")

        assert "SECRETKEY" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unavailable_redis_raises_storage_error(self, redis_store):
        """Test operations fail with StorageError when Redis is unreachable."""
        with patch.object(redis_store, "connect", AsyncMock(return_value=False)):
            with pytest.raises(StorageError):
                await redis_store.exists("anything")

    @pytest.mark.asyncio
    async def test_auto_connect_on_operation(self, redis_store):
        """Test that operations trigger connection if not connected."""

        async def fake_connect():
            redis_store._client = AsyncMock()
            redis_store._client.exists = AsyncMock(return_value=1)
            redis_store._connected = True
            return True

        with patch.object(redis_store, "connect", side_effect=fake_connect) as connect:
            assert await redis_store.exists("anything") is True

            connect.assert_called_once()

    @pytest.mark.asyncio
    async def test_concurrent_operations_connect_once(self, redis_store):
        """Test simultaneous first operations share one connection attempt."""

        async def fake_connect():
            await asyncio.sleep(0)
            redis_store._client = AsyncMock()
            redis_store._client.exists = AsyncMock(return_value=1)
            redis_store._connected = True
            return True

        with patch.object(redis_store, "connect", side_effect=fake_connect) as connect:
            results = await asyncio.gather(
                redis_store.exists("a"), redis_store.exists("b")
            )

        assert results == [True, True]
        connect.assert_called_once()

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self, redis_store, mock_redis_client):
        """Test disconnect closes the connection pool."""
        await redis_store.disconnect()

        mock_redis_client.aclose.assert_awaited_once()
        assert redis_store._client is None
        assert redis_store._connected is False

    @pytest.mark.asyncio
    async def test_failed_connect_attempts_do_not_leak_clients(self, redis_store):
        """Test each new connect closes the client of the failed attempt."""
        first = AsyncMock(spec=redis.Redis)
        first.ping = AsyncMock(side_effect=RedisConnectionError("down"))
        second = AsyncMock(spec=redis.Redis)
        second.ping = AsyncMock(return_value=True)

        with patch(REDIS_CLASS, side_effect=[first, second]):
            assert await redis_store.connect() is False
            first.aclose.assert_not_awaited()

            assert await redis_store.connect() is True

        first.aclose.assert_awaited_once()
        second.aclose.assert_not_awaited()
        assert redis_store._client is second


class TestStoreFactory:
    """Unit tests for the process-wide store."""

    @pytest.fixture(autouse=True)
    def reset(self):
        store_factory.reset_store_provider()
        yield
        store_factory.reset_store_provider()

    def test_memory_provider(self):
        """Test the memory provider is cached once created."""
        with patch.object(store_factory.settings, "store_provider", StoreProvider.MEMORY):
            store = store_factory.get_store_provider()

        assert isinstance(store, MemoryStore)
        assert store_factory.get_store_provider() is store

    def test_redis_provider_is_default(self):
        """Test Redis is the default provider."""
        with patch.object(store_factory.settings, "store_provider", StoreProvider.REDIS):
            assert isinstance(store_factory.get_store_provider(), RedisStore)

    @pytest.mark.asyncio
    async def test_close_store_provider_disconnects(self):
        """Test closing disconnects the cached store and drops it."""
        with patch.object(store_factory.settings, "store_provider", StoreProvider.MEMORY):
            store = store_factory.get_store_provider()

            with patch.object(store, "disconnect", AsyncMock()) as disconnect:
                await store_factory.close_store_provider()

            disconnect.assert_awaited_once()
            assert store_factory.get_store_provider() is not store

    @pytest.mark.asyncio
    async def test_close_store_provider_without_store(self):
        """Test closing is a no-op before any store was created."""
        await store_factory.close_store_provider()

        assert store_factory._store_provider is None
