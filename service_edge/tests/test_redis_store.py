"""
Unit tests for the Redis key-value store adapter.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    ResponseError as RedisResponseError,
    TimeoutError as RedisTimeoutError,
)

from shared.errors import StoreUnavailableError
from service_edge.app.store.redis_store import RedisKeyValueStore, _escape_glob


class TestRedisKeyValueStore:
    """Test cases for RedisKeyValueStore."""

    @pytest.fixture
    def store(self):
        """Create RedisKeyValueStore instance."""
        return RedisKeyValueStore("redis://localhost:6379/0")

    @pytest.fixture
    def mock_redis(self, store):
        """Redis client double returned by _get_redis."""
        mock_redis = AsyncMock()
        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis
            yield mock_redis

    @pytest.mark.asyncio
    async def test_get(self, store, mock_redis):
        mock_redis.get.return_value = b'{"id":"42"}'

        assert await store.get("product:42") == b'{"id":"42"}'
        mock_redis.get.assert_called_once_with("product:42")

    @pytest.mark.asyncio
    async def test_set_with_expiry_uses_setex(self, store, mock_redis):
        await store.set_with_expiry("product:42", b"payload", 3600)

        mock_redis.setex.assert_called_once_with("product:42", 3600, b"payload")

    @pytest.mark.asyncio
    async def test_set_with_expiry_rejects_missing_ttl(self, store, mock_redis):
        with pytest.raises(ValueError):
            await store.set_with_expiry("product:42", b"payload", 0)
        mock_redis.setex.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_redis):
        mock_redis.delete.return_value = 0

        assert await store.delete("product:42") == 0
        mock_redis.delete.assert_called_once_with("product:42")

    @pytest.mark.asyncio
    async def test_delete_nothing(self, store, mock_redis):
        assert await store.delete() == 0
        mock_redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_increment_and_get(self, store, mock_redis):
        mock_redis.incr.return_value = 3

        assert await store.increment_and_get("rate:ip:1.2.3.4") == 3

    @pytest.mark.asyncio
    async def test_set_expiry_if_none_set_uses_nx(self, store, mock_redis):
        mock_redis.expire.return_value = True

        assert await store.set_expiry_if_none_set("rate:ip:1.2.3.4", 60) is True
        mock_redis.expire.assert_called_once_with("rate:ip:1.2.3.4", 60, nx=True)

    @pytest.mark.asyncio
    async def test_set_expiry_without_nx_support_sets_missing_expiry(self, store, mock_redis):
        mock_redis.expire.side_effect = [RedisResponseError("wrong number of arguments for 'expire'"), True]
        mock_redis.ttl.return_value = -1

        assert await store.set_expiry_if_none_set("rate:ip:1.2.3.4", 60) is True
        mock_redis.expire.assert_called_with("rate:ip:1.2.3.4", 60)

    @pytest.mark.asyncio
    async def test_set_expiry_without_nx_support_keeps_existing_expiry(self, store, mock_redis):
        mock_redis.expire.side_effect = RedisResponseError("wrong number of arguments for 'expire'")
        mock_redis.ttl.return_value = 30

        assert await store.set_expiry_if_none_set("rate:ip:1.2.3.4", 60) is False
        assert mock_redis.expire.call_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_ttl, expected", [(-2, None), (-1, None), (0, 0), (42, 42)])
    async def test_time_to_live(self, store, mock_redis, raw_ttl, expected):
        mock_redis.ttl.return_value = raw_ttl

        assert await store.time_to_live("rate:ip:1.2.3.4") == expected

    @pytest.mark.asyncio
    async def test_increment_with_expiry_registers_script_once(self, store, mock_redis):
        script = AsyncMock(side_effect=[1, 2])
        mock_redis.register_script = MagicMock(return_value=script)

        assert await store.increment_with_expiry("rate:ip:1.2.3.4", 60) == 1
        assert await store.increment_with_expiry("rate:ip:1.2.3.4", 60) == 2

        mock_redis.register_script.assert_called_once()
        script.assert_called_with(keys=["rate:ip:1.2.3.4"], args=[60])

    @pytest.mark.asyncio
    async def test_scan_prefix_decodes_keys(self, store, mock_redis):
        async def scan(**kwargs):
            for key in (b"products:list:1:20", b"products:list:2:20"):
                yield key

        mock_redis.scan_iter = MagicMock(side_effect=scan)

        keys = await store.scan_prefix("products:list:")

        assert keys == ["products:list:1:20", "products:list:2:20"]
        mock_redis.scan_iter.assert_called_once_with(match="products:list:*", count=500)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [RedisConnectionError("refused"), RedisTimeoutError("timed out")])
    async def test_connectivity_errors_become_store_unavailable(self, store, mock_redis, error):
        mock_redis.get.side_effect = error

        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.get("product:42")

        assert exc_info.value.operation == "get"
        assert exc_info.value.code == "STORE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_increment_error_becomes_store_unavailable(self, store, mock_redis):
        mock_redis.register_script = MagicMock(return_value=AsyncMock(side_effect=RedisConnectionError("refused")))

        with pytest.raises(StoreUnavailableError):
            await store.increment_with_expiry("rate:ip:1.2.3.4", 60)

    @pytest.mark.asyncio
    async def test_ping_failure(self, store, mock_redis):
        mock_redis.ping.side_effect = RedisConnectionError("refused")

        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_close(self, store):
        client = AsyncMock()
        store._redis = client

        await store.close()

        client.aclose.assert_called_once()
        assert store._redis is None


def test_escape_glob():
    assert _escape_glob("user:*") == "user:\\*"
    assert _escape_glob("a?[b]") == "a\\?\\[b\\]"
