"""
Redis adapter for the key-value store port.
"""

from typing import List, Optional
import redis.asyncio as redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    ResponseError as RedisResponseError,
    TimeoutError as RedisTimeoutError,
)

from shared.logging import get_logger
from shared.errors import StoreUnavailableError
from .base import KeyValueStore


REDIS_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError)

# INCR and first-window EXPIRE in one server-side step, so a crash between
# the two can never leave a counter without expiry.
INCREMENT_WITH_EXPIRY_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return count
"""

SCAN_BATCH_SIZE = 500


def _escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so a prefix matches literally."""
    return "".join("\\" + ch if ch in "*?[]\\" else ch for ch in value)


class RedisKeyValueStore(KeyValueStore):
    """Key-value store backed by Redis."""

    supports_prefix_scan = True
    supports_atomic_increment = True

    def __init__(self, redis_url: str, socket_timeout: float = 2.0):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("edge.store.redis")
        self._redis: Optional[redis.Redis] = None
        self._increment_script = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                health_check_interval=30
            )
        return self._redis

    def _unavailable(self, operation: str, key: str, error: Exception) -> StoreUnavailableError:
        self.logger.warning("Redis call failed", operation=operation, key=key, error=str(error))
        return StoreUnavailableError(operation, str(error), {"key": key})

    async def get(self, key: str) -> Optional[bytes]:
        try:
            redis_client = await self._get_redis()
            return await redis_client.get(key)
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("get", key, e) from e

    async def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        try:
            redis_client = await self._get_redis()
            await redis_client.setex(key, ttl_seconds, value)
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("set_with_expiry", key, e) from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            redis_client = await self._get_redis()
            return int(await redis_client.delete(*keys))
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("delete", ",".join(keys), e) from e

    async def increment_and_get(self, key: str) -> int:
        try:
            redis_client = await self._get_redis()
            return int(await redis_client.incr(key))
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("increment_and_get", key, e) from e

    async def set_expiry_if_none_set(self, key: str, ttl_seconds: int) -> bool:
        try:
            redis_client = await self._get_redis()
            try:
                return bool(await redis_client.expire(key, ttl_seconds, nx=True))
            except RedisResponseError:
                # Servers before 7.0 reject the NX flag
                if await redis_client.ttl(key) != -1:
                    return False
                return bool(await redis_client.expire(key, ttl_seconds))
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("set_expiry_if_none_set", key, e) from e

    async def time_to_live(self, key: str) -> Optional[int]:
        try:
            redis_client = await self._get_redis()
            ttl = await redis_client.ttl(key)
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("time_to_live", key, e) from e
        # -2: key absent, -1: key without expiry
        if ttl is None or ttl < 0:
            return None
        return int(ttl)

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        try:
            redis_client = await self._get_redis()
            if self._increment_script is None:
                self._increment_script = redis_client.register_script(INCREMENT_WITH_EXPIRY_SCRIPT)
            return int(await self._increment_script(keys=[key], args=[ttl_seconds]))
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("increment_with_expiry", key, e) from e

    async def scan_prefix(self, prefix: str) -> List[str]:
        keys: List[str] = []
        try:
            redis_client = await self._get_redis()
            async for key in redis_client.scan_iter(match=f"{_escape_glob(prefix)}*", count=SCAN_BATCH_SIZE):
                keys.append(key.decode("utf-8") if isinstance(key, bytes) else key)
        except REDIS_UNAVAILABLE as e:
            raise self._unavailable("scan_prefix", prefix, e) from e
        return keys

    async def ping(self) -> bool:
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except REDIS_UNAVAILABLE as e:
            self.logger.warning("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self._increment_script = None
            self.logger.info("Redis connection closed")
