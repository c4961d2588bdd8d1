"""
Cache-aside read-through gateway.

Reads go store -> compute_fn on miss -> store. Every entry carries a TTL.
Writes to the source of truth must call ``invalidate`` (or
``invalidate_prefix``) after they commit, never before: deleting first
leaves a window in which a concurrent reader repopulates the cache with
pre-write data.

Concurrent misses for the same key are not coalesced. Each caller runs
``compute_fn`` and rewrites the entry (last writer wins), so a hot key that
expires under load sends one backing-store query per waiting request.
"""

import inspect
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TYPE_CHECKING, Union

from shared.logging import get_logger
from shared.errors import DecodeFailedError, StoreUnavailableError, ValidationError
from .codec import Codec, JsonCodec
from .keys import namespace_of, namespace_prefix

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..store.base import KeyValueStore
    from shared.metrics import MetricsCollector


ComputeFn = Callable[[], Union[Any, Awaitable[Any]]]

DELETE_BATCH_SIZE = 500


@dataclass(frozen=True)
class CacheResult:
    """Value served by the gateway and whether it came from the cache."""

    value: Any
    hit: bool

    @property
    def source(self) -> str:
        return "cache" if self.hit else "db"


class CacheAsideGateway:
    """Read-through cache in front of a slow source of truth."""

    def __init__(
        self,
        store: "KeyValueStore",
        codec: Optional[Codec] = None,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.codec = codec or JsonCodec()
        self.metrics = metrics
        self.logger = get_logger("edge.cache_gateway")

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: int,
        compute_fn: ComputeFn,
        codec: Optional[Codec] = None,
    ) -> Any:
        """Return the cached value for ``key`` or compute and cache it.

        Exceptions raised by ``compute_fn`` propagate unchanged and nothing
        is written. Store outages degrade to computing every call.
        """
        result = await self.lookup(key, ttl_seconds, compute_fn, codec)
        return result.value

    async def lookup(
        self,
        key: str,
        ttl_seconds: int,
        compute_fn: ComputeFn,
        codec: Optional[Codec] = None,
    ) -> CacheResult:
        """Same as ``get_or_compute`` but also reports hit or miss."""
        self._validate(key, ttl_seconds)
        codec = codec or self.codec
        namespace = namespace_of(key)

        cached = await self._read(key, codec)
        if cached is not None:
            self.logger.debug("Cache hit", key=key)
            self._record_access(namespace, hit=True)
            return CacheResult(value=cached[0], hit=True)

        self.logger.debug("Cache miss", key=key)
        self._record_access(namespace, hit=False)

        timer = (
            self.metrics.time_operation("compute_duration_seconds", namespace=namespace)
            if self.metrics else nullcontext()
        )
        with timer:
            value = compute_fn()
            if inspect.isawaitable(value):
                value = await value

        await self._populate(key, value, ttl_seconds, codec)
        return CacheResult(value=value, hit=False)

    async def invalidate(self, key: str) -> bool:
        """Delete ``key``. Returns False when the store could not be reached."""
        if not isinstance(key, str) or not key:
            raise ValidationError("Cache key must be a non-empty string")
        try:
            await self.store.delete(key)
        except StoreUnavailableError as e:
            self.logger.error("Cache invalidation failed; entry stays until TTL expiry", key=key, error=str(e))
            self._record_store_error("delete")
            return False

        self.logger.debug("Cache invalidated", key=key)
        return True

    async def invalidate_prefix(self, namespace: str) -> int:
        """Best-effort delete of every key in ``namespace``.

        Stores that cannot enumerate keys fall back to TTL expiry, so callers
        must tolerate stale entries for up to one TTL. Returns the number of
        keys deleted.
        """
        prefix = namespace_prefix(namespace)
        if not self.store.supports_prefix_scan:
            self.logger.warning("Store cannot scan by prefix; relying on TTL expiry", prefix=prefix)
            return 0

        deleted = 0
        try:
            keys = await self.store.scan_prefix(prefix)
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                deleted += await self.store.delete(*keys[start:start + DELETE_BATCH_SIZE])
        except StoreUnavailableError as e:
            self.logger.error("Bulk invalidation interrupted", prefix=prefix, deleted=deleted, error=str(e))
            self._record_store_error("invalidate_prefix")
            return deleted

        self.logger.info("Cache namespace invalidated", prefix=prefix, keys_count=deleted)
        return deleted

    async def _read(self, key: str, codec: Codec) -> Optional[tuple]:
        """Return ``(value,)`` on a usable hit, None otherwise."""
        try:
            payload = await self.store.get(key)
        except StoreUnavailableError as e:
            self.logger.warning("Cache read failed; computing instead", key=key, error=str(e))
            self._record_store_error("get")
            return None

        if payload is None:
            return None

        try:
            return (codec.decode(payload),)
        except DecodeFailedError as e:
            self.logger.warning("Discarding undecodable cache entry", key=key, details=e.details)
            if self.metrics:
                self.metrics.increment_counter("cache_decode_failures_total", namespace=namespace_of(key))
            return None

    async def _populate(self, key: str, value: Any, ttl_seconds: int, codec: Codec) -> None:
        try:
            payload = codec.encode(value)
        except (TypeError, ValueError) as e:
            self.logger.error("Could not encode computed value; not caching", key=key, error=str(e))
            return

        try:
            await self.store.set_with_expiry(key, payload, ttl_seconds)
        except StoreUnavailableError as e:
            self.logger.error("Cache population failed", key=key, error=str(e))
            self._record_store_error("set_with_expiry")
            return

        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)

    def _validate(self, key: str, ttl_seconds: int) -> None:
        if not isinstance(key, str) or not key:
            raise ValidationError("Cache key must be a non-empty string")
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
            raise ValidationError("ttl_seconds must be a positive integer", {"ttl_seconds": ttl_seconds})

    def _record_access(self, namespace: str, hit: bool) -> None:
        if self.metrics:
            self.metrics.record_cache_access(namespace, hit)

    def _record_store_error(self, operation: str) -> None:
        if self.metrics:
            self.metrics.record_store_error(operation)
