"""
In-process key-value store.

Implements the same port as the Redis adapter so tests (and ``memory://``
deployments) get identical semantics. All methods run to completion without
awaiting, which makes each one atomic on a single event loop.
"""

import math
import time
from typing import Callable, Dict, List, Optional, Tuple

from shared.logging import get_logger
from .base import KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with lazy TTL expiry.

    Expired keys are dropped when read, and writes purge every expired entry
    at most once per ``sweep_interval`` seconds so keys that are never read
    again (idle rate counters) do not accumulate.
    """

    supports_prefix_scan = True
    supports_atomic_increment = True

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0):
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        # key -> (value, expires_at or None)
        self._data: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self.logger = get_logger("edge.store.memory")

    def _live(self, key: str) -> Optional[Tuple[bytes, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _sweep_expired(self) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self.sweep_interval
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at is not None and expires_at <= now]
        for key in expired:
            del self._data[key]
        if expired:
            self.logger.debug("Swept expired keys", count=len(expired), remaining=len(self._data))

    async def get(self, key: str) -> Optional[bytes]:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._sweep_expired()
        self._data[key] = (bytes(value), self._clock() + ttl_seconds)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                removed += 1
            self._data.pop(key, None)
        return removed

    async def increment_and_get(self, key: str) -> int:
        self._sweep_expired()
        entry = self._live(key)
        if entry is None:
            value, expires_at = b"0", None
        else:
            value, expires_at = entry
        try:
            count = int(value) + 1
        except ValueError:
            raise ValueError(f"value at {key!r} is not an integer") from None
        self._data[key] = (str(count).encode(), expires_at)
        return count

    async def set_expiry_if_none_set(self, key: str, ttl_seconds: int) -> bool:
        entry = self._live(key)
        if entry is None or entry[1] is not None:
            return False
        self._data[key] = (entry[0], self._clock() + ttl_seconds)
        return True

    async def time_to_live(self, key: str) -> Optional[int]:
        entry = self._live(key)
        if entry is None or entry[1] is None:
            return None
        return max(0, math.ceil(entry[1] - self._clock()))

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        count = await self.increment_and_get(key)
        if count == 1:
            await self.set_expiry_if_none_set(key, ttl_seconds)
        return count

    async def scan_prefix(self, prefix: str) -> List[str]:
        return [key for key in list(self._data) if key.startswith(prefix) and self._live(key) is not None]

    async def close(self) -> None:
        self.logger.debug("Memory store closed", keys=len(self._data))
        self._data.clear()
