"""
Key-value store port.

Both the cache gateway and the rate limiter talk to the shared store only
through this interface. Adapters translate their client's connectivity and
timeout errors into ``StoreUnavailableError``; any other exception is a bug
and propagates.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class KeyValueStore(ABC):
    """Primitive operations of the shared key-value store."""

    #: Adapter can enumerate keys by prefix (``scan_prefix``).
    supports_prefix_scan: bool = False
    #: Adapter can increment and attach a first-window expiry in one step.
    supports_atomic_increment: bool = False

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, or None when the key is absent."""

    @abstractmethod
    async def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl_seconds``."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys; missing keys are ignored. Returns the number removed."""

    @abstractmethod
    async def increment_and_get(self, key: str) -> int:
        """Atomically increment the integer at ``key`` (absent counts as 0)."""

    @abstractmethod
    async def set_expiry_if_none_set(self, key: str, ttl_seconds: int) -> bool:
        """Attach an expiry only if the key exists and has none yet."""

    @abstractmethod
    async def time_to_live(self, key: str) -> Optional[int]:
        """Remaining lifetime in seconds, or None if absent or without expiry."""

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        """Increment and set ``ttl_seconds`` when the counter was created.

        Only available when ``supports_atomic_increment`` is true.
        """
        raise NotImplementedError(f"{type(self).__name__} has no atomic increment-with-expiry")

    async def scan_prefix(self, prefix: str) -> List[str]:
        """Return all keys starting with ``prefix``.

        Only available when ``supports_prefix_scan`` is true.
        """
        raise NotImplementedError(f"{type(self).__name__} cannot enumerate keys by prefix")

    async def ping(self) -> bool:
        """Check connectivity."""
        return True

    async def close(self) -> None:
        """Release client resources."""
