"""
Key-value store port and its adapters.

``build_store`` picks an adapter from the URL scheme: ``memory://`` yields
the in-process store, anything else is handed to redis-py.
"""

from .base import KeyValueStore
from .memory_store import MemoryKeyValueStore
from .redis_store import RedisKeyValueStore


def build_store(url: str, socket_timeout: float = 2.0) -> KeyValueStore:
    """Create the store adapter for ``url``."""
    if url.startswith("memory://"):
        return MemoryKeyValueStore()
    return RedisKeyValueStore(url, socket_timeout=socket_timeout)


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "build_store",
]
