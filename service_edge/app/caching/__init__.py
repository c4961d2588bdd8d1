"""
Edge caching package.

Cache-aside gateway over the key-value store port. Every entry is written
with a TTL; writers invalidate explicitly after committing.
"""

from .codec import Codec, JsonCodec, ModelCodec
from .gateway import CacheAsideGateway, CacheResult
from .keys import cache_key, namespace_prefix

__all__ = [
    "Codec",
    "JsonCodec",
    "ModelCodec",
    "CacheAsideGateway",
    "CacheResult",
    "cache_key",
    "namespace_prefix",
]
