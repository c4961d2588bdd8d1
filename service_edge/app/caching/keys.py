"""
Cache key namespacing.
"""

from shared.errors import ValidationError


KEY_SEPARATOR = ":"


def cache_key(namespace: str, *parts) -> str:
    """Build ``"<namespace>:<part>:..."``.

    Keys are stored verbatim so they stay enumerable by prefix.
    """
    if not namespace:
        raise ValidationError("Cache namespace must not be empty")
    key_parts = [namespace] + [str(part) for part in parts]
    for part in key_parts:
        if part == "" or "*" in part:
            raise ValidationError("Invalid cache key part", {"part": part})
    return KEY_SEPARATOR.join(key_parts)


def namespace_prefix(namespace: str) -> str:
    """Prefix shared by every key built under ``namespace``."""
    if not namespace:
        raise ValidationError("Cache namespace must not be empty")
    return namespace if namespace.endswith(KEY_SEPARATOR) else namespace + KEY_SEPARATOR


def namespace_of(key: str) -> str:
    """Entity type of a key, used as a metrics label."""
    return key.split(KEY_SEPARATOR, 1)[0]
