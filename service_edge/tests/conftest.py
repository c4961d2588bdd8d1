"""
Shared fixtures for edge service tests.
"""

import pytest

from shared.errors import StoreUnavailableError
from service_edge.app.store.memory_store import MemoryKeyValueStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose selected operations raise StoreUnavailableError."""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.failing = set()
        self.calls = []

    def fail_on(self, *operations):
        self.failing.update(operations)

    def recover(self):
        self.failing.clear()

    def _check(self, operation, key=""):
        self.calls.append(operation)
        if operation in self.failing:
            raise StoreUnavailableError(operation, "connection refused", {"key": key})

    async def get(self, key):
        self._check("get", key)
        return await super().get(key)

    async def set_with_expiry(self, key, value, ttl_seconds):
        self._check("set_with_expiry", key)
        return await super().set_with_expiry(key, value, ttl_seconds)

    async def delete(self, *keys):
        self._check("delete")
        return await super().delete(*keys)

    async def increment_and_get(self, key):
        self._check("increment_and_get", key)
        return await super().increment_and_get(key)

    async def set_expiry_if_none_set(self, key, ttl_seconds):
        self._check("set_expiry_if_none_set", key)
        return await super().set_expiry_if_none_set(key, ttl_seconds)

    async def time_to_live(self, key):
        self._check("time_to_live", key)
        return await super().time_to_live(key)

    async def increment_with_expiry(self, key, ttl_seconds):
        self._check("increment_with_expiry", key)
        return await super().increment_with_expiry(key, ttl_seconds)

    async def scan_prefix(self, prefix):
        self._check("scan_prefix", prefix)
        return await super().scan_prefix(prefix)

    async def ping(self):
        return "ping" not in self.failing


class TwoStepStore(FlakyStore):
    """Store without an atomic increment-with-expiry primitive."""

    supports_atomic_increment = False


class NoScanStore(MemoryKeyValueStore):
    """Store that cannot enumerate keys by prefix."""

    supports_prefix_scan = False


@pytest.fixture
def clock():
    """Fake clock shared by a test's store."""
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    """In-memory store on the fake clock."""
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def flaky_store(clock):
    """Store with switchable failures."""
    return FlakyStore(clock)


@pytest.fixture
def two_step_store(clock):
    """Store that needs separate increment and expiry calls."""
    return TwoStepStore(clock)


@pytest.fixture
def no_scan_store(clock):
    """Store without prefix enumeration."""
    return NoScanStore(clock=clock)
