"""
Fixed-window rate limiter for the edge service.

One counter per identity lives in the key-value store. The increment that
creates a counter attaches the window expiry; later increments never extend
it, so the window closes exactly ``window_seconds`` after the first request.
A client can therefore send ``max_requests`` at the end of one window and
``max_requests`` again at the start of the next.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING, Union

from shared.logging import get_logger
from shared.errors import StoreUnavailableError, ValidationError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..store.base import KeyValueStore
    from shared.metrics import MetricsCollector


class FailurePolicy(str, Enum):
    """What to do when the store cannot be reached."""

    OPEN = "open"      # admit the request
    CLOSED = "closed"  # reject the request


@dataclass(frozen=True)
class Admitted:
    """Request is within its window budget."""

    count: int
    limit: int
    degraded: bool = False

    allowed = True

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


@dataclass(frozen=True)
class Rejected:
    """Request exceeded its window budget."""

    retry_after_seconds: int
    count: int
    limit: int
    degraded: bool = False

    allowed = False

    @property
    def remaining(self) -> int:
        return 0


RateLimitDecision = Union[Admitted, Rejected]


class WindowRateLimiter:
    """Distributed fixed-window rate limiter."""

    def __init__(
        self,
        store: "KeyValueStore",
        failure_policy: FailurePolicy = FailurePolicy.OPEN,
        *,
        key_prefix: str = "rate",
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.failure_policy = FailurePolicy(failure_policy)
        self.key_prefix = key_prefix
        self.metrics = metrics
        self.logger = get_logger("edge.rate_limiter")

    def _make_key(self, identity: str, scope: Optional[str] = None) -> str:
        """Generate rate limit key."""
        if scope:
            return f"{self.key_prefix}:{scope}:{identity}"
        return f"{self.key_prefix}:{identity}"

    async def allow(
        self,
        identity: str,
        window_seconds: int,
        max_requests: int,
        scope: Optional[str] = None,
    ) -> RateLimitDecision:
        """Count one request for ``identity`` and decide whether to admit it."""
        self._validate(identity, window_seconds, max_requests)
        key = self._make_key(identity, scope)

        try:
            count = await self._increment(key, window_seconds)
        except StoreUnavailableError as e:
            return self._on_store_failure(key, window_seconds, max_requests, e)

        if count > max_requests:
            retry_after = await self._retry_after(key, window_seconds)
            self.logger.info(
                "Rate limit exceeded",
                key=key,
                current_count=count,
                limit=max_requests,
                retry_after=retry_after
            )
            self._record("rejected")
            return Rejected(retry_after_seconds=retry_after, count=count, limit=max_requests)

        self._record("admitted")
        return Admitted(count=count, limit=max_requests)

    async def reset(self, identity: str, scope: Optional[str] = None) -> bool:
        """Drop the current window for ``identity``."""
        key = self._make_key(identity, scope)
        try:
            await self.store.delete(key)
        except StoreUnavailableError as e:
            self.logger.error("Rate limit reset error", key=key, error=str(e))
            return False

        self.logger.info("Rate limit reset", key=key)
        return True

    async def _increment(self, key: str, window_seconds: int) -> int:
        if self.store.supports_atomic_increment:
            return await self.store.increment_with_expiry(key, window_seconds)

        count = await self.store.increment_and_get(key)
        if count == 1:
            await self._attach_window(key, window_seconds)
        return count

    async def _attach_window(self, key: str, window_seconds: int) -> None:
        try:
            await self.store.set_expiry_if_none_set(key, window_seconds)
        except StoreUnavailableError as e:
            # Repaired by _retry_after once the counter starts rejecting
            self.logger.warning("Could not attach window expiry", key=key, error=str(e))
            self._record_store_error("set_expiry_if_none_set")

    async def _retry_after(self, key: str, window_seconds: int) -> int:
        """Seconds until the window closes, clamped to [0, window_seconds]."""
        try:
            ttl = await self.store.time_to_live(key)
        except StoreUnavailableError as e:
            self.logger.warning("Could not read window expiry", key=key, error=str(e))
            self._record_store_error("time_to_live")
            return window_seconds

        if ttl is None:
            # Counter lost its expiry; bound its lifetime to one more window
            self.logger.warning("Counter without expiry; re-attaching window", key=key)
            await self._attach_window(key, window_seconds)
            return window_seconds

        return min(max(0, ttl), window_seconds)

    def _on_store_failure(
        self,
        key: str,
        window_seconds: int,
        max_requests: int,
        error: StoreUnavailableError,
    ) -> RateLimitDecision:
        self._record_store_error("increment")
        self.logger.error(
            "Rate limit check error",
            key=key,
            policy=self.failure_policy.value,
            error=str(error)
        )
        if self.failure_policy is FailurePolicy.CLOSED:
            self._record("rejected_degraded")
            return Rejected(retry_after_seconds=window_seconds, count=0, limit=max_requests, degraded=True)

        self._record("admitted_degraded")
        return Admitted(count=0, limit=max_requests, degraded=True)

    def _validate(self, identity: str, window_seconds: int, max_requests: int) -> None:
        if not isinstance(identity, str) or not identity:
            raise ValidationError("Rate limit identity must be a non-empty string")
        for name, value in (("window_seconds", window_seconds), ("max_requests", max_requests)):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValidationError(f"{name} must be a positive integer", {name: value})

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_rate_limit_decision(outcome)

    def _record_store_error(self, operation: str) -> None:
        if self.metrics:
            self.metrics.record_store_error(operation)
