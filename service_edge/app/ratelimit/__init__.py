"""
Rate limiting package: fixed-window limiter and its FastAPI glue.
"""

from .fixed_window import Admitted, FailurePolicy, RateLimitDecision, Rejected, WindowRateLimiter
from .middleware import RateLimitMiddleware

__all__ = [
    "Admitted",
    "FailurePolicy",
    "RateLimitDecision",
    "Rejected",
    "WindowRateLimiter",
    "RateLimitMiddleware",
]
