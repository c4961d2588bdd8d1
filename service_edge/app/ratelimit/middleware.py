"""
HTTP glue for the window rate limiter.
"""

from typing import Optional

from fastapi import Request, Response

from shared.logging import get_logger, set_client_context
from shared.errors import RateLimitError
from .fixed_window import Admitted, WindowRateLimiter


class RateLimitMiddleware:
    """Applies one window budget to incoming FastAPI requests.

    Clients are identified by authenticated user id, else by address.
    ``X-Forwarded-For`` and ``X-Real-IP`` are only honoured with
    ``trust_proxy_headers``; a client talking to the service directly could
    otherwise rotate them to get a fresh window on every request.
    """

    def __init__(
        self,
        rate_limiter: WindowRateLimiter,
        window_seconds: int,
        max_requests: int,
        trust_proxy_headers: bool = False,
    ):
        self.rate_limiter = rate_limiter
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.trust_proxy_headers = trust_proxy_headers
        self.logger = get_logger("edge.rate_limit_middleware")

    async def check_request(self, request: Request, scope: Optional[str] = None) -> Admitted:
        """Admit the request or raise RateLimitError (HTTP 429)."""
        client_id = self._get_client_id(request)
        set_client_context(client_id)

        decision = await self.rate_limiter.allow(client_id, self.window_seconds, self.max_requests, scope=scope)
        if not decision.allowed:
            raise RateLimitError(
                decision.retry_after_seconds,
                details={"limit": decision.limit, "window_seconds": self.window_seconds}
            )
        return decision

    def set_headers(self, response: Response, decision: Admitted) -> None:
        """Propagate rate limiting metadata via standard headers."""
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)

    def _get_client_id(self, request: Request) -> str:
        """Extract client ID from request."""
        # user_info is set by the authentication layer in front of us
        user_info = getattr(request.state, 'user_info', None)
        if isinstance(user_info, dict) and user_info.get('user_id'):
            return f"user:{user_info['user_id']}"

        if self.trust_proxy_headers:
            forwarded_for = request.headers.get('X-Forwarded-For')
            if forwarded_for:
                return f"ip:{forwarded_for.split(',')[0].strip()}"

            real_ip = request.headers.get('X-Real-IP')
            if real_ip:
                return f"ip:{real_ip}"

        return f"ip:{request.client.host}" if request.client else 'ip:unknown'
