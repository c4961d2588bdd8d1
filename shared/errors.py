"""
Shared error handling for the edge cache service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class EdgeServiceException(Exception):
    """Base exception for the edge cache service."""

    status_code = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(EdgeServiceException):
    """Validation-related errors."""

    status_code = 422

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(EdgeServiceException):
    """Resource does not exist in the source of truth."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class StoreUnavailableError(EdgeServiceException):
    """Key-value store could not be reached or timed out."""

    status_code = 503

    def __init__(self, operation: str, message: str = "Key-value store unavailable", details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        super().__init__("STORE_UNAVAILABLE", f"{operation}: {message}", details)


class DecodeFailedError(EdgeServiceException):
    """Cached payload could not be decoded.

    Never surfaced to HTTP callers: the cache gateway treats it as a miss.
    """

    status_code = 500

    def __init__(self, message: str = "Cached payload could not be decoded", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_FAILED", message, details)


class RateLimitError(EdgeServiceException):
    """Rate limiting errors."""

    status_code = 429

    def __init__(self, retry_after_seconds: int, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        self.retry_after_seconds = retry_after_seconds
        details = dict(details or {})
        details.setdefault("retry_after_seconds", retry_after_seconds)
        super().__init__("RATE_LIMIT_ERROR", message, details)
