"""
Application error taxonomy.

Every error carries a stable machine-readable kind and an HTTP status.
Handlers in ``main.py`` turn them into ``{"error", "type", "details"}``.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class AppError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    status_code = 400
    default_message = "Invalid input data"


class AuthenticationError(AppError):
    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(AppError):
    kind = ErrorKind.AUTHORIZATION
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    status_code = 409
    default_message = "Resource conflict"


class RateLimitError(AppError):
    kind = ErrorKind.RATE_LIMIT
    status_code = 429
    default_message = "Rate limit exceeded"


class InternalError(AppError):
    pass
