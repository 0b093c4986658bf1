"""
Blog API Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per error class of the API.
How:   Each exception carries a user-safe message and an optional context
       dict. Global handlers (registered in main.py) turn them into the
       JSON error envelope with the right HTTP status code.
Who:   Raised by services and dependencies; caught by global handlers.
Note:  Request-schema failures stay FastAPI RequestValidationErrors; main.py
       maps them to 400 validation_error.

Exception Hierarchy:
    BlogAPIError (base)
    ├── ConflictError            → 400 Bad Request (duplicate unique field)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found (also "not yours")
    ├── DatabaseError            → 500 Internal Server Error
    └── RateLimitExceededError   → 429 Too Many Requests
"""

from typing import Any, Dict, Optional


class BlogAPIError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConflictError(BlogAPIError):
    """
    Raised when a write would violate a unique constraint.

    When:    Duplicate email at signup, duplicate post title at create/update.
    HTTP:    400 Bad Request (the API reports duplicates as client errors)
    """

    status_code = 400
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(BlogAPIError):
    """
    Raised when credentials or a bearer token are missing or invalid.

    The message never says which part was wrong (unknown email vs bad
    password, expired vs forged token).
    """

    status_code = 401
    error_code = "unauthenticated"

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BlogAPIError):
    """
    Raised when a requested resource does not exist.

    Owner-only operations also raise this when the resource exists but
    belongs to someone else, so callers cannot probe for existence.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(BlogAPIError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; query details and
    driver errors are only logged server-side.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BlogAPIError):
    """Raised when a client exceeds the per-IP limit on auth endpoints."""

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
