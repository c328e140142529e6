"""
Storefront - Custom Exceptions
===============================
Business-level exceptions that are caught in main.py and converted to
JSON responses carrying a machine-readable error kind.
"""

from fastapi import status


class StorefrontError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = "InternalError"

    def __init__(self, message: str = "Something went wrong.", kind: str = None):
        self.message = message
        self.kind = kind or self.default_kind
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Malformed user input (email, password, ids)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_kind = "InvalidRequest"


class AuthError(StorefrontError):
    """Missing, invalid or expired session."""
    status_code = status.HTTP_401_UNAUTHORIZED
    default_kind = "Unauthenticated"

    def __init__(self, message: str = "Unauthorized", kind: str = None, clear_cookie: bool = False):
        super().__init__(message, kind)
        self.clear_cookie = clear_cookie


class NotFoundError(StorefrontError):
    """Raised when a requested resource doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_kind = "NotFound"


class ConflictError(StorefrontError):
    """Raised for unique constraint violations at the business level."""
    status_code = status.HTTP_409_CONFLICT
    default_kind = "Conflict"


class InternalInvariantError(StorefrontError):
    """A multi-step write did not touch the expected rows, or state that should always exist is missing."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_kind = "InternalError"


class RequestTimeoutError(StorefrontError):
    """The request ran past its deadline; nothing it wrote is committed."""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_kind = "Timeout"
