"""
Witter API — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions, one class per failure kind.
Why:   Services raise a typed error and never build HTTP responses themselves.
       A single set of handlers in main.py turns every kind into JSON.
How:   Each exception carries a user-facing message, a server-side context
       dict, an HTTP status code and a machine-readable error code.
Who:   Raised by services and auth dependencies; caught by global handlers.

Exception Hierarchy:
    WitterError (base)              → 500
    ├── ValidationError             → 400 Bad Request (malformed or missing input)
    ├── AuthenticationError         → 401 Unauthorized (bad credentials or token)
    ├── AuthorizationError          → 401 Unauthorized (wrong actor)
    ├── ConflictError               → 403 Forbidden (duplicate or invalid state change)
    ├── NotFoundError               → 404 Not Found (unknown handle or weet)
    └── DatabaseError               → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class WitterError(Exception):
    """
    Base exception for all Witter application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        context:      Additional debug info (logged but NOT returned to client)
        status_code:  HTTP status the global handler responds with
        error_code:   Machine-readable code placed in the `error` field
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(WitterError):
    """
    Raised when client input is missing or malformed.

    When:    Sign-up or profile update with missing fields, empty weet body,
             duplicate handle/email at registration.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(WitterError):
    """
    Raised when the caller cannot be identified.

    When:    Wrong handle/password at log-in, wrong old password on profile
             update, a token that is missing, undecodable or signed elsewhere.
    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "authentication_error"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(WitterError):
    """
    Raised when an identified caller acts on something they do not own.

    When:    Editing another user's profile or weet, following oneself.
    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "authorization_error"

    def __init__(
        self,
        message: str = "Unauthorized",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConflictError(WitterError):
    """
    Raised when a state transition is not allowed from the current state.

    When:    Following twice, unfollowing without a follow, reacting twice to
             a weet, an email already owned by another account on update.
    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "conflict"

    def __init__(
        self,
        message: str = "Forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(WitterError):
    """
    Raised when a requested user or weet does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception so routes stay free of lookup checks.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: Optional[str] = None,
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(WitterError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The original
        SQLAlchemy error is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
