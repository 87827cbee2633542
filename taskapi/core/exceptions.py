"""Error taxonomy shared by the repositories, the auth gate and the routes."""

from typing import Any


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: str | None = None, errors: list[dict[str, Any]] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation errors"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class TokenExpired(AuthenticationError):
    default_message = "Token expired"


class TokenInvalid(AuthenticationError):
    default_message = "Invalid token"


class TokenVerificationFailed(AuthenticationError):
    default_message = "Token verification failed"


class AuthorizationError(ApiError):
    status_code = 403
    default_message = "Access denied: insufficient permissions"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Duplicate field value entered"


class InternalError(ApiError):
    status_code = 500
    default_message = "Server Error"
