"""Error taxonomy for the REST facade.

Every error the dispatcher turns into a client response derives from
ApiError. Anything else escaping a handler is treated as unexpected and
reported with a generic 500.
"""
from __future__ import annotations


class ApiError(Exception):
    """REST error with HTTP status and client-safe message."""

    status = 500

    def __init__(self, message: str, status: int | None = None):
        if status is not None:
            self.status = status
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the RestErrorMessage wire shape."""
        return {"StatusCode": self.status, "Message": self.message}


class BadRequestError(ApiError):
    """Missing/invalid parameter, coercion failure or malformed body."""

    status = 400


class AuthenticationError(ApiError):
    """Missing or invalid api_session, failed login."""

    status = 401


class AccessDeniedError(ApiError):
    """Explicit authorization check failed."""

    status = 403
    default_message = "Access denied."

    def __init__(self, message: str = default_message):
        super().__init__(message)


class NotFoundError(ApiError):
    """No route matched, or an entity resolved to the not-found sentinel."""

    status = 404
