"""
auth/errors.py -- Error taxonomy shared by the token lifecycle, the policy
guards, and the route handlers.

Every failure the core can produce is one of these kinds. Each carries a
machine-readable code and the HTTP status the API layer answers with; the
single exception handler in api/main.py renders them as
{"error": <message>, "code": <code>}.

Layer rule: no imports from api/, core/, or maintenance/.
"""

from __future__ import annotations


class CondoDeskError(Exception):
    """Base class. Subclasses override code, status_code and message."""

    code: str = "internal_error"
    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingCredential(CondoDeskError):
    code = "missing_credential"
    status_code = 401
    message = "Authentication required."


class InvalidOrExpiredCredential(CondoDeskError):
    code = "invalid_or_expired"
    status_code = 401
    message = "Token is invalid or has expired."


class InvalidCredential(CondoDeskError):
    code = "invalid_credential"
    status_code = 401
    message = "Token signature or claims are invalid."


class InvalidRefreshToken(CondoDeskError):
    code = "invalid_refresh_token"
    status_code = 403
    message = "Refresh token is invalid or has expired."


class Unauthorized(CondoDeskError):
    code = "bad_credentials"
    status_code = 401
    message = "Invalid username or password."


class Forbidden(CondoDeskError):
    code = "forbidden"
    status_code = 403
    message = "You are not allowed to perform this action."


class NotFound(CondoDeskError):
    code = "not_found"
    status_code = 404
    message = "Resource not found."


class ValidationError(CondoDeskError):
    code = "validation_error"
    status_code = 400
    message = "Request validation failed."


class Conflict(CondoDeskError):
    code = "conflict"
    status_code = 409
    message = "Resource already exists."


class Internal(CondoDeskError):
    pass
