"""API error types.

Services raise these exceptions; the handlers registered in `main`
translate every one of them into the uniform response envelope, using the
class `status_code` as both the HTTP status and the envelope `status`.
"""

from typing import Optional


class ApiError(Exception):
    status_code = 500
    message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)


class ValidationFailed(ApiError):
    """Request data broke a field rule; `errors` maps field -> messages."""
    status_code = 400
    message = "Validation failed"


class Unauthorized(ApiError):
    status_code = 401
    message = "Unauthenticated"


class InvalidCredentials(Unauthorized):
    message = "Invalid credentials"


class NotFound(ApiError):
    status_code = 404
    message = "Resource not found"


class MethodNotAllowed(ApiError):
    status_code = 405
    message = "PATCH method not allowed. Use PUT."


class Conflict(ApiError):
    status_code = 409
    message = "Resource already exists"


class ServerError(ApiError):
    """A persistence failure.

    `detail` holds the underlying error code and message; it is only sent to
    clients when the app runs in debug mode.
    """
    status_code = 500

    def __init__(self, message: Optional[str] = None, detail: Optional[dict] = None):
        super().__init__(message)
        self.detail = detail

    @classmethod
    def from_exception(cls, message: str, exc: Exception) -> "ServerError":
        code = getattr(exc, "code", None) or type(exc).__name__
        return cls(message, detail={"code": code, "message": str(exc)})
