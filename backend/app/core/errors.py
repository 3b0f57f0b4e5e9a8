"""Module: errors.

Domain error taxonomy shared by services and routers. Every error renders as
``{"message": ..., "details": ...}`` through the handlers in ``app.main``.
"""

from typing import Any


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict:
        body: dict[str, Any] = {"message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation Error"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppError):
    status_code = 403
    default_message = "Not authorized"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class ServerError(AppError):
    status_code = 500
    default_message = "Server error"
