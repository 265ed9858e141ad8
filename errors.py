from __future__ import annotations
from typing import Any


class AppError(Exception):
    """Base class for errors that map onto a JSON error response."""
    status_code = 500
    code: str | None = None

    def __init__(self, message: str, *, code: str | None = None, details: Any = None):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"error": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details is not None:
            payload["details"] = self.details
        return payload


class AuthenticationFailure(AppError):
    status_code = 401
    code = "UNAUTHORIZED"


class AuthorizationFailure(AppError):
    status_code = 403
    code = "FORBIDDEN"


class ValidationFailure(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, kind: str, id_: str):
        super().__init__(f"{kind} {id_} not found")


class ConflictError(AppError):
    """Scheduling conflict; message is shown to the user as is."""
    status_code = 409


class DuplicateError(AppError):
    status_code = 409
    code = "UNIQUE_CONSTRAINT"


class TooManyAttempts(AppError):
    status_code = 429
    code = "TOO_MANY_ATTEMPTS"
