"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to and a stable ``error_code``.
The app-level exception handlers in ``elearning.main`` turn them into the
``{ok, error_code, error_message, request_id}`` envelope; services never
build HTTP responses themselves.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.message = str(message or self.default_message)
        if error_code:
            self.error_code = error_code
        self.extra = dict(extra or {})
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    error_code = "validation_error"
    default_message = "invalid request"

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        if field:
            self.extra.setdefault("errors", [{"field": field, "message": self.message}])


class Unauthenticated(DomainError):
    status_code = 401
    error_code = "unauthorized"
    default_message = "not authenticated"


class Forbidden(DomainError):
    status_code = 403
    error_code = "forbidden"
    default_message = "forbidden"


class NotEnrolled(Forbidden):
    error_code = "not_enrolled"
    default_message = "not enrolled in this course"


class NotFound(DomainError):
    status_code = 404
    error_code = "not_found"
    default_message = "not found"


class Conflict(DomainError):
    status_code = 409
    error_code = "conflict"
    default_message = "conflict"


class AlreadyEnrolled(Conflict):
    error_code = "already_enrolled"
    default_message = "already enrolled in this course"


class AttemptAlreadyCompleted(Conflict):
    error_code = "attempt_completed"
    default_message = "quiz attempt already completed"
