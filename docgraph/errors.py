"""Error taxonomy shared by the repositories, engines and the HTTP layer.

Every error carries a machine-readable ``code``, a human ``message``, the
HTTP ``status_code`` the boundary layer should answer with, and optional
``details``.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return {"error": payload}


class NotFoundError(AppError):
    """A referenced node or edge does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ValidationError(AppError):
    """The request is structurally invalid (self-reference, cycle, bad format...)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidStatusTransitionError(ValidationError):
    """Raised by the lifecycle engine for a status change outside the workflow."""

    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Invalid status transition from {current} to {requested}",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


class ConflictError(AppError):
    """A unique field clashes, or a compare-and-swap lost the race."""

    code = "CONFLICT"
    status_code = 409


class InternalError(AppError):
    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
