"""Domain error taxonomy.

Services raise these; ``app.main`` maps every ``AppError`` to a JSON
``{"detail": ...}`` response carrying ``status_code``.
"""

from __future__ import annotations


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    default_message = "Admin only"


class ValidationError(AppError):
    status_code = 400
    default_message = "Missing required fields"


class NotFound(AppError):
    status_code = 404

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"


class PersistenceError(AppError):
    """Store failure; the message is safe to show and never carries DB detail."""

    status_code = 500
    default_message = "Database operation failed"
