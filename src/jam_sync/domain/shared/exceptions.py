"""Base errors shared by every layer.

Each error carries a user-facing ``message`` and a stable ``code``. The
HTTP API renders them with :meth:`DomainError.to_response`.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Root of all jam-sync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__

    def to_response(self) -> dict[str, Any]:
        """Error envelope returned to API callers."""
        return {"success": False, "message": self.message}


class ValidationError(DomainError):
    """Input rejected before any state changed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    def __init__(self, entity_type: str, identifier: str, message: str | None = None) -> None:
        super().__init__(message or f"{entity_type} '{identifier}' not found", code="NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class BusinessRuleViolationError(DomainError):
    """A session rule (capacity, host-only, membership) forbids the request."""

    def __init__(self, rule: str, message: str | None = None) -> None:
        super().__init__(message or f"Rule violated: {rule}", code=rule)
        self.rule = rule


class InvalidOperationError(DomainError):
    """The operation does not apply in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Cannot {operation} while {current_state}", code="INVALID_OPERATION"
        )
        self.operation = operation
        self.current_state = current_state
