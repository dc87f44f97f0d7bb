"""Errors, constants and field types used by every jam-sync layer."""

from jam_sync.domain.shared.exceptions import (
    BusinessRuleViolationError,
    DomainError,
    EntityNotFoundError,
    InvalidOperationError,
    ValidationError,
)

__all__ = [
    "BusinessRuleViolationError",
    "DomainError",
    "EntityNotFoundError",
    "InvalidOperationError",
    "ValidationError",
]
