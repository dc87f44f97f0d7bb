"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting types, messages and exceptions
- jam/: Jam sessions, transport events and the session store contract
"""

from jam_sync.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
