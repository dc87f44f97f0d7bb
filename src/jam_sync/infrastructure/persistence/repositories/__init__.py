"""SQLite repository implementations."""

from jam_sync.infrastructure.persistence.repositories.session_store import SQLiteSessionStore

__all__ = ["SQLiteSessionStore"]
