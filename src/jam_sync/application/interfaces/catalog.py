"""Port interfaces for the read-only collaborators: song catalog and user directory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.jam.entities import SongInfo, UserProfile
    from ...domain.jam.value_objects import SongId


class SongCatalog(ABC):
    """Resolves song references to playable metadata."""

    @abstractmethod
    async def resolve(self, song_id: SongId) -> SongInfo | None:
        """Return the song's metadata, or None if the catalog does not know it."""
        ...


class UserDirectory(ABC):
    """Resolves user references to display identities."""

    @abstractmethod
    async def resolve(self, user_id: str) -> UserProfile | None:
        ...
