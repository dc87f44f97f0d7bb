"""
Jam Domain Repository Interfaces

Abstract base classes defining the contracts for session persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from jam_sync.domain.jam.entities import JamSession, SessionConfig
from jam_sync.domain.jam.value_objects import SongId


class SessionStore(ABC):
    """Durable record of jam session membership and coarse playback state.

    Mutations must be safe under concurrent callers: membership and queue
    changes are targeted adds/removes, never whole-list overwrites.
    """

    @abstractmethod
    async def create(self, host_id: str, config: SessionConfig) -> JamSession:
        """Create a session with ``host_id`` as host and first participant."""
        ...

    @abstractmethod
    async def get(self, session_id: str) -> JamSession:
        """Retrieve a session.

        Raises:
            SessionNotFoundError: No session with this id.
        """
        ...

    @abstractmethod
    async def join(self, session_id: str, user_id: str) -> JamSession:
        """Add a participant. Idempotent for existing members.

        Raises:
            SessionNotFoundError: No session with this id.
            SessionInactiveError: The session has ended.
            SessionFullError: The session is at ``max_participants``.
        """
        ...

    @abstractmethod
    async def leave(self, session_id: str, user_id: str) -> None:
        """Remove a participant.

        The session is deactivated if the leaver is the host or no
        participants remain.
        """
        ...

    @abstractmethod
    async def end(self, session_id: str, user_id: str) -> None:
        """Deactivate a session on behalf of its host.

        Raises:
            NotHostError: ``user_id`` is not the host.
        """
        ...

    @abstractmethod
    async def append_to_queue(self, session_id: str, user_id: str, song_id: SongId) -> JamSession:
        """Append a song to the shared queue. Already-queued songs are kept once.

        Raises:
            SongNotFoundError: The catalog does not know the song.
            NotAParticipantError: ``user_id`` is not a member.
        """
        ...

    @abstractmethod
    async def update_transport_state(
        self,
        session_id: str,
        *,
        current_song_id: SongId | None = None,
        position: float | None = None,
        playing: bool | None = None,
    ) -> None:
        """Best-effort snapshot write used to bootstrap late joiners."""
        ...

    @abstractmethod
    async def list_visible(self, user_id: str, limit: int = 50) -> list[JamSession]:
        """Active sessions that are public or include ``user_id``, newest first."""
        ...

    @abstractmethod
    async def deactivate_stale(self, older_than: datetime) -> int:
        """Deactivate active sessions not updated since ``older_than``.

        Returns:
            Number of sessions deactivated.
        """
        ...
