"""Errors raised by the jam session context.

Session-management errors surface to the caller (HTTP 4xx). Sync errors
(``SongNotResolvableError``, ``ChannelUnavailableError``,
``MediaNotReadyError``) are caught by the sync components and only logged.
"""

from __future__ import annotations

from jam_sync.domain.shared.exceptions import (
    BusinessRuleViolationError,
    DomainError,
    EntityNotFoundError,
    InvalidOperationError,
    ValidationError,
)
from jam_sync.domain.shared.messages import ErrorMessages


class SessionNotFoundError(EntityNotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__("JamSession", session_id, ErrorMessages.SESSION_NOT_FOUND)


class SessionInactiveError(InvalidOperationError):
    def __init__(self, session_id: str, operation: str = "join") -> None:
        super().__init__(operation, "ended", ErrorMessages.SESSION_INACTIVE)
        self.session_id = session_id


class SessionFullError(BusinessRuleViolationError):
    def __init__(self, session_id: str, max_participants: int) -> None:
        super().__init__("MAX_PARTICIPANTS", ErrorMessages.SESSION_FULL)
        self.session_id = session_id
        self.max_participants = max_participants


class NotAParticipantError(BusinessRuleViolationError):
    def __init__(self, session_id: str, user_id: str) -> None:
        super().__init__("PARTICIPANTS_ONLY", ErrorMessages.NOT_A_PARTICIPANT)
        self.session_id = session_id
        self.user_id = user_id


class NotHostError(BusinessRuleViolationError):
    def __init__(self, session_id: str, user_id: str) -> None:
        super().__init__("HOST_ONLY", ErrorMessages.NOT_HOST)
        self.session_id = session_id
        self.user_id = user_id


class SessionAccessDeniedError(BusinessRuleViolationError):
    def __init__(
        self, session_id: str, user_id: str, message: str = ErrorMessages.NO_ACCESS
    ) -> None:
        super().__init__("PRIVATE_SESSION", message)
        self.session_id = session_id
        self.user_id = user_id


class SongNotFoundError(EntityNotFoundError):
    def __init__(self, song_id: str) -> None:
        super().__init__("Song", song_id, ErrorMessages.SONG_NOT_FOUND)


class SongNotResolvableError(DomainError):
    """A transport event references a song missing from the local queue."""

    def __init__(self, song_id: str) -> None:
        super().__init__(
            ErrorMessages.SONG_NOT_RESOLVABLE.format(song_id=song_id),
            code="SONG_NOT_RESOLVABLE",
        )
        self.song_id = song_id


class ChannelUnavailableError(DomainError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or ErrorMessages.CHANNEL_UNAVAILABLE, code="CHANNEL_UNAVAILABLE")


class MediaNotReadyError(InvalidOperationError):
    def __init__(self, operation: str = "play") -> None:
        super().__init__(operation, "loading", ErrorMessages.MEDIA_NOT_READY)


class UnknownEventError(ValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(ErrorMessages.UNKNOWN_EVENT.format(name=name), field="event")
        self.name = name
