"""Core domain entities for the jam bounded context."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from jam_sync.domain.jam.exceptions import (
    NotAParticipantError,
    NotHostError,
    SessionAccessDeniedError,
    SessionFullError,
    SessionInactiveError,
)
from jam_sync.domain.jam.value_objects import (
    OptionalSongIdField,
    SessionEndReason,
    SongId,
    SongIdField,
)
from jam_sync.domain.shared.constants import SessionDefaults
from jam_sync.domain.shared.datetime_utils import seconds_since, utcnow
from jam_sync.domain.shared.messages import ErrorMessages
from jam_sync.domain.shared.types import (
    HttpUrlStr,
    MaxParticipantsInt,
    NonEmptyStr,
    PositionSeconds,
    SessionIdStr,
    SessionNameStr,
    UserIdStr,
    UtcDatetimeField,
)


def new_session_id() -> str:
    return uuid4().hex


class SessionConfig(BaseModel):
    """User-supplied options for a new jam session."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: SessionNameStr
    is_public: bool = Field(default=False, alias="isPublic")
    max_participants: MaxParticipantsInt = Field(
        default=SessionDefaults.DEFAULT_MAX_PARTICIPANTS, alias="maxParticipants"
    )

    @model_validator(mode="before")
    @classmethod
    def _strip_name(cls, data: object) -> object:
        if isinstance(data, dict) and isinstance(data.get("name"), str):
            data = {**data, "name": data["name"].strip()}
        return data


class Participant(BaseModel):
    """A member of a jam session."""

    model_config = ConfigDict(frozen=True, strict=True)

    user_id: UserIdStr
    joined_at: UtcDatetimeField = Field(default_factory=utcnow)


class UserProfile(BaseModel):
    """Display identity resolved from the user directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: UserIdStr = Field(alias="_id")
    display_name: str = Field(default="", alias="displayName")
    avatar: str | None = None

    def to_payload(self) -> dict[str, str | None]:
        return self.model_dump(by_alias=True)


class SongInfo(BaseModel):
    """Playable song metadata resolved from the song catalog."""

    model_config = ConfigDict(frozen=True)

    id: SongIdField
    title: NonEmptyStr
    audio_url: HttpUrlStr
    duration_seconds: PositionSeconds | None = None
    artist: str | None = None


class JamSession(BaseModel):
    """Aggregate root for a jam session.

    ``position`` is authoritative only as of ``last_updated``; use
    :meth:`estimated_position` to extrapolate a playing snapshot.
    """

    model_config = ConfigDict(strict=True)

    id: SessionIdStr = Field(default_factory=new_session_id)
    name: SessionNameStr
    host_id: UserIdStr
    participants: list[Participant] = Field(default_factory=list)
    queue: list[SongIdField] = Field(default_factory=list)
    current_song_id: OptionalSongIdField = None
    playing: bool = False
    position: PositionSeconds = 0.0
    last_updated: UtcDatetimeField = Field(default_factory=utcnow)
    is_active: bool = True
    is_public: bool = False
    max_participants: MaxParticipantsInt = SessionDefaults.DEFAULT_MAX_PARTICIPANTS
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    ended_at: UtcDatetimeField | None = None

    @model_validator(mode="after")
    def _check_membership(self) -> JamSession:
        if not self.is_active:
            return self
        if len(self.participants) > self.max_participants:
            raise ValueError(ErrorMessages.PARTICIPANT_LIMIT_EXCEEDED)
        if not any(p.user_id == self.host_id for p in self.participants):
            raise ValueError(ErrorMessages.HOST_MUST_PARTICIPATE)
        return self

    @classmethod
    def start(cls, host_id: str, config: SessionConfig) -> JamSession:
        """Create a new active session with the host as its first participant."""
        return cls(
            name=config.name,
            host_id=host_id,
            participants=[Participant(user_id=host_id)],
            is_public=config.is_public,
            max_participants=config.max_participants,
        )

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    @property
    def participant_ids(self) -> list[str]:
        return [p.user_id for p in self.participants]

    @property
    def is_full(self) -> bool:
        return self.participant_count >= self.max_participants

    def is_host(self, user_id: str) -> bool:
        return self.host_id == user_id

    def is_participant(self, user_id: str) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    def can_view(self, user_id: str) -> bool:
        return self.is_public or self.is_host(user_id) or self.is_participant(user_id)

    def ensure_active(self, operation: str) -> None:
        if not self.is_active:
            raise SessionInactiveError(self.id, operation)

    def add_participant(self, user_id: str, joined_at: datetime | None = None) -> bool:
        """Add a participant; returns False when the user is already a member.

        Private sessions only admit users who are already members.
        """
        self.ensure_active("join")
        if self.is_participant(user_id):
            return False
        if self.is_full:
            raise SessionFullError(self.id, self.max_participants)
        if not self.is_public and not self.is_host(user_id):
            raise SessionAccessDeniedError(self.id, user_id, ErrorMessages.SESSION_PRIVATE)
        self.participants.append(Participant(user_id=user_id, joined_at=joined_at or utcnow()))
        return True

    def remove_participant(self, user_id: str) -> SessionEndReason | None:
        """Remove a participant and return the end reason if the session ended."""
        self.participants = [p for p in self.participants if p.user_id != user_id]
        reason = self.end_reason_after_leave(user_id, self.participant_count)
        if reason is not None and self.is_active:
            self.deactivate()
        return reason

    def end_reason_after_leave(self, user_id: str, remaining: int) -> SessionEndReason | None:
        if self.is_host(user_id):
            return SessionEndReason.HOST_LEFT
        if remaining == 0:
            return SessionEndReason.EMPTY
        return None

    def end(self, user_id: str) -> None:
        if not self.is_host(user_id):
            raise NotHostError(self.id, user_id)
        self.deactivate()

    def deactivate(self, at: datetime | None = None) -> None:
        self.is_active = False
        self.playing = False
        self.ended_at = at or utcnow()

    def enqueue(self, user_id: str, song_id: SongId) -> bool:
        """Append a song; returns False when it is already queued."""
        self.ensure_active("add to queue")
        if not self.is_participant(user_id):
            raise NotAParticipantError(self.id, user_id)
        if song_id in self.queue:
            return False
        self.queue.append(song_id)
        return True

    def apply_transport(
        self,
        *,
        current_song_id: SongId | None = None,
        position: float | None = None,
        playing: bool | None = None,
        at: datetime | None = None,
    ) -> None:
        if current_song_id is not None:
            self.current_song_id = current_song_id
        if position is not None:
            self.position = max(0.0, float(position))
        if playing is not None:
            self.playing = playing
        self.last_updated = at or utcnow()

    def estimated_position(self, now: datetime | None = None) -> float:
        """Extrapolate the snapshot position to ``now`` while playing."""
        if not self.playing:
            return self.position
        return self.position + seconds_since(self.last_updated, now)
