"""Immutable value objects for the jam bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import PlainSerializer, PlainValidator

from jam_sync.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class SongId:
    """Reference to a song in the catalog (the catalog's primary key)."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_SONG_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)


def _to_song_id(v: object) -> SongId:
    if isinstance(v, SongId):
        return v
    if isinstance(v, str):
        return SongId(v)
    raise ValueError(ErrorMessages.EMPTY_SONG_ID)


# Pydantic-compatible type aliases for SongId fields.
# Serializes as plain string in JSON, stores as SongId in the model.
SongIdField = Annotated[
    SongId,
    PlainValidator(_to_song_id),
    PlainSerializer(lambda v: v.value, return_type=str),
]

OptionalSongIdField = Annotated[
    SongId | None,
    PlainValidator(lambda v: None if v is None else _to_song_id(v)),
    PlainSerializer(lambda v: v.value if v is not None else None, return_type=str | None),
]


class SyncState(Enum):
    """Participant playback state relative to the host's current song.

    State transitions:
    - IDLE -> LOADING (song requested)
    - LOADING -> LOADING (a different song requested before the first loaded)
    - LOADING -> SYNCING (media ready)
    - SYNCING -> PLAYING (aligned and started)
    - SYNCING -> PAUSED (loaded without a play intent)
    - PLAYING -> PAUSED (pause, media ended)
    - PLAYING/PAUSED -> SYNCING (re-alignment of the loaded song)
    - Any -> LOADING (song change)
    - Any -> IDLE (teardown)
    """

    IDLE = "idle"
    LOADING = "loading"
    SYNCING = "syncing"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: SyncState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            SyncState.IDLE: {SyncState.LOADING},
            SyncState.LOADING: {SyncState.LOADING, SyncState.SYNCING, SyncState.IDLE},
            SyncState.SYNCING: {
                SyncState.PLAYING,
                SyncState.PAUSED,
                SyncState.LOADING,
                SyncState.IDLE,
            },
            SyncState.PLAYING: {
                SyncState.PAUSED,
                SyncState.SYNCING,
                SyncState.LOADING,
                SyncState.IDLE,
            },
            SyncState.PAUSED: {SyncState.SYNCING, SyncState.LOADING, SyncState.IDLE},
        }
        return target in valid_transitions.get(self, set())

    @property
    def has_media(self) -> bool:
        """True once the requested song finished loading."""
        return self in {SyncState.SYNCING, SyncState.PLAYING, SyncState.PAUSED}

    @property
    def is_playing(self) -> bool:
        return self == SyncState.PLAYING


class SessionEndReason(Enum):
    """Reasons a jam session can be deactivated."""

    HOST_LEFT = "host_left"
    EMPTY = "empty"
    HOST_ENDED = "host_ended"
    STALE = "stale"


class SessionRole(Enum):
    """Role of the local client inside a jam session."""

    HOST = "host"
    PARTICIPANT = "participant"
