"""Jam session bounded context."""

from jam_sync.domain.jam.entities import (
    JamSession,
    Participant,
    SessionConfig,
    SongInfo,
    UserProfile,
)
from jam_sync.domain.jam.events import (
    ChannelMessage,
    ParticipantJoined,
    ParticipantLeft,
    Pause,
    Play,
    QueueUpdated,
    Seek,
    SongChange,
    TransportEvent,
    parse_message,
)
from jam_sync.domain.jam.value_objects import SongId, SyncState

__all__ = [
    "JamSession",
    "Participant",
    "SessionConfig",
    "SongInfo",
    "UserProfile",
    "ChannelMessage",
    "TransportEvent",
    "Play",
    "Pause",
    "Seek",
    "SongChange",
    "ParticipantJoined",
    "ParticipantLeft",
    "QueueUpdated",
    "parse_message",
    "SongId",
    "SyncState",
]
