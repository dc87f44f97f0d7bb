"""Centralized constants for wire event names, database schema, and sync tuning.

This module provides reusable constants that reduce magic strings and improve maintainability.
"""

from __future__ import annotations


class ChannelEvents:
    """Real-time event names exchanged over the session room.

    These strings are the wire protocol shared with existing web clients.
    """

    JOIN_ROOM = "join:jam"
    LEAVE_ROOM = "leave:jam"

    PLAY = "jam:play"
    PAUSE = "jam:pause"
    SEEK = "jam:seek"
    SONG_CHANGE = "jam:song_change"

    PARTICIPANT_JOINED = "jam:participant_joined"
    PARTICIPANT_LEFT = "jam:participant_left"
    QUEUE_UPDATED = "jam:queue_updated"

    MEMBERSHIP = (PARTICIPANT_JOINED, PARTICIPANT_LEFT)
    ALL = (PLAY, PAUSE, SEEK, SONG_CHANGE, PARTICIPANT_JOINED, PARTICIPANT_LEFT, QUEUE_UPDATED)

    @staticmethod
    def room_name(session_id: str) -> str:
        return f"jam:{session_id}"


class WireKeys:
    """Payload keys used on the wire."""

    SESSION_ID = "jamSessionId"
    SONG_ID = "songId"
    POSITION = "position"
    USER = "user"
    USER_ID = "userId"
    QUEUE = "queue"
    SENT_AT = "sentAt"
    SEQ = "seq"


class SyncConstants:
    """Default tuning for the synchronization protocol.

    The runtime values come from ``SyncSettings``; these are the defaults.
    """

    DRIFT_THRESHOLD_SECONDS = 1.0
    RESUME_GRACE_SECONDS = 1.0
    HEARTBEAT_INTERVAL_SECONDS = 0.5
    READY_POLL_INITIAL_SECONDS = 0.05
    READY_POLL_INTERVAL_SECONDS = 0.3
    READY_POLL_MAX_ATTEMPTS = 100


class SessionDefaults:
    DEFAULT_MAX_PARTICIPANTS = 10
    MAX_PARTICIPANTS_CAP = 100
    LIST_LIMIT = 50


class DatabaseTables:
    """Database table names."""

    JAM_SESSIONS = "jam_sessions"
    JAM_PARTICIPANTS = "jam_participants"
    JAM_QUEUE = "jam_queue"


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    These pragmas are applied to each connection to ensure consistent behavior.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class DatabaseURLSchemes:
    """Valid database URL schemes for validation."""

    SQLITE = "sqlite://"

    # For in-memory testing
    MEMORY = ":memory:"
    MEMORY_SHARED_URI = "file:jam-sync-{name}?mode=memory&cache=shared"


class HttpHeaders:
    USER_ID = "X-User-Id"
