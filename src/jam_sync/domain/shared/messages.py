"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # ID Validation Errors
    EMPTY_SONG_ID = "Song ID cannot be empty"

    # Session Errors
    SESSION_NAME_REQUIRED = "Jam session name is required"
    SESSION_NOT_FOUND = "Jam session not found"
    SESSION_INACTIVE = "This jam session has ended"
    SESSION_FULL = "Jam session is full"
    NOT_A_PARTICIPANT = "You must be a participant to add songs"
    NOT_HOST = "Only the host can end the jam session"
    NO_ACCESS = "You don't have access to this jam session"
    SESSION_PRIVATE = "This jam session is private"
    SONG_NOT_FOUND = "Song not found"
    SONG_ID_REQUIRED = "Song ID is required"
    HOST_MUST_PARTICIPATE = "The host must be a participant while the session is active"
    PARTICIPANT_LIMIT_EXCEEDED = "Participant count exceeds max_participants"

    # Sync Errors
    SONG_NOT_RESOLVABLE = "Song '{song_id}' is not in the local queue"
    CHANNEL_UNAVAILABLE = "Transport channel is not connected"
    MEDIA_NOT_READY = "Cannot play: media is not ready"
    UNKNOWN_EVENT = "Unknown transport event '{name}'"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Settings Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # HTTP / identity
    USER_HEADER_REQUIRED = "X-User-Id header is required"
    INTERNAL_ERROR = "Internal server error"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Application Lifecycle
    APP_STARTING = "Starting jam sync server (environment: {environment})"
    APP_LISTENING = "Listening on %s:%s"
    APP_STOPPED = "Jam sync server stopped"
    APP_KEYBOARD_INTERRUPT = "Received keyboard interrupt"
    APP_FATAL_ERROR = "Fatal error: %s"

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Session Store
    SESSION_CREATED = "Jam session %s created by %s"
    SESSION_JOINED = "User %s joined jam session %s"
    SESSION_ALREADY_JOINED = "User %s already in jam session %s"
    SESSION_LEFT = "User %s left jam session %s"
    SESSION_ENDED = "Jam session %s ended (%s)"
    SESSION_QUEUE_APPENDED = "Song %s added to jam queue %s"
    SESSION_SNAPSHOT_WRITTEN = "Snapshot for %s: song=%s position=%.2f playing=%s"
    SESSION_SNAPSHOT_FAILED = "Failed to write snapshot for %s: %s"

    # Cleanup Operations
    CLEANUP_STARTED = "Cleanup job started"
    CLEANUP_STOPPED = "Cleanup job stopped"
    CLEANUP_ALREADY_RUNNING = "Cleanup job already running"
    CLEANUP_COMPLETED = "Cleanup completed: %s stale sessions deactivated"
    CLEANUP_FAILED = "Cleanup failed: %s"

    # Transport Channel
    CHANNEL_JOINED = "Channel %s joined room %s"
    CHANNEL_LEFT = "Channel %s left room %s"
    CHANNEL_UNAVAILABLE_SKIP = "Channel unavailable, skipping %s for session %s"
    CHANNEL_DROPPED_EVENT = "Dropping %s for disconnected receiver %s"
    CHANNEL_HANDLER_ERROR = "Error in transport handler for %s: %s"
    CHANNEL_CONNECTED = "Connected to relay at %s"
    CHANNEL_DISCONNECTED = "Disconnected from relay"
    CHANNEL_BAD_PAYLOAD = "Ignoring malformed %s payload: %s"

    # Relay Server
    RELAY_CLIENT_CONNECTED = "Client %s connected"
    RELAY_CLIENT_DISCONNECTED = "Client %s disconnected"
    RELAY_ROOM_JOINED = "Socket %s joined jam session %s"
    RELAY_ROOM_LEFT = "Socket %s left jam session %s"
    RELAY_EVENT = "Relaying %s for session %s from %s"
    RELAY_MISSING_SESSION = "Ignoring %s without jamSessionId from %s"

    # Host Controller
    HOST_EMIT = "HOST %s: emitting %s"
    HOST_RESUME_SCHEDULED = "HOST %s: local resume in %.2fs"
    HOST_RESUME_STALE = "HOST %s: skipping stale resume for %s"
    HOST_RESUMED = "HOST %s: resumed %s at %.2f"
    HOST_PAUSED = "HOST %s: paused at %.2f"
    HOST_NO_SONG = "HOST %s: nothing to play"
    HOST_QUEUE_END = "HOST %s: reached end of queue"
    HOST_MEDIA_NOT_READY = "HOST %s: media for %s never became ready"

    # Participant Sync Engine
    SYNC_TRANSITION = "SYNC %s: %s -> %s"
    SYNC_IGNORED_SESSION = "SYNC %s: ignoring event for session %s"
    SYNC_STALE_EVENT = "SYNC %s: dropping stale %s (seq %s <= %s)"
    SYNC_SONG_NOT_RESOLVABLE = "SYNC %s: dropping %s, song %s not in local queue"
    SYNC_DRIFT_CORRECTED = "SYNC %s: correcting drift of %.2fs (local %.2f, host %.2f)"
    SYNC_DRIFT_IGNORED = "SYNC %s: drift %.2fs within threshold"
    SYNC_WAITING_READY = "SYNC %s: waiting for %s to become ready"
    SYNC_READY_TIMEOUT = "SYNC %s: %s not ready after %d checks"
    SYNC_PLAY_FAILED = "SYNC %s: playback failed: %s"
    SYNC_BOOTSTRAP = "SYNC %s: bootstrapping song=%s position=%.2f playing=%s"

    # Jam Session Service
    JAM_ROLE = "Joined %s as %s"
    JAM_TEARDOWN = "Tearing down session %s"
    JAM_QUEUE_REPROJECTED = "Re-projected queue for %s (%d songs)"

    # Catalog / Directory
    CATALOG_LOOKUP_FAILED = "Catalog lookup for %s failed: %s"
    DIRECTORY_LOOKUP_FAILED = "User lookup for %s failed: %s"


class ResponseMessages:
    """Success messages returned by the HTTP API."""

    SESSION_JOINED = "Joined jam session"
    SESSION_ALREADY_JOINED = "Already in the jam session"
    SESSION_LEFT = "Left jam session"
    SESSION_ENDED = "Jam session ended"
    SONG_QUEUED = "Song added to queue"
