"""Participant side of a jam session: reconciles local playback with host events."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ...domain.jam.events import ChannelMessage, Pause, Play, Seek, SongChange, TransportEvent
from ...domain.jam.exceptions import MediaNotReadyError, SongNotResolvableError
from ...domain.jam.value_objects import SyncState
from ...domain.shared.exceptions import InvalidOperationError
from ...domain.shared.messages import LogTemplates
from .scheduling import DeferredAction

if TYPE_CHECKING:
    from ...config.settings import SyncSettings
    from ...domain.jam.entities import JamSession
    from ...domain.jam.value_objects import SongId
    from .playback_controller import PlaybackController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingTarget:
    """Latest host intent for a song that is still loading."""

    song_id: SongId
    position: float | None = None
    play: bool = False


class ParticipantSyncEngine:
    """Keeps one participant's local audio aligned to the host.

    Events are applied one at a time. While a song loads, only the most
    recent target (position and play intent) is kept and applied once the
    media is ready. Once playing, the engine seeks only when the local
    position is more than ``drift_threshold_seconds`` away from the host.
    """

    def __init__(
        self,
        *,
        session_id: str,
        playback: PlaybackController,
        settings: SyncSettings,
        name: str = "participant",
    ) -> None:
        self._session_id = session_id
        self._playback = playback
        self._settings = settings
        self._name = name

        self._state = SyncState.IDLE
        self._pending: PendingTarget | None = None
        self._last_seq: int | None = None
        self._ready_checks = 0
        self._lock = asyncio.Lock()
        self._ready_poll = DeferredAction(self._check_ready, name=f"sync-ready-{name}")

        self._playback.set_on_ready_callback(self._on_media_ready)
        self._playback.set_on_ended_callback(self._on_media_ended)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def pending_target(self) -> PendingTarget | None:
        return self._pending

    async def handle(self, message: ChannelMessage) -> None:
        """Channel handler: apply one message from the session room."""
        if message.session_id != self._session_id:
            logger.debug(LogTemplates.SYNC_IGNORED_SESSION, self._name, message.session_id)
            return
        if not isinstance(message, TransportEvent):
            return

        async with self._lock:
            if message.seq is not None:
                if self._last_seq is not None and message.seq <= self._last_seq:
                    logger.debug(
                        LogTemplates.SYNC_STALE_EVENT,
                        self._name,
                        message.name,
                        message.seq,
                        self._last_seq,
                    )
                    return
                self._last_seq = message.seq

            if isinstance(message, SongChange):
                await self._on_song_change(message)
            elif isinstance(message, Play):
                await self._on_play(message)
            elif isinstance(message, Pause):
                await self._on_pause(message)
            elif isinstance(message, Seek):
                await self._on_seek(message)

    async def bootstrap(self, session: JamSession) -> None:
        """Align to the stored snapshot when joining mid-session."""
        song_id = session.current_song_id
        if song_id is None:
            return

        position = session.estimated_position()
        logger.info(LogTemplates.SYNC_BOOTSTRAP, self._name, song_id, position, session.playing)
        async with self._lock:
            await self._load(PendingTarget(song_id, position, session.playing), "bootstrap")

    async def close(self) -> None:
        """Cancel pending work and return to IDLE."""
        self._ready_poll.cancel()
        async with self._lock:
            self._pending = None
            self._transition(SyncState.IDLE)
        self._playback.set_on_ready_callback(None)
        self._playback.set_on_ended_callback(None)

    async def wait_until_settled(self) -> None:
        """Wait for an in-flight ready poll to finish."""
        await self._ready_poll.wait()

    # ── Event handlers ────────────────────────────────────────────────

    async def _on_song_change(self, event: SongChange) -> None:
        if self._is_current(event.song_id):
            return
        await self._load(PendingTarget(event.song_id), event.name)

    async def _on_play(self, event: Play) -> None:
        if not self._is_current(event.song_id):
            await self._load(PendingTarget(event.song_id, event.position, play=True), event.name)
            return

        target = PendingTarget(event.song_id, event.position, play=True)
        if self._state == SyncState.LOADING:
            self._pending = target
            if not self._ready_poll.is_pending:
                self._start_ready_poll()
            return

        if not self._playback.is_playing():
            self._pending = target
            if self._playback.is_ready():
                await self._apply_pending()
            else:
                self._transition(SyncState.LOADING)
                self._start_ready_poll()
            return

        local = self._playback.position()
        drift = abs(local - event.position)
        if drift > self._settings.drift_threshold_seconds:
            logger.info(
                LogTemplates.SYNC_DRIFT_CORRECTED, self._name, drift, local, event.position
            )
            await self._playback.seek(event.position)
        else:
            logger.debug(LogTemplates.SYNC_DRIFT_IGNORED, self._name, drift)

    async def _on_pause(self, event: Pause) -> None:
        if self._pending is not None:
            self._pending = replace(self._pending, play=False)
        if self._playback.is_playing():
            await self._playback.pause()
        if self._state == SyncState.PLAYING:
            self._transition(SyncState.PAUSED)

    async def _on_seek(self, event: Seek) -> None:
        if self._state == SyncState.LOADING and self._pending is not None:
            self._pending = replace(self._pending, position=event.position)
            return
        if self._state.has_media:
            await self._playback.seek(event.position)

    # ── Loading ───────────────────────────────────────────────────────

    def _is_current(self, song_id: SongId) -> bool:
        return self._state != SyncState.IDLE and self._playback.current_song_id == song_id

    async def _load(self, target: PendingTarget, event_name: str) -> None:
        try:
            await self._playback.load(target.song_id)
        except SongNotResolvableError:
            logger.warning(
                LogTemplates.SYNC_SONG_NOT_RESOLVABLE, self._name, event_name, target.song_id
            )
            return

        self._pending = target
        self._transition(SyncState.LOADING)
        logger.debug(LogTemplates.SYNC_WAITING_READY, self._name, target.song_id)
        self._start_ready_poll()

    def _start_ready_poll(self) -> None:
        self._ready_checks = 0
        self._ready_poll.schedule(self._settings.ready_poll_initial_seconds)

    async def _check_ready(self) -> None:
        async with self._lock:
            if self._state != SyncState.LOADING:
                return
            if self._playback.is_ready():
                await self._apply_pending()
                return

            self._ready_checks += 1
            if self._ready_checks >= self._settings.ready_poll_max_attempts:
                logger.warning(
                    LogTemplates.SYNC_READY_TIMEOUT,
                    self._name,
                    self._playback.current_song_id,
                    self._ready_checks,
                )
                return
            self._ready_poll.reschedule(self._settings.ready_poll_interval_seconds)

    async def _on_media_ready(self, song_id: SongId) -> None:
        async with self._lock:
            if self._state != SyncState.LOADING or self._pending is None:
                return
            if self._pending.song_id != song_id:
                return
            self._ready_poll.cancel()
            await self._apply_pending()

    async def _on_media_ended(self, song_id: SongId) -> None:
        async with self._lock:
            if self._state == SyncState.PLAYING and self._playback.current_song_id == song_id:
                self._transition(SyncState.PAUSED)

    async def _apply_pending(self) -> None:
        target, self._pending = self._pending, None
        self._transition(SyncState.SYNCING)
        if target is None:
            self._transition(SyncState.PAUSED)
            return

        if target.position is not None:
            local = self._playback.position()
            if abs(local - target.position) > self._settings.drift_threshold_seconds:
                await self._playback.seek(target.position)

        if not target.play:
            self._transition(SyncState.PAUSED)
            return

        try:
            await self._playback.play()
        except MediaNotReadyError as e:
            logger.warning(LogTemplates.SYNC_PLAY_FAILED, self._name, e)
            self._pending = target
            self._transition(SyncState.LOADING)
            self._start_ready_poll()
            return
        self._transition(SyncState.PLAYING)

    def _transition(self, new_state: SyncState) -> None:
        if new_state == self._state:
            return
        if not self._state.can_transition_to(new_state):
            raise InvalidOperationError(
                f"transition to {new_state.value}", self._state.value
            )
        logger.debug(LogTemplates.SYNC_TRANSITION, self._name, self._state.value, new_state.value)
        self._state = new_state
