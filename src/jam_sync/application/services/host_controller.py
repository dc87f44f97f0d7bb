"""Host side of a jam session: turns local transport intents into room events."""

from __future__ import annotations

import itertools
import logging
import time
from typing import TYPE_CHECKING

from ...domain.jam.events import ChannelMessage, Pause, Play, Seek, SongChange
from ...domain.jam.exceptions import ChannelUnavailableError, MediaNotReadyError
from ...domain.shared.messages import LogTemplates
from .scheduling import DeferredAction, PeriodicTask

if TYPE_CHECKING:
    from ...config.settings import SyncSettings
    from ...domain.jam.value_objects import SongId
    from ..interfaces.transport_channel import TransportChannel
    from .playback_controller import PlaybackController

logger = logging.getLogger(__name__)


class HostTransportController:
    """Broadcasts the host's play/pause/seek/song changes to the session room.

    Starting playback announces ``SongChange`` then ``Play`` and only
    resumes the host's own audio after a grace period, so participants
    get a head start on loading. A heartbeat re-announces ``Play`` while
    playing so late or drifting participants converge.

    Channel failures never block the host: the event is logged and
    skipped, and local playback proceeds.
    """

    def __init__(
        self,
        *,
        session_id: str,
        channel: TransportChannel,
        playback: PlaybackController,
        settings: SyncSettings,
    ) -> None:
        self._session_id = session_id
        self._channel = channel
        self._playback = playback
        self._settings = settings

        self._play_intent = False
        self._resume_song: SongId | None = None
        # Millisecond start keeps sequence numbers increasing across controller restarts.
        self._seq = itertools.count(int(time.time() * 1000))

        self._resume = DeferredAction(self._resume_locally, name=f"host-resume-{session_id}")
        self._heartbeat = PeriodicTask(
            self._send_heartbeat,
            settings.heartbeat_interval_seconds,
            name=f"host-heartbeat-{session_id}",
        )
        self._playback.set_on_ended_callback(self._on_song_ended)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def is_play_intended(self) -> bool:
        return self._play_intent

    @property
    def is_resume_pending(self) -> bool:
        return self._resume.is_pending

    async def play(self) -> None:
        """Resume the current song (or start the first queued one)."""
        song_id = self._playback.current_song_id
        if song_id is None:
            first = self._playback.queue.song_at(0)
            if first is None:
                logger.info(LogTemplates.HOST_NO_SONG, self._session_id)
                return
            await self.play_song(first)
            return

        position = max(0.0, self._playback.position())
        await self._announce_start(song_id, position)

    async def play_song(self, song_id: SongId) -> None:
        """Load ``song_id`` from the local queue and start it from the beginning.

        Raises:
            SongNotResolvableError: The song is not in the local queue.
        """
        self._heartbeat.cancel()
        await self._playback.load(song_id)
        await self._announce_start(song_id, 0.0)

    async def pause(self) -> None:
        self._play_intent = False
        self._resume.cancel()
        self._heartbeat.cancel()

        state = self._playback.snapshot()
        await self._emit(
            Pause(session_id=self._session_id, position=state.position, seq=next(self._seq))
        )
        if state.is_playing:
            await self._playback.pause()
        logger.info(LogTemplates.HOST_PAUSED, self._session_id, state.position)

    async def seek(self, position: float) -> None:
        position = max(0.0, position)
        await self._playback.seek(position)
        await self._emit(Seek(session_id=self._session_id, position=position, seq=next(self._seq)))

    async def next(self) -> None:
        song_id = self._playback.next_song_id()
        if song_id is None:
            logger.info(LogTemplates.HOST_QUEUE_END, self._session_id)
            if self._play_intent:
                await self.pause()
            return
        await self.play_song(song_id)

    async def previous(self) -> None:
        song_id = self._playback.previous_song_id()
        if song_id is None:
            await self.seek(0.0)
            return
        await self.play_song(song_id)

    async def close(self) -> None:
        """Cancel all timers. Local playback is left as it is."""
        self._play_intent = False
        self._resume.cancel()
        await self._heartbeat.stop()
        self._playback.set_on_ended_callback(None)

    async def _announce_start(self, song_id: SongId, position: float) -> None:
        self._play_intent = True
        self._resume_song = song_id

        await self._emit(
            SongChange(session_id=self._session_id, song_id=song_id, seq=next(self._seq))
        )
        await self._emit(
            Play(
                session_id=self._session_id,
                song_id=song_id,
                position=position,
                seq=next(self._seq),
            )
        )

        grace = self._settings.resume_grace_seconds
        logger.debug(LogTemplates.HOST_RESUME_SCHEDULED, self._session_id, grace)
        self._resume.schedule(grace)

    async def _resume_locally(self) -> None:
        song_id = self._resume_song
        if not self._play_intent or song_id is None or self._playback.current_song_id != song_id:
            logger.debug(LogTemplates.HOST_RESUME_STALE, self._session_id, song_id)
            return

        ready = await self._playback.wait_until_ready(
            initial_delay=0.0,
            interval=self._settings.ready_poll_interval_seconds,
            max_attempts=self._settings.ready_poll_max_attempts,
        )
        if not ready:
            logger.warning(LogTemplates.HOST_MEDIA_NOT_READY, self._session_id, song_id)
            return

        # The intent may have changed while waiting for the media.
        if not self._play_intent or self._playback.current_song_id != song_id:
            logger.debug(LogTemplates.HOST_RESUME_STALE, self._session_id, song_id)
            return

        try:
            await self._playback.play()
        except MediaNotReadyError:
            logger.warning(LogTemplates.HOST_MEDIA_NOT_READY, self._session_id, song_id)
            return

        self._heartbeat.start()
        logger.info(
            LogTemplates.HOST_RESUMED, self._session_id, song_id, self._playback.position()
        )

    async def _send_heartbeat(self) -> None:
        state = self._playback.snapshot()
        if not self._play_intent or state.current_song_id is None or not state.is_playing:
            return
        await self._emit(
            Play(
                session_id=self._session_id,
                song_id=state.current_song_id,
                position=state.position,
                seq=next(self._seq),
            )
        )

    async def _on_song_ended(self, song_id: SongId) -> None:
        if song_id != self._playback.current_song_id:
            return
        await self.next()

    async def _emit(self, message: ChannelMessage) -> None:
        logger.debug(LogTemplates.HOST_EMIT, self._session_id, message.name)
        try:
            await self._channel.broadcast(message)
        except ChannelUnavailableError:
            logger.warning(LogTemplates.CHANNEL_UNAVAILABLE_SKIP, message.name, self._session_id)
