"""Single handle over a client's local playback.

Every sync component talks to audio through a ``PlaybackController``
built once by the container: it owns the local media player, the
projected queue, and the song catalog used to turn song ids into URLs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from ...domain.jam.exceptions import SongNotResolvableError
from ...domain.jam.value_objects import OptionalSongIdField, SongId
from ...domain.shared.types import PositionSeconds
from .queue_projector import LocalQueue

if TYPE_CHECKING:
    from ...domain.jam.entities import SongInfo
    from ..interfaces.catalog import SongCatalog
    from ..interfaces.media_player import LocalMediaPlayer

logger = logging.getLogger(__name__)

SongCallback = Callable[[SongId], Awaitable[None]]


class LocalPlaybackState(BaseModel):
    """What one client is playing. Never shared directly with other clients."""

    model_config = ConfigDict(frozen=True)

    current_song_id: OptionalSongIdField = None
    is_playing: bool = False
    position: PositionSeconds = 0.0
    duration: PositionSeconds | None = None


class PlaybackController:
    def __init__(self, *, player: LocalMediaPlayer, catalog: SongCatalog) -> None:
        self._player = player
        self._catalog = catalog
        self._queue = LocalQueue()
        self._current: SongInfo | None = None
        self._on_ended: SongCallback | None = None
        self._on_ready: SongCallback | None = None

        self._player.set_on_ended_callback(self._handle_player_ended)
        self._player.set_on_ready_callback(self._handle_player_ready)

    @property
    def queue(self) -> LocalQueue:
        return self._queue

    def set_queue(self, queue: LocalQueue) -> None:
        self._queue = queue

    @property
    def current_song_id(self) -> SongId | None:
        return self._current.id if self._current is not None else None

    @property
    def current_song(self) -> SongInfo | None:
        return self._current

    def set_on_ended_callback(self, callback: SongCallback | None) -> None:
        self._on_ended = callback

    def set_on_ready_callback(self, callback: SongCallback | None) -> None:
        self._on_ready = callback

    async def load(self, song_id: SongId) -> SongInfo:
        """Select ``song_id`` from the local queue and start loading it.

        Raises:
            SongNotResolvableError: The song is not in the local queue, or
                the catalog no longer knows it.
        """
        if song_id not in self._queue:
            raise SongNotResolvableError(song_id.value)

        info = await self._catalog.resolve(song_id)
        if info is None:
            raise SongNotResolvableError(song_id.value)

        self._current = info
        await self._player.load(info.audio_url)
        return info

    async def play(self) -> None:
        """Start the loaded song. Raises ``MediaNotReadyError`` while loading."""
        await self._player.play()

    async def pause(self) -> None:
        await self._player.pause()

    async def seek(self, seconds: float) -> None:
        await self._player.seek(max(0.0, seconds))

    def position(self) -> float:
        return self._player.get_position()

    def is_playing(self) -> bool:
        return self._player.is_playing()

    def is_ready(self) -> bool:
        """True once the current song's media reports a duration."""
        if self._current is None or self._player.source != self._current.audio_url:
            return False
        return self._player.get_duration() is not None

    async def wait_until_ready(
        self, *, initial_delay: float, interval: float, max_attempts: int
    ) -> bool:
        """Poll until the current song is ready; False after ``max_attempts`` checks."""
        await asyncio.sleep(initial_delay)
        for attempt in range(max_attempts):
            if self.is_ready():
                return True
            if attempt + 1 < max_attempts:
                await asyncio.sleep(interval)
        return False

    def snapshot(self) -> LocalPlaybackState:
        return LocalPlaybackState(
            current_song_id=self.current_song_id,
            is_playing=self._player.is_playing(),
            position=max(0.0, self._player.get_position()),
            duration=self._player.get_duration() if self.is_ready() else None,
        )

    def next_song_id(self) -> SongId | None:
        return self._queue.next_after(self.current_song_id)

    def previous_song_id(self) -> SongId | None:
        return self._queue.previous_before(self.current_song_id)

    async def unload(self) -> None:
        """Stop playback and forget the current song."""
        if self._player.is_playing():
            await self._player.pause()
        self._current = None

    async def _handle_player_ended(self, url: str) -> None:
        current = self._current
        if current is None or current.audio_url != url:
            return
        if self._on_ended is not None:
            await self._on_ended(current.id)

    async def _handle_player_ready(self, url: str) -> None:
        current = self._current
        if current is None or current.audio_url != url:
            return
        if self._on_ready is not None:
            await self._on_ready(current.id)
