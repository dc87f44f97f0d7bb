"""Clock-driven media player that renders no audio.

Stands in for a browser audio element: loading takes ``load_latency``
seconds, after which the duration is known and the source is ready.
The playhead advances with the monotonic clock while playing.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable

from jam_sync.application.interfaces.media_player import LocalMediaPlayer
from jam_sync.domain.jam.exceptions import MediaNotReadyError

logger = logging.getLogger(__name__)

UrlCallback = Callable[[str], Awaitable[None]]


class SimulatedMediaPlayer(LocalMediaPlayer):
    def __init__(
        self,
        *,
        load_latency: float = 0.0,
        default_duration: float = 180.0,
        durations: dict[str, float] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._load_latency = max(0.0, load_latency)
        self._default_duration = default_duration
        self._durations = dict(durations or {})
        self._clock = clock

        self._source: str | None = None
        self._ready = False
        self._duration: float | None = None
        self._playing = False
        self._base_position = 0.0
        self._started_at = 0.0

        self._load_task: asyncio.Task[None] | None = None
        self._end_task: asyncio.Task[None] | None = None
        self._on_ready: UrlCallback | None = None
        self._on_ended: UrlCallback | None = None

        # Every seek target, in order; lets callers count corrections.
        self.seeks: list[float] = []
        self.play_calls = 0

    @property
    def load_latency(self) -> float:
        return self._load_latency

    def set_load_latency(self, seconds: float) -> None:
        self._load_latency = max(0.0, seconds)

    @property
    def source(self) -> str | None:
        return self._source

    def set_on_ready_callback(self, callback: UrlCallback | None) -> None:
        self._on_ready = callback

    def set_on_ended_callback(self, callback: UrlCallback | None) -> None:
        self._on_ended = callback

    async def load(self, url: str) -> None:
        self._cancel(self._load_task)
        self._cancel(self._end_task)
        self._source = url
        self._ready = False
        self._duration = None
        self._playing = False
        self._base_position = 0.0
        self._load_task = asyncio.create_task(self._finish_loading(url), name="media-load")

    async def play(self) -> None:
        if not self._ready:
            raise MediaNotReadyError("play")
        self.play_calls += 1
        if self._playing:
            return
        self._started_at = self._clock()
        self._playing = True
        self._schedule_end()

    async def pause(self) -> None:
        if not self._playing:
            return
        self._base_position = self.get_position()
        self._playing = False
        self._cancel(self._end_task)

    async def seek(self, seconds: float) -> None:
        target = max(0.0, seconds)
        if self._duration is not None:
            target = min(target, self._duration)
        self.seeks.append(target)
        self._base_position = target
        if self._playing:
            self._started_at = self._clock()
            self._schedule_end()

    def get_position(self) -> float:
        position = self._base_position
        if self._playing:
            position += self._clock() - self._started_at
        if self._duration is not None:
            position = min(position, self._duration)
        return position

    def get_duration(self) -> float | None:
        return self._duration if self._ready else None

    def is_playing(self) -> bool:
        return self._playing

    def is_ready(self) -> bool:
        return self._ready

    async def close(self) -> None:
        for task in (self._load_task, self._end_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._load_task = None
        self._end_task = None
        self._playing = False

    async def _finish_loading(self, url: str) -> None:
        await asyncio.sleep(self._load_latency)
        if self._source != url:
            return
        self._duration = self._durations.get(url, self._default_duration)
        self._ready = True
        logger.debug("Simulated media ready: %s (%.1fs)", url, self._duration)
        if self._on_ready is not None:
            await self._on_ready(url)

    def _schedule_end(self) -> None:
        self._cancel(self._end_task)
        remaining = (self._duration or 0.0) - self.get_position()
        self._end_task = asyncio.create_task(self._finish_playing(remaining), name="media-end")

    async def _finish_playing(self, remaining: float) -> None:
        await asyncio.sleep(max(0.0, remaining))
        url = self._source
        self._base_position = self._duration or 0.0
        self._playing = False
        if self._on_ended is not None and url is not None:
            await self._on_ended(url)

    @staticmethod
    def _cancel(task: asyncio.Task[None] | None) -> None:
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
