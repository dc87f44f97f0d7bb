"""Background sweep that ends jam sessions abandoned by their host.

A host whose client crashed never emits a leave, so its session stays
active with a frozen transport snapshot. The sweep deactivates any
active session whose ``last_updated`` is older than the stale window.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel

from jam_sync.domain.shared.datetime_utils import utcnow
from jam_sync.domain.shared.messages import LogTemplates
from jam_sync.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from ...config.settings import CleanupSettings
    from ...domain.jam.repository import SessionStore

logger = logging.getLogger(__name__)


class CleanupStats(BaseModel):
    sessions_deactivated: NonNegativeInt = 0


class CleanupJob:
    def __init__(self, *, session_store: SessionStore, settings: CleanupSettings) -> None:
        self._store = session_store
        self._stale_after = timedelta(hours=settings.stale_session_hours)
        self._interval = settings.cleanup_interval_minutes * 60
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            logger.warning(LogTemplates.CLEANUP_ALREADY_RUNNING)
            return
        self._task = asyncio.create_task(self._sweep_forever())
        logger.info(LogTemplates.CLEANUP_STARTED)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info(LogTemplates.CLEANUP_STOPPED)

    async def _sweep_forever(self) -> None:
        while True:
            await self.run_cleanup()
            await asyncio.sleep(self._interval)

    async def run_cleanup(self) -> CleanupStats:
        """Deactivate stale sessions once; store failures are logged, not raised."""
        stats = CleanupStats()
        try:
            stats.sessions_deactivated = await self._store.deactivate_stale(
                utcnow() - self._stale_after
            )
        except Exception as e:
            logger.error(LogTemplates.CLEANUP_FAILED, e)
            return stats

        if stats.sessions_deactivated:
            logger.info(LogTemplates.CLEANUP_COMPLETED, stats.sessions_deactivated)
        return stats
