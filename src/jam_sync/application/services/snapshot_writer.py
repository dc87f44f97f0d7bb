"""Server-side persistence of coarse transport snapshots."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.jam.events import ChannelMessage, Pause, Play, SongChange
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.jam.repository import SessionStore

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Records relayed transport events into the session store.

    Snapshots only bootstrap late joiners; a failed write is logged and
    never interrupts relaying.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    async def record(self, message: ChannelMessage) -> None:
        if isinstance(message, Play):
            song_id, position, playing = message.song_id, message.position, True
        elif isinstance(message, Pause):
            song_id, position, playing = None, message.position, False
        elif isinstance(message, SongChange):
            song_id, position, playing = message.song_id, 0.0, True
        else:
            return

        try:
            await self._store.update_transport_state(
                message.session_id,
                current_song_id=song_id,
                position=position,
                playing=playing,
            )
        except Exception as e:
            logger.warning(LogTemplates.SESSION_SNAPSHOT_FAILED, message.session_id, e)
            return

        logger.debug(
            LogTemplates.SESSION_SNAPSHOT_WRITTEN, message.session_id, song_id, position, playing
        )
