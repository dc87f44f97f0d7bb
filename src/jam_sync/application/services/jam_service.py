"""Client-side orchestration of jam session membership and sync roles."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.jam.entities import Participant, UserProfile
from ...domain.jam.events import ChannelMessage, ParticipantJoined, ParticipantLeft, QueueUpdated
from ...domain.jam.exceptions import ChannelUnavailableError
from ...domain.jam.value_objects import SessionRole
from ...domain.shared.exceptions import InvalidOperationError
from ...domain.shared.messages import LogTemplates
from .host_controller import HostTransportController
from .sync_engine import ParticipantSyncEngine

if TYPE_CHECKING:
    from ...config.settings import SyncSettings
    from ...domain.jam.entities import JamSession, SessionConfig
    from ...domain.jam.repository import SessionStore
    from ...domain.jam.value_objects import SongId
    from ..interfaces.catalog import UserDirectory
    from ..interfaces.transport_channel import TransportChannel
    from .playback_controller import PlaybackController
    from .queue_projector import QueueProjector

logger = logging.getLogger(__name__)


class JamSessionService:
    """One user's view of the jam session they are in.

    Entering a session projects its queue onto the local playlist, joins
    the room and starts the role's sync component: the host gets a
    ``HostTransportController``, everyone else a ``ParticipantSyncEngine``.
    A client is in at most one session; entering another tears the
    current one down first.
    """

    def __init__(
        self,
        *,
        user_id: str,
        store: SessionStore,
        channel: TransportChannel,
        playback: PlaybackController,
        projector: QueueProjector,
        settings: SyncSettings,
        user_directory: UserDirectory | None = None,
    ) -> None:
        self._user_id = user_id
        self._store = store
        self._channel = channel
        self._playback = playback
        self._projector = projector
        self._settings = settings
        self._directory = user_directory

        self._session: JamSession | None = None
        self._host: HostTransportController | None = None
        self._engine: ParticipantSyncEngine | None = None

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def session(self) -> JamSession | None:
        return self._session

    @property
    def role(self) -> SessionRole | None:
        if self._session is None:
            return None
        return SessionRole.HOST if self._session.is_host(self._user_id) else SessionRole.PARTICIPANT

    @property
    def host(self) -> HostTransportController:
        """Transport controls; only the host may drive playback."""
        if self._host is None:
            raise InvalidOperationError("control playback", str(self.role and self.role.value))
        return self._host

    @property
    def engine(self) -> ParticipantSyncEngine | None:
        return self._engine

    async def create(self, config: SessionConfig) -> JamSession:
        if self._session is not None:
            await self.leave()
        session = await self._store.create(self._user_id, config)
        await self._enter(session)
        return session

    async def join(self, session_id: str) -> JamSession:
        if self._session is not None and self._session.id != session_id:
            await self.leave()

        session = await self._store.join(session_id, self._user_id)
        if self._session is None:
            await self._enter(session)
            await self._announce(
                ParticipantJoined(session_id=session.id, user=await self._profile()),
                exclude_self=False,
            )
        return session

    async def leave(self) -> None:
        """Leave the current session; local sync state is torn down even if the store fails."""
        session = self._session
        if session is None:
            return

        try:
            await self._store.leave(session.id, self._user_id)
            await self._announce(
                ParticipantLeft(session_id=session.id, user_id=self._user_id), exclude_self=False
            )
        finally:
            await self._teardown()

    async def end(self) -> None:
        """End the session for everyone (host only)."""
        session = self._session
        if session is None:
            return
        await self._store.end(session.id, self._user_id)
        # Participants treat the host's departure as the end of the session.
        await self._announce(
            ParticipantLeft(session_id=session.id, user_id=self._user_id), exclude_self=False
        )
        await self._teardown()

    async def add_to_queue(self, song_id: SongId) -> JamSession:
        session = self._session
        if session is None:
            raise InvalidOperationError("add to queue", "not in a session")

        updated = await self._store.append_to_queue(session.id, self._user_id, song_id)
        self._apply_queue(updated.queue)
        await self._announce(QueueUpdated(session_id=updated.id, queue=list(updated.queue)))
        return updated

    async def close(self) -> None:
        await self._teardown()

    async def _enter(self, session: JamSession) -> None:
        self._session = session
        self._playback.set_queue(self._projector.project(session))

        await self._channel.join(session.id)
        self._channel.subscribe(session.id, self._on_message)

        if session.is_host(self._user_id):
            self._host = HostTransportController(
                session_id=session.id,
                channel=self._channel,
                playback=self._playback,
                settings=self._settings,
            )
        else:
            self._engine = ParticipantSyncEngine(
                session_id=session.id,
                playback=self._playback,
                settings=self._settings,
                name=self._user_id,
            )
            self._channel.subscribe(session.id, self._engine.handle)
            await self._engine.bootstrap(session)

        logger.info(LogTemplates.JAM_ROLE, session.id, self.role.value if self.role else None)

    async def _teardown(self) -> None:
        session = self._session
        if session is None:
            return

        logger.info(LogTemplates.JAM_TEARDOWN, session.id)
        self._channel.unsubscribe(session.id, self._on_message)
        if self._engine is not None:
            self._channel.unsubscribe(session.id, self._engine.handle)
            await self._engine.close()
            self._engine = None
        if self._host is not None:
            await self._host.close()
            self._host = None

        await self._playback.unload()
        await self._channel.leave(session.id)
        self._session = None

    async def _on_message(self, message: ChannelMessage) -> None:
        session = self._session
        if session is None or message.session_id != session.id:
            return

        if isinstance(message, ParticipantJoined):
            if not session.is_participant(message.user.id):
                session.participants.append(Participant(user_id=message.user.id))
        elif isinstance(message, ParticipantLeft):
            session.remove_participant(message.user_id)
            if not session.is_active:
                await self._teardown()
        elif isinstance(message, QueueUpdated):
            self._apply_queue(message.queue)

    def _apply_queue(self, queue: list[SongId]) -> None:
        projected = self._projector.project_ids(queue)
        self._playback.set_queue(projected)
        if self._session is not None:
            self._session.queue = list(projected)
            logger.debug(LogTemplates.JAM_QUEUE_REPROJECTED, self._session.id, len(projected))

    async def _profile(self) -> UserProfile:
        if self._directory is not None:
            profile = await self._directory.resolve(self._user_id)
            if profile is not None:
                return profile
        return UserProfile(id=self._user_id)

    async def _announce(self, message: ChannelMessage, *, exclude_self: bool = True) -> None:
        try:
            await self._channel.broadcast(message, exclude_self=exclude_self)
        except ChannelUnavailableError:
            logger.warning(LogTemplates.CHANNEL_UNAVAILABLE_SKIP, message.name, message.session_id)
