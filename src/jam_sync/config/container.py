"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the store, relay, collaborator clients and
background jobs. Server-side components are created on demand and cached;
client-side jam services are built fresh per user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.catalog import SongCatalog, UserDirectory
    from ..application.interfaces.media_player import LocalMediaPlayer
    from ..application.interfaces.transport_channel import TransportChannel
    from ..application.services.jam_service import JamSessionService
    from ..application.services.playback_controller import PlaybackController
    from ..application.services.queue_projector import QueueProjector
    from ..application.services.snapshot_writer import SnapshotWriter
    from ..domain.jam.repository import SessionStore
    from ..infrastructure.persistence.cleanup import CleanupJob
    from ..infrastructure.persistence.database import Database
    from ..infrastructure.transport.relay_server import JamRelayServer
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The catalog and
    user directory can be replaced before first use (tests, local demos).
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _session_store: SessionStore | None = None

    # Collaborator services
    _song_catalog: SongCatalog | None = None
    _user_directory: UserDirectory | None = None

    # Application services
    _snapshot_writer: SnapshotWriter | None = None
    _queue_projector: QueueProjector | None = None

    # Transport
    _relay_server: JamRelayServer | None = None

    # Background jobs
    _cleanup_job: CleanupJob | None = None

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def session_store(self) -> SessionStore:
        """Get the session store."""
        if self._session_store is None:
            from ..infrastructure.persistence.repositories.session_store import (
                SQLiteSessionStore,
            )

            self._session_store = SQLiteSessionStore(self.database, self.song_catalog)
        return self._session_store

    # === Collaborators ===

    @property
    def song_catalog(self) -> SongCatalog:
        """Get the song catalog client."""
        if self._song_catalog is None:
            from ..infrastructure.catalog.http_catalog import HttpSongCatalog

            self._song_catalog = HttpSongCatalog(self.settings.catalog)
        return self._song_catalog

    @song_catalog.setter
    def song_catalog(self, catalog: SongCatalog) -> None:
        self._song_catalog = catalog

    @property
    def user_directory(self) -> UserDirectory:
        """Get the user directory client."""
        if self._user_directory is None:
            from ..infrastructure.catalog.http_catalog import HttpUserDirectory

            self._user_directory = HttpUserDirectory(self.settings.catalog)
        return self._user_directory

    @user_directory.setter
    def user_directory(self, directory: UserDirectory) -> None:
        self._user_directory = directory

    # === Application Services ===

    @property
    def snapshot_writer(self) -> SnapshotWriter:
        """Get the transport snapshot writer."""
        if self._snapshot_writer is None:
            from ..application.services.snapshot_writer import SnapshotWriter

            self._snapshot_writer = SnapshotWriter(self.session_store)
        return self._snapshot_writer

    @property
    def queue_projector(self) -> QueueProjector:
        """Get the queue projector."""
        if self._queue_projector is None:
            from ..application.services.queue_projector import QueueProjector

            self._queue_projector = QueueProjector()
        return self._queue_projector

    def create_playback_controller(
        self, player: LocalMediaPlayer | None = None
    ) -> PlaybackController:
        """Build a playback handle around ``player`` (a simulated one by default)."""
        from ..application.services.playback_controller import PlaybackController

        if player is None:
            from ..infrastructure.media.simulated_player import SimulatedMediaPlayer

            player = SimulatedMediaPlayer()
        return PlaybackController(player=player, catalog=self.song_catalog)

    def create_jam_service(
        self,
        user_id: str,
        channel: TransportChannel,
        *,
        player: LocalMediaPlayer | None = None,
    ) -> JamSessionService:
        """Build the client-side session service for one user."""
        from ..application.services.jam_service import JamSessionService

        return JamSessionService(
            user_id=user_id,
            store=self.session_store,
            channel=channel,
            playback=self.create_playback_controller(player),
            projector=self.queue_projector,
            settings=self.settings.sync,
            user_directory=self.user_directory,
        )

    # === Transport ===

    @property
    def relay_server(self) -> JamRelayServer:
        """Get the socket.io relay server."""
        if self._relay_server is None:
            from ..infrastructure.transport.relay_server import JamRelayServer

            self._relay_server = JamRelayServer(
                snapshot_writer=self.snapshot_writer,
                cors_allowed_origins=self.settings.server.allowed_origins,
            )
        return self._relay_server

    # === Background Jobs ===

    @property
    def cleanup_job(self) -> CleanupJob:
        """Get the cleanup job."""
        if self._cleanup_job is None:
            from ..infrastructure.persistence.cleanup import CleanupJob

            self._cleanup_job = CleanupJob(
                session_store=self.session_store,
                settings=self.settings.cleanup,
            )
        return self._cleanup_job

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._cleanup_job is not None:
            await self._cleanup_job.stop()

        for client in (self._song_catalog, self._user_directory):
            close = getattr(client, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as exc:
                logger.warning("Failed closing %s: %r", type(client).__name__, exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
