"""
Unit Tests for Dependency Injection Container

Tests for:
- Container initialization with settings
- Lazy initialization and caching of server-side components
- Replacing collaborators before first use
- Per-user jam service construction
- Lifecycle methods (initialize, shutdown)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from jam_sync.application.services.jam_service import JamSessionService
from jam_sync.application.services.playback_controller import PlaybackController
from jam_sync.application.services.queue_projector import QueueProjector
from jam_sync.application.services.snapshot_writer import SnapshotWriter
from jam_sync.config.container import Container, create_container
from jam_sync.config.settings import DatabaseSettings, ServerSettings, Settings
from jam_sync.infrastructure.catalog.http_catalog import HttpSongCatalog, HttpUserDirectory
from jam_sync.infrastructure.media.simulated_player import SimulatedMediaPlayer
from jam_sync.infrastructure.persistence.cleanup import CleanupJob
from jam_sync.infrastructure.persistence.database import Database
from jam_sync.infrastructure.persistence.repositories.session_store import SQLiteSessionStore
from jam_sync.infrastructure.transport.relay_server import JamRelayServer


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        database=DatabaseSettings(url="sqlite:///:memory:"),
        server=ServerSettings(cors_origins="http://web.test"),
    )


@pytest_asyncio.fixture
async def container(settings):
    container = Container(settings=settings)
    yield container
    await container.shutdown()


# =============================================================================
# Container Initialization Tests
# =============================================================================


class TestContainerInitialization:
    def test_create_container_factory(self, settings):
        container = create_container(settings)

        assert isinstance(container, Container)
        assert container.settings is settings

    def test_initial_state_all_none(self, container):
        assert container._database is None
        assert container._session_store is None
        assert container._song_catalog is None
        assert container._user_directory is None
        assert container._snapshot_writer is None
        assert container._queue_projector is None
        assert container._relay_server is None
        assert container._cleanup_job is None


# =============================================================================
# Lazy Components
# =============================================================================


class TestLazyComponents:
    @pytest.mark.parametrize(
        ("attribute", "expected_type"),
        [
            ("database", Database),
            ("session_store", SQLiteSessionStore),
            ("song_catalog", HttpSongCatalog),
            ("user_directory", HttpUserDirectory),
            ("snapshot_writer", SnapshotWriter),
            ("queue_projector", QueueProjector),
            ("relay_server", JamRelayServer),
            ("cleanup_job", CleanupJob),
        ],
    )
    def test_lazy_and_cached(self, container, attribute, expected_type):
        first = getattr(container, attribute)

        assert isinstance(first, expected_type)
        assert getattr(container, attribute) is first

    def test_database_uses_configured_url(self, container):
        assert container.database.is_memory

    def test_store_shares_database(self, container):
        store = container.session_store

        assert container._database is not None
        assert store is container.session_store

    def test_catalog_can_be_replaced(self, container):
        catalog = MagicMock()

        container.song_catalog = catalog

        assert container.song_catalog is catalog

    def test_directory_can_be_replaced(self, container):
        directory = MagicMock()

        container.user_directory = directory

        assert container.user_directory is directory


# =============================================================================
# Client-side Services
# =============================================================================


class TestJamServiceFactory:
    def test_playback_controller_defaults_to_simulated_player(self, container):
        playback = container.create_playback_controller()

        assert isinstance(playback, PlaybackController)
        assert isinstance(playback._player, SimulatedMediaPlayer)

    def test_jam_service_per_user(self, container):
        channel = MagicMock()

        first = container.create_jam_service("u1", channel)
        second = container.create_jam_service("u2", channel)

        assert isinstance(first, JamSessionService)
        assert first is not second
        assert first.user_id == "u1"
        assert second.user_id == "u2"


# =============================================================================
# Lifecycle Tests
# =============================================================================


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_creates_schema(self, container):
        await container.initialize()

        session = await container.session_store.list_visible("nobody")
        assert session == []

    @pytest.mark.asyncio
    async def test_shutdown_closes_collaborators(self, container):
        catalog = MagicMock()
        catalog.close = AsyncMock()
        directory = MagicMock()
        directory.close = AsyncMock(side_effect=RuntimeError("already closed"))
        container.song_catalog = catalog
        container.user_directory = directory
        await container.initialize()

        await container.shutdown()

        catalog.close.assert_awaited_once()
        directory.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_stops_cleanup_job(self, container):
        job = MagicMock()
        job.stop = AsyncMock()
        container._cleanup_job = job

        await container.shutdown()

        job.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_components(self, settings):
        await Container(settings=settings).shutdown()
