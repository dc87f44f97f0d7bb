import asyncio

import pytest
import pytest_asyncio

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def sync_settings():
    """Sync timings shortened so tests finish quickly."""
    from jam_sync.config.settings import SyncSettings

    return SyncSettings(
        drift_threshold_seconds=1.0,
        resume_grace_seconds=0.05,
        heartbeat_interval_seconds=0.05,
        ready_poll_initial_seconds=0.01,
        ready_poll_interval_seconds=0.01,
        ready_poll_max_attempts=200,
    )


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from jam_sync.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session_store(in_memory_database, song_catalog):
    """Create a session store with in-memory database."""
    from jam_sync.infrastructure.persistence.repositories.session_store import (
        SQLiteSessionStore,
    )

    return SQLiteSessionStore(in_memory_database, song_catalog)


# ============================================================================
# Catalog Fixtures
# ============================================================================


def make_song(song_id: str, duration: float = 180.0):
    from jam_sync.domain.jam.entities import SongInfo

    return SongInfo(
        id=song_id,
        title=f"Song {song_id}",
        audio_url=f"https://cdn.example.test/{song_id}.mp3",
        duration_seconds=duration,
    )


@pytest.fixture
def song_factory():
    """Build SongInfo objects with predictable audio URLs."""
    return make_song


@pytest.fixture
def song_catalog():
    """Catalog knowing songs A, B and C."""
    from jam_sync.infrastructure.catalog.static_catalog import StaticSongCatalog

    return StaticSongCatalog([make_song("A"), make_song("B"), make_song("C")])


@pytest.fixture
def user_directory():
    from jam_sync.domain.jam.entities import UserProfile
    from jam_sync.infrastructure.catalog.static_catalog import StaticUserDirectory

    return StaticUserDirectory(
        [
            UserProfile(id="host", display_name="Host"),
            UserProfile(id="p1", display_name="Participant One"),
        ]
    )


# ============================================================================
# Playback Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def player_factory():
    """Build simulated players; all are closed at teardown."""
    from jam_sync.infrastructure.media.simulated_player import SimulatedMediaPlayer

    players = []

    def factory(**kwargs):
        player = SimulatedMediaPlayer(**kwargs)
        players.append(player)
        return player

    yield factory

    for player in players:
        await player.close()


@pytest.fixture
def playback_factory(song_catalog, player_factory):
    """Build a PlaybackController over a fresh simulated player."""
    from jam_sync.application.services.playback_controller import PlaybackController
    from jam_sync.application.services.queue_projector import LocalQueue

    def factory(queue=("A", "B", "C"), **player_kwargs):
        player = player_factory(**player_kwargs)
        playback = PlaybackController(player=player, catalog=song_catalog)
        playback.set_queue(LocalQueue.of(queue))
        return playback, player

    return factory


# ============================================================================
# Async Helpers
# ============================================================================


@pytest.fixture
def eventually():
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""

    async def wait(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if predicate():
                return True
            await asyncio.sleep(interval)
        return bool(predicate())

    return wait
