"""
Tests for local playback

Tests for:
- SimulatedMediaPlayer loading, clock-driven position and end of media
- PlaybackController queue resolution, readiness and callbacks
"""

import pytest

from jam_sync.application.services.playback_controller import PlaybackController
from jam_sync.application.services.queue_projector import LocalQueue
from jam_sync.domain.jam.exceptions import MediaNotReadyError, SongNotResolvableError
from jam_sync.domain.jam.value_objects import SongId


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestSimulatedMediaPlayer:
    @pytest.mark.asyncio
    async def test_play_before_ready_raises(self, player_factory):
        player = player_factory(load_latency=10.0)
        await player.load("https://cdn.example.test/A.mp3")

        with pytest.raises(MediaNotReadyError):
            await player.play()
        assert player.get_duration() is None

    @pytest.mark.asyncio
    async def test_ready_after_latency(self, player_factory, eventually):
        ready = []

        async def on_ready(url):
            ready.append(url)

        player = player_factory(load_latency=0.01, durations={"https://x.test/a": 90.0})
        player.set_on_ready_callback(on_ready)
        await player.load("https://x.test/a")

        assert await eventually(lambda: player.is_ready())
        assert player.get_duration() == 90.0
        assert ready == ["https://x.test/a"]

    @pytest.mark.asyncio
    async def test_position_follows_clock(self, player_factory, eventually):
        clock = FakeClock()
        player = player_factory(clock=clock)
        await player.load("https://x.test/a")
        assert await eventually(player.is_ready)

        await player.play()
        clock.now += 5.0
        assert player.get_position() == pytest.approx(5.0)

        await player.pause()
        clock.now += 5.0
        assert player.get_position() == pytest.approx(5.0)

        await player.seek(30.0)
        assert player.get_position() == pytest.approx(30.0)
        assert player.seeks == [30.0]

    @pytest.mark.asyncio
    async def test_seek_clamped_to_duration(self, player_factory, eventually):
        player = player_factory(durations={"https://x.test/a": 60.0})
        await player.load("https://x.test/a")
        assert await eventually(player.is_ready)

        await player.seek(500.0)
        await player.seek(-5.0)

        assert player.seeks == [60.0, 0.0]

    @pytest.mark.asyncio
    async def test_end_of_media_callback(self, player_factory, eventually):
        ended = []

        async def on_ended(url):
            ended.append(url)

        player = player_factory(durations={"https://x.test/a": 0.05})
        player.set_on_ended_callback(on_ended)
        await player.load("https://x.test/a")
        assert await eventually(player.is_ready)
        await player.play()

        assert await eventually(lambda: ended == ["https://x.test/a"])
        assert not player.is_playing()
        assert player.get_position() == pytest.approx(0.05)

    @pytest.mark.asyncio
    async def test_new_load_supersedes_previous(self, player_factory, eventually):
        ready = []

        async def on_ready(url):
            ready.append(url)

        player = player_factory(load_latency=0.02)
        player.set_on_ready_callback(on_ready)
        await player.load("https://x.test/a")
        await player.load("https://x.test/b")

        assert await eventually(player.is_ready)
        assert player.source == "https://x.test/b"
        assert ready == ["https://x.test/b"]


class TestPlaybackController:
    @pytest.mark.asyncio
    async def test_load_resolves_from_queue(self, playback_factory, eventually):
        playback, player = playback_factory()

        info = await playback.load(SongId("A"))

        assert info.audio_url == "https://cdn.example.test/A.mp3"
        assert playback.current_song_id == SongId("A")
        assert player.source == info.audio_url
        assert await eventually(playback.is_ready)

    @pytest.mark.asyncio
    async def test_load_song_not_in_queue(self, playback_factory):
        playback, _ = playback_factory(queue=["A"])

        with pytest.raises(SongNotResolvableError):
            await playback.load(SongId("B"))
        assert playback.current_song_id is None

    @pytest.mark.asyncio
    async def test_load_song_missing_from_catalog(self, playback_factory):
        playback, _ = playback_factory(queue=["A", "ghost"])

        with pytest.raises(SongNotResolvableError):
            await playback.load(SongId("ghost"))

    @pytest.mark.asyncio
    async def test_not_ready_while_loading(self, playback_factory):
        playback, _ = playback_factory(load_latency=10.0)
        await playback.load(SongId("A"))

        assert not playback.is_ready()
        assert not await playback.wait_until_ready(
            initial_delay=0.0, interval=0.001, max_attempts=3
        )

    @pytest.mark.asyncio
    async def test_navigation_follows_queue(self, playback_factory):
        playback, _ = playback_factory()

        assert playback.next_song_id() == SongId("A")
        await playback.load(SongId("B"))
        assert playback.next_song_id() == SongId("C")
        assert playback.previous_song_id() == SongId("A")

    @pytest.mark.asyncio
    async def test_seek_clamps_negative(self, playback_factory, eventually):
        playback, player = playback_factory()
        await playback.load(SongId("A"))
        assert await eventually(playback.is_ready)

        await playback.seek(-4.0)

        assert player.seeks == [0.0]

    @pytest.mark.asyncio
    async def test_snapshot_and_unload(self, playback_factory, eventually):
        playback, _ = playback_factory()
        await playback.load(SongId("A"))
        assert await eventually(playback.is_ready)
        await playback.play()

        snapshot = playback.snapshot()
        assert snapshot.current_song_id == SongId("A")
        assert snapshot.is_playing is True
        assert snapshot.duration == 180.0

        await playback.unload()
        assert playback.current_song_id is None
        assert not playback.is_playing()

    @pytest.mark.asyncio
    async def test_callbacks_forward_song_ids(self, song_catalog, player_factory, eventually):
        player = player_factory(durations={"https://cdn.example.test/A.mp3": 0.03})
        playback = PlaybackController(player=player, catalog=song_catalog)
        playback.set_queue(LocalQueue.of(["A"]))
        ready, ended = [], []

        async def on_ready(song_id):
            ready.append(song_id)

        async def on_ended(song_id):
            ended.append(song_id)

        playback.set_on_ready_callback(on_ready)
        playback.set_on_ended_callback(on_ended)
        await playback.load(SongId("A"))
        assert await eventually(lambda: ready == [SongId("A")])
        await playback.play()

        assert await eventually(lambda: ended == [SongId("A")])
