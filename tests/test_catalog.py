"""Tests for the catalog and user directory clients."""

import logging

import httpx
import pytest

from jam_sync.config.settings import CatalogSettings
from jam_sync.domain.jam.entities import SongInfo, UserProfile
from jam_sync.domain.jam.value_objects import SongId
from jam_sync.infrastructure.catalog.http_catalog import HttpSongCatalog, HttpUserDirectory
from jam_sync.infrastructure.catalog.static_catalog import StaticSongCatalog, StaticUserDirectory

BASE_URL = "http://catalog.test/api"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL + "/")


def _settings() -> CatalogSettings:
    return CatalogSettings(base_url=BASE_URL)


class TestHttpSongCatalog:
    @pytest.mark.asyncio
    async def test_resolves_song_document(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "song": {
                        "_id": "A",
                        "title": "Blue in Green",
                        "audioUrl": "https://cdn.test/a.mp3",
                        "duration": 337,
                        "artist": "Miles Davis",
                    },
                },
            )

        async with _client(handler) as client:
            song = await HttpSongCatalog(_settings(), client=client).resolve(SongId("A"))

        assert song == SongInfo(
            id="A",
            title="Blue in Green",
            audio_url="https://cdn.test/a.mp3",
            duration_seconds=337,
            artist="Miles Davis",
        )
        assert str(requests[0].url) == "http://catalog.test/api/songs/A"

    @pytest.mark.asyncio
    async def test_not_found_is_none(self):
        async with _client(lambda request: httpx.Response(404, json={})) as client:
            song = await HttpSongCatalog(_settings(), client=client).resolve(SongId("Z"))

        assert song is None

    @pytest.mark.asyncio
    async def test_server_error_is_logged_and_none(self, caplog):
        async with _client(lambda request: httpx.Response(500)) as client:
            with caplog.at_level(logging.WARNING):
                song = await HttpSongCatalog(_settings(), client=client).resolve(SongId("A"))

        assert song is None
        assert "Catalog lookup for A failed" in caplog.text

    @pytest.mark.asyncio
    async def test_song_without_audio_is_none(self):
        body = {"song": {"_id": "A", "title": "Silent"}}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            song = await HttpSongCatalog(_settings(), client=client).resolve(SongId("A"))

        assert song is None

    @pytest.mark.asyncio
    async def test_connection_error_is_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            song = await HttpSongCatalog(_settings(), client=client).resolve(SongId("A"))

        assert song is None

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self):
        async with _client(lambda request: httpx.Response(404)) as client:
            catalog = HttpSongCatalog(_settings(), client=client)
            await catalog.close()

            assert not client.is_closed

    @pytest.mark.asyncio
    async def test_close_owned_client(self):
        catalog = HttpSongCatalog(_settings())
        client = catalog._get_client()

        await catalog.close()

        assert client.is_closed
        assert str(client.base_url) == "http://catalog.test/api/"


class TestHttpUserDirectory:
    @pytest.mark.asyncio
    async def test_resolves_profile(self):
        body = {"user": {"_id": "u1", "displayName": "Ada", "avatar": "https://img.test/u1"}}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            profile = await HttpUserDirectory(_settings(), client=client).resolve("u1")

        assert profile == UserProfile(id="u1", display_name="Ada", avatar="https://img.test/u1")

    @pytest.mark.asyncio
    async def test_falls_back_to_username(self):
        body = {"user": {"_id": "u1", "username": "ada"}}
        async with _client(lambda request: httpx.Response(200, json=body)) as client:
            profile = await HttpUserDirectory(_settings(), client=client).resolve("u1")

        assert profile.display_name == "ada"
        assert profile.avatar is None

    @pytest.mark.asyncio
    async def test_missing_user_is_none(self):
        async with _client(lambda request: httpx.Response(404)) as client:
            assert await HttpUserDirectory(_settings(), client=client).resolve("u1") is None


class TestStaticCatalog:
    @pytest.mark.asyncio
    async def test_add_and_resolve(self, song_factory):
        catalog = StaticSongCatalog()
        catalog.add(song_factory("A"))

        assert (await catalog.resolve(SongId("A"))).title == "Song A"
        assert await catalog.resolve(SongId("B")) is None

    @pytest.mark.asyncio
    async def test_static_directory(self, user_directory):
        assert (await user_directory.resolve("host")).display_name == "Host"
        assert await StaticUserDirectory().resolve("host") is None
