"""Tests for the /api/jam HTTP routes."""

import httpx
import pytest
import pytest_asyncio

from jam_sync.config.container import Container
from jam_sync.config.settings import DatabaseSettings, SessionSettings, Settings
from jam_sync.domain.jam.entities import SongInfo
from jam_sync.domain.shared.messages import ErrorMessages, ResponseMessages
from jam_sync.infrastructure.api.http import create_api, create_app, status_for
from jam_sync.infrastructure.catalog.static_catalog import StaticSongCatalog


def _song(song_id: str) -> SongInfo:
    return SongInfo(
        id=song_id, title=f"Song {song_id}", audio_url=f"https://cdn.example.test/{song_id}.mp3"
    )


@pytest_asyncio.fixture
async def container():
    settings = Settings(
        environment="test",
        database=DatabaseSettings(url="sqlite:///:memory:"),
        session=SessionSettings(default_max_participants=3, list_limit=10),
    )
    container = Container(settings)
    container.song_catalog = StaticSongCatalog([_song("A"), _song("B")])
    await container.initialize()
    yield container
    await container.shutdown()


@pytest_asyncio.fixture
async def client(container):
    transport = httpx.ASGITransport(app=create_api(container))
    async with httpx.AsyncClient(transport=transport, base_url="http://jam.test") as client:
        yield client


def as_user(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


async def _create(client, user_id="host", **body):
    body.setdefault("name", "Friday Jam")
    response = await client.post("/api/jam", json=body, headers=as_user(user_id))
    assert response.status_code == 201, response.text
    return response.json()["jamSession"]


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_returns_session(self, client):
        response = await client.post(
            "/api/jam",
            json={"name": "  Friday Jam  ", "isPublic": True, "maxParticipants": 4},
            headers=as_user("host"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        session = body["jamSession"]
        assert session["name"] == "Friday Jam"
        assert session["host"] == "host"
        assert [p["user"] for p in session["participants"]] == ["host"]
        assert session["isPublic"] is True
        assert session["isActive"] is True
        assert session["maxParticipants"] == 4
        assert session["queue"] == []
        assert session["currentSong"] is None
        assert session["createdAt"].endswith("Z")

    @pytest.mark.asyncio
    async def test_default_capacity_from_settings(self, client):
        session = await _create(client)

        assert session["maxParticipants"] == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body", [{}, {"name": "   "}, {"name": 7}], ids=["missing", "blank", "int"]
    )
    async def test_name_required(self, client, body):
        response = await client.post("/api/jam", json=body, headers=as_user("host"))

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": ErrorMessages.SESSION_NAME_REQUIRED,
        }

    @pytest.mark.asyncio
    async def test_empty_body_requires_name(self, client):
        response = await client.post("/api/jam", headers=as_user("host"))

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.SESSION_NAME_REQUIRED

    @pytest.mark.asyncio
    async def test_invalid_capacity_rejected(self, client):
        response = await client.post(
            "/api/jam", json={"name": "Jam", "maxParticipants": 0}, headers=as_user("host")
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_user_header_required(self, client):
        response = await client.post("/api/jam", json={"name": "Jam"})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "message": ErrorMessages.USER_HEADER_REQUIRED,
        }


class TestReadAndList:
    @pytest.mark.asyncio
    async def test_get_private_session_denied_to_outsider(self, client):
        session = await _create(client)

        response = await client.get(f"/api/jam/{session['_id']}", headers=as_user("stranger"))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_get_public_session(self, client):
        session = await _create(client, isPublic=True)

        response = await client.get(f"/api/jam/{session['_id']}", headers=as_user("stranger"))

        assert response.status_code == 200
        assert response.json()["jamSession"]["_id"] == session["_id"]

    @pytest.mark.asyncio
    async def test_get_unknown_session(self, client):
        response = await client.get("/api/jam/nope", headers=as_user("host"))

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.SESSION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_list_visible_sessions(self, client):
        private = await _create(client, user_id="alice", name="Private")
        public = await _create(client, user_id="bob", name="Public", isPublic=True)
        await _create(client, user_id="carol", name="Hidden")

        response = await client.get("/api/jam", headers=as_user("alice"))

        assert response.status_code == 200
        ids = {s["_id"] for s in response.json()["jamSessions"]}
        assert ids == {private["_id"], public["_id"]}


class TestMembership:
    @pytest.mark.asyncio
    async def test_join_then_rejoin(self, client):
        session = await _create(client, isPublic=True)
        url = f"/api/jam/{session['_id']}/join"

        first = await client.post(url, headers=as_user("p1"))
        second = await client.post(url, headers=as_user("p1"))

        assert first.status_code == 200
        assert first.json()["message"] == ResponseMessages.SESSION_JOINED
        assert second.json()["message"] == ResponseMessages.SESSION_ALREADY_JOINED
        participants = [p["user"] for p in second.json()["jamSession"]["participants"]]
        assert participants == ["host", "p1"]

    @pytest.mark.asyncio
    async def test_join_full_session(self, client):
        session = await _create(client, isPublic=True, maxParticipants=2)
        url = f"/api/jam/{session['_id']}/join"
        await client.post(url, headers=as_user("p1"))

        response = await client.post(url, headers=as_user("p2"))

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.SESSION_FULL

    @pytest.mark.asyncio
    async def test_join_private_session_forbidden(self, client):
        session = await _create(client)
        url = f"/api/jam/{session['_id']}/join"

        denied = await client.post(url, headers=as_user("stranger"))
        host = await client.post(url, headers=as_user("host"))

        assert denied.status_code == 403
        assert denied.json() == {"success": False, "message": ErrorMessages.SESSION_PRIVATE}
        assert host.json()["message"] == ResponseMessages.SESSION_ALREADY_JOINED

    @pytest.mark.asyncio
    async def test_join_ended_session(self, client):
        session = await _create(client)
        await client.delete(f"/api/jam/{session['_id']}", headers=as_user("host"))

        response = await client.post(f"/api/jam/{session['_id']}/join", headers=as_user("p1"))

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.SESSION_INACTIVE

    @pytest.mark.asyncio
    async def test_host_leave_ends_session(self, client):
        session = await _create(client, isPublic=True)

        response = await client.post(f"/api/jam/{session['_id']}/leave", headers=as_user("host"))
        fetched = await client.get(f"/api/jam/{session['_id']}", headers=as_user("host"))

        assert response.json() == {"success": True, "message": ResponseMessages.SESSION_LEFT}
        assert fetched.json()["jamSession"]["isActive"] is False
        assert fetched.json()["jamSession"]["endedAt"] is not None

    @pytest.mark.asyncio
    async def test_only_host_can_end(self, client):
        session = await _create(client, isPublic=True)
        await client.post(f"/api/jam/{session['_id']}/join", headers=as_user("p1"))

        denied = await client.delete(f"/api/jam/{session['_id']}", headers=as_user("p1"))
        ended = await client.delete(f"/api/jam/{session['_id']}", headers=as_user("host"))

        assert denied.status_code == 403
        assert ended.json() == {"success": True, "message": ResponseMessages.SESSION_ENDED}


class TestQueue:
    @pytest.mark.asyncio
    async def test_add_song(self, client):
        session = await _create(client)
        url = f"/api/jam/{session['_id']}/queue"

        await client.post(url, json={"songId": "A"}, headers=as_user("host"))
        response = await client.post(url, json={"songId": "B"}, headers=as_user("host"))

        assert response.json() == {
            "success": True,
            "message": ResponseMessages.SONG_QUEUED,
            "queue": ["A", "B"],
        }

    @pytest.mark.asyncio
    async def test_song_id_required(self, client):
        session = await _create(client)

        response = await client.post(
            f"/api/jam/{session['_id']}/queue", json={}, headers=as_user("host")
        )

        assert response.status_code == 400
        assert response.json()["message"] == ErrorMessages.SONG_ID_REQUIRED

    @pytest.mark.asyncio
    async def test_unknown_song(self, client):
        session = await _create(client)

        response = await client.post(
            f"/api/jam/{session['_id']}/queue", json={"songId": "Z"}, headers=as_user("host")
        )

        assert response.status_code == 404
        assert response.json()["message"] == ErrorMessages.SONG_NOT_FOUND

    @pytest.mark.asyncio
    async def test_outsider_cannot_queue(self, client):
        session = await _create(client, isPublic=True)

        response = await client.post(
            f"/api/jam/{session['_id']}/queue", json={"songId": "A"}, headers=as_user("stranger")
        )

        assert response.status_code == 403


class TestAppAssembly:
    def test_unknown_domain_error_maps_to_400(self):
        from jam_sync.domain.shared.exceptions import DomainError

        assert status_for(DomainError("boom")) == 400

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, client):
        response = await client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_create_app_wraps_api_with_relay(self, container):
        import socketio

        app = create_app(container)

        assert isinstance(app, socketio.ASGIApp)
