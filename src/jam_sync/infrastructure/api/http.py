"""HTTP API for jam session management (``/api/jam``).

The caller's identity comes from the ``X-User-Id`` header; authenticating
that header is the job of whatever sits in front of this service.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pydantic
from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jam_sync import __version__
from jam_sync.domain.jam.entities import JamSession, SessionConfig
from jam_sync.domain.jam.exceptions import (
    NotAParticipantError,
    NotHostError,
    SessionAccessDeniedError,
    SessionFullError,
    SessionInactiveError,
    SessionNotFoundError,
    SongNotFoundError,
)
from jam_sync.domain.jam.repository import SessionStore
from jam_sync.domain.jam.value_objects import SongId
from jam_sync.domain.shared.constants import HttpHeaders
from jam_sync.domain.shared.datetime_utils import UtcDateTime
from jam_sync.domain.shared.exceptions import DomainError, EntityNotFoundError, ValidationError
from jam_sync.domain.shared.messages import ErrorMessages, ResponseMessages

if TYPE_CHECKING:
    from jam_sync.config.container import Container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jam", tags=["jam"])

_STATUS_BY_ERROR: dict[type[DomainError], int] = {
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    SongNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionInactiveError: status.HTTP_400_BAD_REQUEST,
    SessionFullError: status.HTTP_400_BAD_REQUEST,
    NotAParticipantError: status.HTTP_403_FORBIDDEN,
    NotHostError: status.HTTP_403_FORBIDDEN,
    SessionAccessDeniedError: status.HTTP_403_FORBIDDEN,
}


def status_for(error: DomainError) -> int:
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return code
    if isinstance(error, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def session_payload(session: JamSession) -> dict[str, Any]:
    """Serialize a session with the field names web clients expect."""
    return {
        "_id": session.id,
        "name": session.name,
        "host": session.host_id,
        "participants": [
            {"user": p.user_id, "joinedAt": UtcDateTime(p.joined_at).iso_z}
            for p in session.participants
        ],
        "queue": [song_id.value for song_id in session.queue],
        "currentSong": session.current_song_id.value if session.current_song_id else None,
        "currentPosition": session.position,
        "isPlaying": session.playing,
        "isActive": session.is_active,
        "isPublic": session.is_public,
        "maxParticipants": session.max_participants,
        "lastUpdated": UtcDateTime(session.last_updated).iso_z,
        "createdAt": UtcDateTime(session.created_at).iso_z,
        "endedAt": UtcDateTime(session.ended_at).iso_z if session.ended_at else None,
    }


def current_user(
    user_id: str | None = Header(default=None, alias=HttpHeaders.USER_ID),
) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, ErrorMessages.USER_HEADER_REQUIRED)
    return user_id.strip()


def session_store(request: Request) -> SessionStore:
    container: Container = request.app.state.container
    return container.session_store


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: Request,
    payload: dict[str, Any] | None = Body(default=None),
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    payload = payload or {}
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(ErrorMessages.SESSION_NAME_REQUIRED, field="name")

    settings = request.app.state.container.settings
    defaults = {"maxParticipants": settings.session.default_max_participants}
    try:
        config = SessionConfig.model_validate({**defaults, **payload})
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise ValidationError(error["msg"], field=field) from e

    session = await store.create(user_id, config)
    return {"success": True, "jamSession": session_payload(session)}


@router.get("")
async def list_sessions(
    request: Request,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    limit = request.app.state.container.settings.session.list_limit
    sessions = await store.list_visible(user_id, limit=limit)
    return {"success": True, "jamSessions": [session_payload(s) for s in sessions]}


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    session = await store.get(session_id)
    if not session.can_view(user_id):
        raise SessionAccessDeniedError(session_id, user_id)
    return {"success": True, "jamSession": session_payload(session)}


@router.post("/{session_id}/join")
async def join_session(
    session_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    already_member = (await store.get(session_id)).is_participant(user_id)
    session = await store.join(session_id, user_id)
    message = ResponseMessages.SESSION_JOINED
    if already_member:
        message = ResponseMessages.SESSION_ALREADY_JOINED
    return {"success": True, "message": message, "jamSession": session_payload(session)}


@router.post("/{session_id}/leave")
async def leave_session(
    session_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    await store.leave(session_id, user_id)
    return {"success": True, "message": ResponseMessages.SESSION_LEFT}


@router.delete("/{session_id}")
async def end_session(
    session_id: str,
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    await store.end(session_id, user_id)
    return {"success": True, "message": ResponseMessages.SESSION_ENDED}


@router.post("/{session_id}/queue")
async def add_to_queue(
    session_id: str,
    payload: dict[str, Any] | None = Body(default=None),
    user_id: str = Depends(current_user),
    store: SessionStore = Depends(session_store),
) -> dict[str, Any]:
    payload = payload or {}
    raw_song_id = payload.get("songId")
    if not isinstance(raw_song_id, str) or not raw_song_id.strip():
        raise ValidationError(ErrorMessages.SONG_ID_REQUIRED, field="songId")

    session = await store.append_to_queue(session_id, user_id, SongId(raw_song_id.strip()))
    return {
        "success": True,
        "message": ResponseMessages.SONG_QUEUED,
        "queue": [song_id.value for song_id in session.queue],
    }


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.debug("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=status_for(exc), content=exc.to_response())


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content={"success": False, "message": str(exc.detail)}
    )


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = errors[0]["msg"] if errors else ErrorMessages.INTERNAL_ERROR
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"success": False, "message": message}
    )


def create_api(container: Container) -> FastAPI:
    """Build the FastAPI app serving the jam session routes."""
    app = FastAPI(title="jam-sync", version=__version__)
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins_list(container.settings.server.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(router)
    return app


def create_app(container: Container) -> Any:
    """Full ASGI app: socket.io relay in front of the HTTP API."""
    return container.relay_server.asgi_app(create_api(container))


def _origins_list(origins: str | list[str]) -> list[str]:
    return ["*"] if origins == "*" else list(origins)
