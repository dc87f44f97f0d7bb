"""HTTP clients for the song catalog and user directory services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from jam_sync.application.interfaces.catalog import SongCatalog, UserDirectory
from jam_sync.domain.jam.entities import SongInfo, UserProfile
from jam_sync.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from jam_sync.config.settings import CatalogSettings
    from jam_sync.domain.jam.value_objects import SongId

logger = logging.getLogger(__name__)


class _ApiResource:
    """Shared ``httpx`` client handling for the collaborator APIs.

    Lookups answer ``None`` for unknown ids and for failed requests; the
    callers treat both as "cannot resolve".
    """

    def __init__(
        self, settings: CatalogSettings, *, client: httpx.AsyncClient | None = None
    ) -> None:
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url.rstrip("/") + "/",
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def _get_document(self, path: str, key: str) -> dict[str, Any] | None:
        response = await self._get_client().get(path)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        document = response.json().get(key)
        return document if isinstance(document, dict) else None

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class HttpSongCatalog(_ApiResource, SongCatalog):
    """Resolves songs through ``GET /songs/{id}``."""

    async def resolve(self, song_id: SongId) -> SongInfo | None:
        try:
            song = await self._get_document(f"songs/{song_id.value}", "song")
            if song is None:
                return None
            return SongInfo(
                id=song_id,
                title=song.get("title") or song_id.value,
                audio_url=song.get("audioUrl", ""),
                duration_seconds=song.get("duration"),
                artist=song.get("artist"),
            )
        except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
            logger.warning(LogTemplates.CATALOG_LOOKUP_FAILED, song_id, e)
            return None


class HttpUserDirectory(_ApiResource, UserDirectory):
    """Resolves display identities through ``GET /users/{id}``."""

    async def resolve(self, user_id: str) -> UserProfile | None:
        try:
            user = await self._get_document(f"users/{user_id}", "user")
            if user is None:
                return None
            return UserProfile(
                id=user_id,
                display_name=user.get("displayName") or user.get("username") or "",
                avatar=user.get("avatar") or None,
            )
        except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
            logger.warning(LogTemplates.DIRECTORY_LOOKUP_FAILED, user_id, e)
            return None
