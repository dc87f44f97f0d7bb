"""In-memory song catalog and user directory."""

from __future__ import annotations

from collections.abc import Iterable

from jam_sync.application.interfaces.catalog import SongCatalog, UserDirectory
from jam_sync.domain.jam.entities import SongInfo, UserProfile
from jam_sync.domain.jam.value_objects import SongId


class StaticSongCatalog(SongCatalog):
    """Catalog backed by a fixed set of songs, for local runs and tests."""

    def __init__(self, songs: Iterable[SongInfo] = ()) -> None:
        self._songs: dict[SongId, SongInfo] = {song.id: song for song in songs}

    def add(self, song: SongInfo) -> None:
        self._songs[song.id] = song

    async def resolve(self, song_id: SongId) -> SongInfo | None:
        return self._songs.get(song_id)


class StaticUserDirectory(UserDirectory):
    def __init__(self, users: Iterable[UserProfile] = ()) -> None:
        self._users = {user.id: user for user in users}

    async def resolve(self, user_id: str) -> UserProfile | None:
        return self._users.get(user_id)
