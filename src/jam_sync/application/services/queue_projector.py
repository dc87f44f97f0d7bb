"""Projection of a session's shared queue onto a client's local playlist."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ...domain.jam.entities import JamSession
from ...domain.jam.value_objects import SongId


@dataclass(frozen=True)
class LocalQueue:
    """Ordered, duplicate-free song ids with stable indices.

    Transport events reference songs by id; ``index_of`` maps such a
    reference onto the local playlist, returning None for unknown songs.
    """

    songs: tuple[SongId, ...] = ()
    _index: dict[SongId, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for i, song_id in enumerate(self.songs):
            self._index.setdefault(song_id, i)

    @classmethod
    def of(cls, song_ids: Iterable[SongId | str]) -> LocalQueue:
        seen: list[SongId] = []
        for raw in song_ids:
            song_id = raw if isinstance(raw, SongId) else SongId(raw)
            if song_id not in seen:
                seen.append(song_id)
        return cls(songs=tuple(seen))

    def __len__(self) -> int:
        return len(self.songs)

    def __iter__(self) -> Iterator[SongId]:
        return iter(self.songs)

    def __contains__(self, song_id: object) -> bool:
        return song_id in self._index

    def index_of(self, song_id: SongId) -> int | None:
        return self._index.get(song_id)

    def song_at(self, index: int) -> SongId | None:
        if 0 <= index < len(self.songs):
            return self.songs[index]
        return None

    def next_after(self, song_id: SongId | None) -> SongId | None:
        if song_id is None:
            return self.song_at(0)
        index = self.index_of(song_id)
        return None if index is None else self.song_at(index + 1)

    def previous_before(self, song_id: SongId | None) -> SongId | None:
        if song_id is None:
            return None
        index = self.index_of(song_id)
        return None if index is None else self.song_at(index - 1)

    @property
    def ids(self) -> list[str]:
        return [song_id.value for song_id in self.songs]


class QueueProjector:
    """Builds the local playlist from the shared session queue.

    Projection is a pure function of the session's queue: projecting the
    same session state twice yields equal queues.
    """

    def project(self, session: JamSession) -> LocalQueue:
        return LocalQueue.of(session.queue)

    def project_ids(self, song_ids: Iterable[SongId | str]) -> LocalQueue:
        """Project a raw queue, as carried by a ``QueueUpdated`` notification."""
        return LocalQueue.of(song_ids)
