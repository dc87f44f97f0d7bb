"""Port interface for the local audio element."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable


class LocalMediaPlayer(ABC):
    """Capability interface over whatever actually renders audio on a client.

    ``load`` only starts fetching; the media is ready once its duration is
    known. Playing unready media raises ``MediaNotReadyError``.
    """

    @abstractmethod
    async def load(self, url: str) -> None:
        """Replace the current source and start loading it (does not play)."""
        ...

    @abstractmethod
    async def play(self) -> None:
        """Start or resume playback of the loaded source."""
        ...

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback, freezing the position."""
        ...

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        """Move the playhead to ``seconds``."""
        ...

    @abstractmethod
    def get_position(self) -> float:
        ...

    @abstractmethod
    def get_duration(self) -> float | None:
        """Duration in seconds, or None while the source is loading."""
        ...

    @abstractmethod
    def is_playing(self) -> bool:
        ...

    @property
    @abstractmethod
    def source(self) -> str | None:
        """URL of the loaded (or loading) source."""
        ...

    @abstractmethod
    def set_on_ready_callback(self, callback: Callable[[str], Awaitable[None]] | None) -> None:
        """Set callback for when a source becomes ready."""
        ...

    @abstractmethod
    def set_on_ended_callback(self, callback: Callable[[str], Awaitable[None]] | None) -> None:
        """Set callback for when a source plays to its end."""
        ...
