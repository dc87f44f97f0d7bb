"""Local media player adapters."""

from jam_sync.infrastructure.media.simulated_player import SimulatedMediaPlayer

__all__ = ["SimulatedMediaPlayer"]
