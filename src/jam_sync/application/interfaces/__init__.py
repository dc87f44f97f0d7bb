"""Ports the jam clients and services depend on."""

from jam_sync.application.interfaces.catalog import SongCatalog, UserDirectory
from jam_sync.application.interfaces.media_player import LocalMediaPlayer
from jam_sync.application.interfaces.transport_channel import MessageHandler, TransportChannel

__all__ = [
    "LocalMediaPlayer",
    "MessageHandler",
    "SongCatalog",
    "TransportChannel",
    "UserDirectory",
]
