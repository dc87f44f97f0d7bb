"""Transport channel implementations and the socket.io relay server."""

from jam_sync.infrastructure.transport.in_memory import (
    InMemoryTransportChannel,
    InMemoryTransportHub,
)
from jam_sync.infrastructure.transport.relay_server import JamRelayServer
from jam_sync.infrastructure.transport.socketio_channel import SocketIOTransportChannel

__all__ = [
    "InMemoryTransportChannel",
    "InMemoryTransportHub",
    "JamRelayServer",
    "SocketIOTransportChannel",
]
