"""
Infrastructure Layer

Adapters implementing the application ports:
- persistence/: SQLite session store and cleanup job
- transport/: In-memory and socket.io channels, socket.io relay server
- catalog/: Song catalog and user directory clients
- media/: Simulated local media player
- api/: HTTP API for session management
"""
