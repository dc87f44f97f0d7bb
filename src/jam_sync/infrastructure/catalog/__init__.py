"""Song catalog and user directory adapters."""

from jam_sync.infrastructure.catalog.http_catalog import HttpSongCatalog, HttpUserDirectory
from jam_sync.infrastructure.catalog.static_catalog import StaticSongCatalog, StaticUserDirectory

__all__ = [
    "HttpSongCatalog",
    "HttpUserDirectory",
    "StaticSongCatalog",
    "StaticUserDirectory",
]
