"""Server and sync configuration.

Values come from the environment or a local ``.env`` file. Each concern has
its own frozen section, addressed with a double underscore, for example
``SYNC__DRIFT_THRESHOLD_SECONDS=0.5``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..domain.shared.constants import DatabaseURLSchemes, SessionDefaults, SyncConstants
from ..domain.shared.messages import ErrorMessages

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseSettings(BaseModel):
    """Database configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(
        default="sqlite:///data/jam.db",
        validation_alias=AliasChoices("url", "database_url", "db_url"),
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=1000,
        le=30000,
        validation_alias=AliasChoices("busy_timeout_ms", "busy_timeout"),
    )
    connection_timeout_s: int = Field(
        default=10,
        ge=1,
        le=60,
        validation_alias=AliasChoices("connection_timeout_s", "connection_timeout"),
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(DatabaseURLSchemes.SQLITE):
            raise ValueError(ErrorMessages.INVALID_DATABASE_URL)
        return v


class SyncSettings(BaseModel):
    """Timing of the host/participant synchronization protocol."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    drift_threshold_seconds: float = Field(
        default=SyncConstants.DRIFT_THRESHOLD_SECONDS,
        gt=0.0,
        validation_alias=AliasChoices("drift_threshold_seconds", "drift_threshold"),
    )
    resume_grace_seconds: float = Field(default=SyncConstants.RESUME_GRACE_SECONDS, ge=0.0)
    heartbeat_interval_seconds: float = Field(
        default=SyncConstants.HEARTBEAT_INTERVAL_SECONDS, gt=0.0
    )
    ready_poll_initial_seconds: float = Field(
        default=SyncConstants.READY_POLL_INITIAL_SECONDS, ge=0.0
    )
    ready_poll_interval_seconds: float = Field(
        default=SyncConstants.READY_POLL_INTERVAL_SECONDS, gt=0.0
    )
    ready_poll_max_attempts: int = Field(default=SyncConstants.READY_POLL_MAX_ATTEMPTS, ge=1)


class SessionSettings(BaseModel):
    """Jam session limits."""

    model_config = SettingsConfigDict(frozen=True)

    default_max_participants: int = Field(
        default=SessionDefaults.DEFAULT_MAX_PARTICIPANTS,
        ge=1,
        le=SessionDefaults.MAX_PARTICIPANTS_CAP,
    )
    list_limit: int = Field(default=SessionDefaults.LIST_LIMIT, ge=1, le=500)


class ServerSettings(BaseModel):
    """HTTP and socket.io server configuration."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    host: str = "127.0.0.1"
    port: int = Field(default=5000, ge=1, le=65535)
    cors_origins: str = Field(default="*", validation_alias=AliasChoices("cors_origins", "cors"))

    @property
    def allowed_origins(self) -> str | list[str]:
        """Comma-separated origins as a list; "*" allows any origin."""
        if self.cors_origins.strip() == "*":
            return "*"
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class CatalogSettings(BaseModel):
    """Song catalog and user directory endpoints."""

    model_config = SettingsConfigDict(frozen=True, populate_by_name=True)

    base_url: str = Field(
        default="http://127.0.0.1:5001/api",
        validation_alias=AliasChoices("base_url", "catalog_url"),
    )
    timeout_seconds: float = Field(default=5.0, gt=0.0)


class CleanupSettings(BaseModel):
    """Stale session cleanup configuration."""

    model_config = SettingsConfigDict(frozen=True)

    stale_session_hours: int = Field(default=12, ge=1)
    cleanup_interval_minutes: int = Field(default=30, ge=1)


class Settings(BaseSettings):
    """Root settings for the relay server and the sync clients.

    Recognized variables:
    - ENVIRONMENT, DEBUG, LOG_LEVEL
    - DATABASE__URL, DATABASE__BUSY_TIMEOUT_MS, ...
    - SYNC__DRIFT_THRESHOLD_SECONDS, SYNC__RESUME_GRACE_SECONDS, ...
    - SERVER__HOST, SERVER__PORT, SERVER__CORS_ORIGINS (comma-separated)
    - CATALOG__BASE_URL
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    cleanup: CleanupSettings = Field(default_factory=CleanupSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            choices = ", ".join(_LOG_LEVELS)
            raise ValueError(ErrorMessages.INVALID_LOG_LEVEL.format(level=v, valid_levels=choices))
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once from the environment and `.env`."""
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
