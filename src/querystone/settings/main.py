from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from .base import QuerystoneBaseSettings
from .cache import CacheSettings
from .connection import ConnectionSettings
from .observability import LoggingSettings


class Settings(QuerystoneBaseSettings):
    """Aggregated querystone configuration.

    Nested values are read with the ``__`` delimiter, e.g.
    ``QUERYSTONE_CACHE__ENABLED=true`` or a JSON list in
    ``QUERYSTONE_CONNECTIONS``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUERYSTONE_",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )

    connections: List[ConnectionSettings] = Field(
        default_factory=list,
        description="Connections registered when an engine is built from settings"
    )
    default_connection: Optional[str] = Field(
        default=None,
        description="Key of the connection selected at start-up. Defaults to the first connection."
    )
    cache: CacheSettings = Field(
        default_factory=CacheSettings,
        description="Result cache configuration"
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration"
    )

    @model_validator(mode="after")
    def validate_connections(self) -> "Settings":
        keys = [connection.key for connection in self.connections]
        duplicates = sorted({key for key in keys if keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"Duplicate connection keys: {', '.join(duplicates)}")
        if self.default_connection is not None and self.default_connection not in keys:
            raise ValueError(f"Default connection '{self.default_connection}' is not configured")
        return self

    def get_default_connection_key(self) -> Optional[str]:
        if self.default_connection:
            return self.default_connection
        return self.connections[0].key if self.connections else None


_settings: Optional[Settings] = None


def get_settings(force_reload: bool = False) -> Settings:
    """Get the singleton settings instance.

    Settings are loaded from the environment and ``.env`` on first access.
    Use ``force_reload`` to pick up environment changes.
    """
    global _settings

    if _settings is None or force_reload:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """Force reload of settings. Primarily for tests."""
    global _settings
    _settings = None
    return get_settings(force_reload=True)
