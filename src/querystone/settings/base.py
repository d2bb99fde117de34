from pydantic_settings import BaseSettings, SettingsConfigDict


class QuerystoneBaseSettings(BaseSettings):
    """Shared configuration behaviour for every querystone settings class."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__"
    )
