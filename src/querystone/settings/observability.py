from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from .base import QuerystoneBaseSettings

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingSettings(QuerystoneBaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="QUERYSTONE_LOGGING_",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level passed to setup_logging"
    )
    log_queries: bool = Field(
        default=True,
        description="Log every executed statement at DEBUG level with its duration and row count"
    )
    configure: bool = Field(
        default=False,
        description="Install the JSON console handler when an engine is built from settings"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Expected one of {sorted(_LEVELS)}")
        return level
