from typing import Optional

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from .base import QuerystoneBaseSettings


class CacheSettings(QuerystoneBaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="QUERYSTONE_CACHE_",
        extra="ignore",
    )

    enabled: bool = Field(
        default=False,
        description="Cache results of read-only statements (SELECT, SHOW, DESCRIBE). "
                    "Write statements are never cached."
    )
    default_ttl_seconds: Optional[int] = Field(
        default=None,
        ge=1,
        description="Lifetime of cached results in seconds. None keeps entries until cleared."
    )
