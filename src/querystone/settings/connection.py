from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator


class ConnectionSettings(BaseModel):
    """One entry of the connection registry.

    ``dsn`` is an SQLAlchemy URL (``mysql+pymysql://host/db``,
    ``sqlite://``). Credentials given here override the ones embedded in
    the URL; ``options`` are forwarded to ``sqlalchemy.create_engine``.
    """

    key: str = Field(
        ...,
        min_length=1,
        description="Unique registry key used to select this connection"
    )
    dsn: str = Field(
        ...,
        min_length=1,
        description="SQLAlchemy database URL"
    )
    username: Optional[str] = Field(
        default=None,
        description="User name, overrides the one in the DSN"
    )
    password: Optional[SecretStr] = Field(
        default=None,
        description="Password, overrides the one in the DSN"
    )
    options: Dict[str, Any] = Field(
        default_factory=dict,
        description="Keyword arguments forwarded to create_engine (pool_size, echo, ...)"
    )

    @field_validator("key", "dsn")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value must not be blank")
        return v

    def get_password(self) -> Optional[str]:
        return self.password.get_secret_value() if self.password else None
