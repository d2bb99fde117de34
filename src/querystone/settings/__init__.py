"""Settings for querystone, built on Pydantic Settings.

Organization:
    - base.py: QuerystoneBaseSettings with shared env handling
    - connection.py: ConnectionSettings, one connection registry entry
    - cache.py: CacheSettings for the result cache
    - observability.py: LoggingSettings
    - main.py: Settings aggregator, get_settings() and reload_settings()

Configuration sources (precedence order):
    1. Environment variables (``QUERYSTONE_`` prefix)
    2. ``.env`` file
    3. Field defaults
"""

from .base import QuerystoneBaseSettings
from .cache import CacheSettings
from .connection import ConnectionSettings
from .main import Settings, get_settings, reload_settings
from .observability import LoggingSettings

__all__ = [
    "QuerystoneBaseSettings",
    "CacheSettings",
    "ConnectionSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
