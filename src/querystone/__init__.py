
from querystone.__version__ import __version__

from querystone.engine import Database, Driver, DriverState
from querystone.query_builder import QueryBuilder
from querystone.schema import SchemaBuilder, SchemaBuilderFactory
from querystone.dialects import MySQLDialect, SQLDialect, default_dialects, resolve_dialect

from querystone.cache import CacheManager
from querystone.models import Model, RecordItem, Recordset, field_getter, field_setter

from querystone.common.exceptions import ErrorCode, QuerystoneError

from querystone.constants import FetchMethod

from querystone.settings import Settings, get_settings


__all__ = [
    "__version__",

    "Database",
    "Driver",
    "DriverState",

    "QueryBuilder",
    "SchemaBuilder",
    "SchemaBuilderFactory",
    "MySQLDialect",
    "SQLDialect",
    "default_dialects",
    "resolve_dialect",

    "CacheManager",

    "Model",
    "RecordItem",
    "Recordset",
    "field_getter",
    "field_setter",

    # Exceptions (public API)
    "QuerystoneError",
    "ErrorCode",

    "FetchMethod",
    "Settings",
    "get_settings",
]
