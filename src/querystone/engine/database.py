"""Execution and caching engine.

``Database`` keeps a registry of named connections, tracks the active one
and runs statements against it. Results of read-only statements are
served from and stored into a cache backend when one is attached and
enabled.

Example:
    >>> db = Database(cache=CacheManager())
    >>> db.add_connection("main", "mysql+pymysql://app@localhost/shop").select_connection("main")
    >>> db.load_sql("SELECT * FROM orders WHERE id = :id", {"id": 7}).fetch()
    >>> with db.transaction():
    ...     db.get_query_builder().insert("orders", {"total": 10})
"""

import copy
import hashlib
import re
import time
import uuid
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import pandas as pd
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, NoSuchModuleError

from querystone.cache import CacheManager
from querystone.common.exceptions import ErrorCode, configuration_error, not_supported_error
from querystone.constants.sql import CACHEABLE_STATEMENT, FetchMethod
from querystone.dialects import SQLDialect, default_dialects, resolve_dialect
from querystone.engine.driver import Driver, has_params
from querystone.logging import get_logger, set_session_context, setup_logging
from querystone.protocols import CacheProtocol
from querystone.query_builder.quoting import IdentifierQuoter
from querystone.query_builder.statement import QueryBuilder
from querystone.schema.builder import SchemaBuilder
from querystone.settings import ConnectionSettings, Settings, get_settings
from querystone.utils.decorators import traced

logger = get_logger(__name__)

_NAMED_PARAM = re.compile(r"(?<![:\w]):(\w+)")
_MAX_SPAN_STATEMENT = 4096

RowFactory = Callable[[Dict[str, Any]], Any]


class Database:
    """Connection registry and statement runner.

    Not safe for concurrent use: the loaded statement, the active
    connection and the last-query diagnostics belong to one session.
    Only the cache backend may be shared between instances.

    Args:
        connections: Connections to register, as ``ConnectionSettings`` or dicts.
        cache: Cache backend. Without one nothing is cached.
        dialects: Dialect adapters keyed by driver backend name.
        log_queries: Log every executed statement at DEBUG.
    """

    def __init__(
        self,
        connections: Optional[Iterable[Union[ConnectionSettings, Mapping[str, Any]]]] = None,
        cache: Optional[CacheProtocol] = None,
        dialects: Optional[Mapping[str, SQLDialect]] = None,
        log_queries: bool = True,
    ):
        self.session_id = uuid.uuid4().hex
        self.query_counter = 0
        self.log_queries = log_queries
        self._drivers: Dict[str, Driver] = {}
        self._active_key: Optional[str] = None
        self._cache = cache
        self._dialects: Dict[str, SQLDialect] = dict(dialects) if dialects is not None else default_dialects()
        self._quoter = IdentifierQuoter()
        self._loaded: Optional[Tuple[str, Any]] = None
        self._last_query: Tuple[Optional[str], Any, int] = (None, None, 0)

        if connections:
            self.set_connections(connections)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "Database":
        """Build an engine from ``Settings``, selecting the default connection."""
        settings = settings or get_settings()
        if settings.logging.configure:
            setup_logging(settings.logging.level)

        cache = kwargs.pop("cache", None)
        if cache is None:
            cache = CacheManager(
                enabled=settings.cache.enabled,
                default_ttl=settings.cache.default_ttl_seconds,
            )

        db = cls(
            connections=settings.connections,
            cache=cache,
            log_queries=settings.logging.log_queries,
            **kwargs,
        )
        default_key = settings.get_default_connection_key()
        if default_key:
            db.select_connection(default_key)
        return db

    # Connection registry

    @staticmethod
    def is_supported(driver_type: str) -> bool:
        """Whether SQLAlchemy ships a dialect for ``driver_type`` (``mysql``, ``sqlite+pysqlite``)."""
        try:
            make_url(f"{driver_type}://").get_dialect()
        except (ArgumentError, NoSuchModuleError):
            return False
        return True

    def add_connection(
        self,
        key: str,
        dsn: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> "Database":
        """Register a connection under ``key``. Nothing is opened yet.

        Raises:
            QuerystoneError: CONFIG_INVALID for a duplicate key or a
                malformed DSN, NOT_SUPPORTED for an unknown driver.
        """
        if key in self._drivers:
            raise configuration_error(
                f"Connection '{key}' is already registered",
                config_key=key,
                error_code=ErrorCode.CONFIG_INVALID,
            )

        try:
            url = make_url(dsn)
        except ArgumentError as exc:
            raise configuration_error(
                f"Invalid DSN for connection '{key}'",
                config_key=key,
                error_code=ErrorCode.CONFIG_INVALID,
                cause=exc,
            ) from exc

        if not self.is_supported(url.drivername):
            raise not_supported_error("driver", url.drivername, details={"connection": key})

        self._drivers[key] = Driver(key, dsn, username, password, options)
        logger.info(
            "Connection registered",
            extra={"connection": key, "db.system": url.get_backend_name()},
        )
        return self

    def set_connections(self, connections: Iterable[Union[ConnectionSettings, Mapping[str, Any]]]) -> "Database":
        for item in connections:
            config = item if isinstance(item, ConnectionSettings) else ConnectionSettings.model_validate(item)
            self.add_connection(
                config.key,
                config.dsn,
                config.username,
                config.get_password(),
                config.options,
            )
        return self

    def select_connection(self, key: str) -> bool:
        """Make ``key`` the active connection.

        The previously active driver stays connected. Returns False when
        ``key`` is already active.
        """
        if key == self._active_key:
            return False
        if key not in self._drivers:
            raise configuration_error(
                f"Connection '{key}' is not registered",
                config_key=key,
                error_code=ErrorCode.CONFIG_MISSING,
            )

        self._active_key = key
        self.query_counter = 0
        set_session_context(self.session_id, key)
        logger.info("Connection selected", extra={"connection": key})
        return True

    def set_default(self, key: str) -> "Database":
        self.select_connection(key)
        return self

    @property
    def connection_keys(self) -> List[str]:
        return list(self._drivers)

    @property
    def active_key(self) -> Optional[str]:
        return self._active_key

    def get_driver(self, key: Optional[str] = None) -> Driver:
        key = key or self._active_key
        if key is None:
            raise configuration_error("No connection selected", error_code=ErrorCode.CONFIG_MISSING)
        try:
            return self._drivers[key]
        except KeyError:
            raise configuration_error(
                f"Connection '{key}' is not registered",
                config_key=key,
                error_code=ErrorCode.CONFIG_MISSING,
            ) from None

    @property
    def driver(self) -> Driver:
        return self.get_driver()

    def get_driver_name(self) -> str:
        return self.driver.driver_name

    def get_dialect(self) -> SQLDialect:
        return resolve_dialect(self.get_driver_name(), self._dialects)

    def disconnect(self, key: Optional[str] = None) -> None:
        self.get_driver(key).disconnect()

    # Cache

    def get_cache(self) -> Optional[CacheProtocol]:
        return self._cache

    def set_cache(self, cache: Optional[CacheProtocol]) -> "Database":
        self._cache = cache
        return self

    @staticmethod
    def build_cache_id(*parts: str) -> str:
        return hashlib.md5("".join(parts).encode("utf-8")).hexdigest()

    @staticmethod
    def is_cacheable(sql: str) -> bool:
        """Only SELECT, SHOW and DESCRIBE results are cached."""
        return bool(CACHEABLE_STATEMENT.match(sql or ""))

    # Statements

    def build_sql(self, sql: str, params: Any = None) -> str:
        """Render ``sql`` with its parameters substituted, for diagnostics and cache keys.

        Positional parameters are referenced as ``:1``, ``:2`` ...; named
        ones as ``:name``.
        """
        if not has_params(params):
            return sql

        if isinstance(params, Mapping):
            values = {str(name).lstrip(":"): value for name, value in params.items()}
        elif isinstance(params, (list, tuple)):
            values = {str(position): value for position, value in enumerate(params, 1)}
        else:
            values = {"1": params}

        def substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            if name not in values:
                return match.group(0)
            value = values[name]
            if isinstance(value, (list, tuple, set, frozenset)):
                return ", ".join(self._quoter.quote_list(list(value)))
            return self._quoter.quote(value)

        return _NAMED_PARAM.sub(substitute, sql)

    def load_sql(self, sql: str, params: Any = None) -> "Database":
        """Load a statement for the next ``execute``/``fetch*`` call."""
        self._loaded = (sql, params)
        return self

    def _take_loaded(self) -> Tuple[str, Any]:
        if self._loaded is None:
            raise configuration_error("No statement loaded, call load_sql() first", error_code=ErrorCode.CONFIG_MISSING)
        loaded, self._loaded = self._loaded, None
        return loaded

    def get_last_query(self) -> Tuple[Optional[str], Any, int]:
        """``(rendered sql, params, rows affected)`` of the last statement."""
        return self._last_query

    def run(self, method: Union[FetchMethod, str], *args: Any) -> Any:
        """Run the loaded statement with the fetch ``method``."""
        method = FetchMethod(method)
        if method is FetchMethod.FETCH:
            return self.fetch(*args)
        if method is FetchMethod.FETCH_ALL:
            return self.fetch_all(*args)
        if method is FetchMethod.FETCH_COLUMN:
            return self.fetch_column(*args)
        return self.execute()

    def execute(self) -> int:
        """Run the loaded statement and return the affected row count."""
        return self._query(FetchMethod.EXECUTE)

    def fetch(self, factory: Optional[RowFactory] = None) -> Any:
        row = self._query(FetchMethod.FETCH)
        if row is None or factory is None:
            return row
        return factory(row)

    def fetch_all(self, factory: Optional[RowFactory] = None) -> List[Any]:
        rows = self._query(FetchMethod.FETCH_ALL)
        if factory is None:
            return list(rows)
        return [factory(row) for row in rows]

    def fetch_column(self, index: int = 0) -> Any:
        """Value at ``index`` of the first row, or None."""
        row = self._query(FetchMethod.FETCH_COLUMN)
        if row is None or index >= len(row):
            return None
        return row[index]

    def fetch_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(self.fetch_all())

    def _query(self, method: FetchMethod) -> Any:
        sql, params = self._take_loaded()
        driver = self.driver
        rendered = self.build_sql(sql, params)

        cache = self._cache
        cache_id = None
        if cache is not None and cache.is_enabled() and self.is_cacheable(sql):
            cache_id = self.build_cache_id(rendered, method.value, driver.signature)
            if cache.exists(cache_id):
                value = copy.deepcopy(cache.get(cache_id))
                self._last_query = (rendered, params, self._count(value))
                logger.debug("Served from cache", extra={"cache_key": cache_id, "connection": driver.key})
                return value

        self.query_counter += 1
        value, row_count = self._query_internal(driver, sql, params, method)
        self._last_query = (rendered, params, row_count)

        if cache_id is not None:
            cache.save(cache_id, copy.deepcopy(value))
        return value

    @staticmethod
    def _count(value: Any) -> int:
        if isinstance(value, list):
            return len(value)
        if isinstance(value, int):
            return value
        return int(value is not None)

    def _span_attributes(self, driver: Driver, sql: str, method: FetchMethod) -> Dict[str, Any]:
        statement = (sql or "").strip()
        if len(statement) > _MAX_SPAN_STATEMENT:
            statement = f"{statement[:_MAX_SPAN_STATEMENT - 3]}..."
        return {
            "db.system": driver.driver_name,
            "db.connection": driver.key,
            "db.operation": method.value,
            "db.statement": statement,
        }

    @traced(
        span_name="querystone.engine.query",
        attribute_getter=lambda self, driver, sql, params, method: self._span_attributes(driver, sql, method),
    )
    def _query_internal(self, driver: Driver, sql: str, params: Any, method: FetchMethod) -> Tuple[Any, int]:
        start_time = time.time()
        payload = {"query_id": self.query_counter, "connection": driver.key, "db.operation": method.value}

        try:
            value, row_count = driver.execute(sql, params, method)
        except Exception as exc:
            duration = time.time() - start_time
            logger.error(
                "SQL query failed",
                extra={**payload, "sql": sql, "duration.seconds": f"{duration:.6f}", "error": str(exc)},
            )
            raise

        if self.log_queries:
            duration = time.time() - start_time
            logger.debug(
                "SQL query executed",
                extra={
                    **payload,
                    "sql": sql,
                    "rows_affected": row_count,
                    "duration.seconds": f"{duration:.6f}",
                },
            )
        return value, row_count

    def get_last_insert_id(self, sequence: Optional[str] = None) -> Any:
        return self.driver.get_last_insert_id(sequence)

    # Transactions

    def begin(self) -> None:
        self.driver.begin()

    def commit(self) -> None:
        self.driver.commit()

    def rollback(self) -> None:
        self.driver.rollback()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Commit on success, roll back and re-raise on error."""
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()

    # Builders

    def get_query_builder(self) -> QueryBuilder:
        return QueryBuilder(self, self.get_dialect())

    def get_schema_builder(self) -> SchemaBuilder:
        return SchemaBuilder(self, self.get_dialect())

    def __repr__(self) -> str:
        return f"Database(connections={self.connection_keys!r}, active={self._active_key!r})"
