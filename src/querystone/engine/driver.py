"""SQLAlchemy-backed connection driver.

A ``Driver`` owns one logical connection: its URL, credentials and engine
options, a lazily created SQLAlchemy ``Engine`` and a single open
``Connection``. It executes statements and reports results in the shape
the engine caches (plain dicts and tuples), but knows nothing about the
cache itself.
"""

import hashlib
import json
import re
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import URL, Connection, CursorResult, Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.sql.elements import TextClause

from querystone.common.exceptions import (
    connection_error,
    statement_error,
    transaction_error,
)
from querystone.constants.sql import FetchMethod
from querystone.logging import get_logger

logger = get_logger(__name__)

_POSITIONAL_PARAM = re.compile(r"(?<![:\w]):(\d+)\b")


class DriverState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _sql_state(exc: DBAPIError) -> Optional[str]:
    """Extract the native error code from a wrapped DBAPI exception."""
    orig = exc.orig
    for attribute in ("sqlstate", "pgcode", "sqlite_errorname", "sqlite_errorcode"):
        value = getattr(orig, attribute, None)
        if value:
            return str(value)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], (int, str)) and args[0] != str(orig):
        return str(args[0])
    return None


def has_params(params: Any) -> bool:
    """Whether ``params`` holds anything to bind. Empty mappings and sequences do not."""
    if params is None:
        return False
    if isinstance(params, (Mapping, list, tuple)):
        return bool(params)
    return True


def bind_statement(sql: str, params: Any) -> Tuple[TextClause, Dict[str, Any]]:
    """Turn ``sql`` and its parameters into a ``text()`` clause and a bind dict.

    Mappings bind by name; a leading ``:`` on a key is ignored. Sequences
    bind positionally to ``:1 .. :n``. List values expand into IN-lists.
    """
    if isinstance(params, Mapping):
        values = {str(name).lstrip(":"): value for name, value in params.items()}
    else:
        if isinstance(params, (str, bytes)) or not isinstance(params, Iterable):
            params = [params]
        values = {f"p{position}": value for position, value in enumerate(params, 1)}
        sql = _POSITIONAL_PARAM.sub(lambda match: f":p{match.group(1)}", sql)

    expanding = []
    for name, value in values.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            values[name] = list(value)
            if re.search(rf"(?<![:\w]):{re.escape(name)}\b", sql):
                expanding.append(bindparam(name, expanding=True))

    statement = text(sql)
    if expanding:
        statement = statement.bindparams(*expanding)
    return statement, values


class Driver:
    """One registered connection.

    Changing the DSN, credentials or options disconnects the driver; the
    next statement reconnects with the new configuration.

    Args:
        key: Registry key of the connection.
        dsn: SQLAlchemy URL.
        username: Overrides the user name embedded in ``dsn``.
        password: Overrides the password embedded in ``dsn``.
        options: Keyword arguments for ``sqlalchemy.create_engine``.
    """

    def __init__(
        self,
        key: str,
        dsn: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        self.key = key
        self._dsn = dsn
        self._username = username
        self._password = password
        self._options: Dict[str, Any] = dict(options or {})
        self._url: URL = self._build_url()
        self._engine: Optional[Engine] = None
        self._connection: Optional[Connection] = None
        self._state = DriverState.DISCONNECTED
        self._explicit_transaction = False
        self._last_insert_id: Any = None

    def _build_url(self) -> URL:
        url = make_url(self._dsn)
        if self._username is not None:
            url = url.set(username=self._username)
        if self._password is not None:
            url = url.set(password=self._password)
        return url

    def _reconfigure(self) -> None:
        self.disconnect()
        self._url = self._build_url()

    @property
    def dsn(self) -> str:
        return self._dsn

    @dsn.setter
    def dsn(self, value: str) -> None:
        self._dsn = value
        self._reconfigure()

    @property
    def username(self) -> Optional[str]:
        return self._username

    @username.setter
    def username(self, value: Optional[str]) -> None:
        self._username = value
        self._reconfigure()

    @property
    def password(self) -> Optional[str]:
        return self._password

    @password.setter
    def password(self, value: Optional[str]) -> None:
        self._password = value
        self._reconfigure()

    @property
    def options(self) -> Dict[str, Any]:
        return dict(self._options)

    @options.setter
    def options(self, value: Optional[Dict[str, Any]]) -> None:
        self._options = dict(value or {})
        self._reconfigure()

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is DriverState.CONNECTED

    @property
    def driver_name(self) -> str:
        """Backend name of the URL, e.g. ``mysql`` for ``mysql+pymysql://``."""
        return self._url.get_backend_name()

    @property
    def database_name(self) -> Optional[str]:
        return self._url.database

    @property
    def signature(self) -> str:
        """Stable hash of the DSN and engine options."""
        payload = self._dsn + json.dumps(self._options, sort_keys=True, default=str)
        return hashlib.md5(payload.encode("utf-8")).hexdigest()

    @property
    def in_transaction(self) -> bool:
        return self._explicit_transaction

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self._url, **self._options)
        return self._engine

    def connect(self) -> Connection:
        """Return the open connection, connecting first if needed."""
        if self._connection is not None and not self._connection.closed:
            return self._connection

        self._state = DriverState.CONNECTING
        try:
            self._connection = self.engine.connect()
        except (SQLAlchemyError, ImportError) as exc:
            self._state = DriverState.DISCONNECTED
            self._connection = None
            raise connection_error(
                f"Failed to connect to '{self.key}'",
                database=self.database_name,
                driver=self.driver_name,
                cause=exc,
            ) from exc

        self._state = DriverState.CONNECTED
        logger.info(
            "Connection opened",
            extra={"connection": self.key, "db.system": self.driver_name},
        )
        return self._connection

    def disconnect(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._explicit_transaction = False
        if self._state is not DriverState.DISCONNECTED:
            logger.info("Connection closed", extra={"connection": self.key})
        self._state = DriverState.DISCONNECTED

    def execute(
        self,
        sql: str,
        params: Any = None,
        method: FetchMethod = FetchMethod.EXECUTE,
    ) -> Tuple[Any, int]:
        """Run ``sql`` and collect its result for ``method``.

        Returns:
            ``(value, row_count)``. ``value`` is a row count for EXECUTE, a
            dict or None for FETCH, a list of dicts for FETCH_ALL and the
            first row as a tuple (or None) for FETCH_COLUMN.

        Raises:
            QuerystoneError: QUERY_EXECUTION_ERROR carrying the native
                SQL state when the statement fails.
        """
        conn = self.connect()
        try:
            if has_params(params):
                statement, values = bind_statement(sql, params)
                result = conn.execute(statement, values)
            else:
                result = conn.exec_driver_sql(sql, execution_options={"no_parameters": True})

            value, row_count = self._collect(result, method)

            if not self._explicit_transaction:
                conn.commit()
        except DBAPIError as exc:
            if not self._explicit_transaction:
                conn.rollback()
            raise statement_error(sql, exc, _sql_state(exc)) from exc

        return value, row_count

    def _collect(self, result: CursorResult, method: FetchMethod) -> Tuple[Any, int]:
        if method is FetchMethod.FETCH:
            row = result.mappings().first()
            return (dict(row) if row is not None else None), int(row is not None)

        if method is FetchMethod.FETCH_ALL:
            rows = [dict(row) for row in result.mappings().all()]
            return rows, len(rows)

        if method is FetchMethod.FETCH_COLUMN:
            row = result.first()
            return (tuple(row) if row is not None else None), int(row is not None)

        if not result.returns_rows:
            self._last_insert_id = result.lastrowid
        row_count = max(result.rowcount, 0)
        result.close()
        return row_count, row_count

    def begin(self) -> None:
        if self._explicit_transaction:
            raise transaction_error("A transaction is already open", operation="begin")
        conn = self.connect()
        if conn.in_transaction():
            conn.commit()
        conn.begin()
        self._explicit_transaction = True

    def commit(self) -> None:
        if not self._explicit_transaction or self._connection is None:
            raise transaction_error("No open transaction to commit", operation="commit")
        self._connection.commit()
        self._explicit_transaction = False

    def rollback(self) -> None:
        if not self._explicit_transaction or self._connection is None:
            raise transaction_error("No open transaction to roll back", operation="rollback")
        self._connection.rollback()
        self._explicit_transaction = False

    def get_last_insert_id(self, sequence: Optional[str] = None) -> Any:
        """Id generated by the last INSERT, or the current value of ``sequence``."""
        if sequence is None:
            return self._last_insert_id

        conn = self.connect()
        try:
            return conn.execute(text("SELECT currval(:sequence)"), {"sequence": sequence}).scalar()
        except DBAPIError as exc:
            raise statement_error("SELECT currval(:sequence)", exc, _sql_state(exc)) from exc

    def __repr__(self) -> str:
        return f"Driver({self.key!r}, {self._url.render_as_string(hide_password=True)!r}, {self._state.value})"
