"""Shared lifecycle of the query and schema builders."""

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Union

from querystone.common.exceptions import ErrorCode, QuerystoneError, configuration_error
from querystone.constants.sql import FetchMethod

if TYPE_CHECKING:
    from querystone.engine.database import Database


class BaseBuilder:
    """Binds a builder to an execution engine and realizes statements.

    Builders do not execute SQL themselves. ``_realize`` either returns the
    rendered SQL (prepare mode) or hands it to the bound ``Database``, and
    resets the builder state afterwards whatever the outcome.
    """

    def __init__(self, db: Optional["Database"] = None):
        self._db = db
        self._prepare = False

    @property
    def db(self) -> "Database":
        if self._db is None:
            raise configuration_error(
                "Builder is not bound to a database",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return self._db

    def set_db(self, db: "Database") -> "BaseBuilder":
        self._db = db
        return self

    @property
    def is_prepared(self) -> bool:
        return self._prepare

    def prepare(self, value: bool = True) -> "BaseBuilder":
        """Dry-run mode: terminal operations return SQL instead of executing."""
        self._prepare = value
        return self

    def flush(self) -> "BaseBuilder":
        """Reset all accumulated state, including prepare mode."""
        self._prepare = False
        return self

    @contextmanager
    def _flush_on_error(self) -> Iterator[None]:
        try:
            yield
        except QuerystoneError:
            self.flush()
            raise

    def _realize(
        self,
        sql: Union[str, List[str]],
        params: Any = None,
        method: FetchMethod = FetchMethod.EXECUTE,
        *args: Any,
    ) -> Any:
        """Return or execute ``sql``, then flush.

        A list of statements is executed one by one and the affected row
        counts are summed; in prepare mode they are joined by newlines.
        """
        try:
            if self._prepare:
                if isinstance(sql, list):
                    return "\n".join(f"{statement};" for statement in sql)
                return sql

            if isinstance(sql, list):
                return sum(self.db.load_sql(statement, params).execute() for statement in sql)

            return self.db.load_sql(sql, params).run(method, *args)
        finally:
            self.flush()
