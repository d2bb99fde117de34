"""Fluent statement builder.

Example:
    >>> qb = db.get_query_builder()
    >>> qb.select("id, name").from_("users").where("status", "active") \\
    ...     .where_brackets().where("age >", 18).or_where("vip", True).where_brackets_end() \\
    ...     .order_by("name").limit(10).rows()
"""

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Union

from querystone.common.exceptions import ErrorCode, configuration_error, validation_error
from querystone.constants.sql import NESTED_FROM, FetchMethod
from querystone.logging import get_logger
from querystone.protocols.dialects import IdentifierRules
from querystone.query_builder.base import BaseBuilder
from querystone.query_builder.clauses import ClauseComposer, Conditions

if TYPE_CHECKING:
    from querystone.dialects.base import SQLDialect
    from querystone.engine.database import Database

logger = get_logger(__name__)

Row = Union[Mapping[str, Any], Any]


def _as_mapping(data: Any, value: Any = None) -> Dict[str, Any]:
    """Normalize SET input: a mapping, a single column name or a record object."""
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, str):
        return {data: value}
    if hasattr(data, "to_dict"):
        return dict(data.to_dict())
    if hasattr(data, "__dict__"):
        return {
            key: item for key, item in vars(data).items()
            if not key.startswith("_") and not isinstance(item, (dict, list, tuple, set)) and not callable(item)
        }
    return {}


def _is_batch(data: Any) -> bool:
    return isinstance(data, (list, tuple)) and bool(data) and not isinstance(data[0], str)


class QueryBuilder(ClauseComposer, BaseBuilder):
    """Renders one SELECT, INSERT, UPDATE, DELETE or TRUNCATE statement.

    State accumulates across chained calls and is reset after every
    terminal operation (``row``, ``rows``, ``row_column``, ``insert``,
    ``update``, ``delete``, ``truncate``, ``execute``) or ``flush``.

    Args:
        db: Execution engine terminal operations are sent to.
        dialect: Dialect supplying quoting rules, the LIMIT syntax and the
            random ordering function. Defaults to MySQL.
    """

    def __init__(self, db: Optional["Database"] = None, dialect: Optional["SQLDialect"] = None):
        if dialect is None:
            from querystone.dialects.mysql import MySQLDialect
            dialect = MySQLDialect()
        if not isinstance(dialect, IdentifierRules):
            raise configuration_error(
                f"Dialect {dialect!r} does not provide quoting rules.", error_code=ErrorCode.CONFIG_INVALID
            )

        self.dialect = dialect
        BaseBuilder.__init__(self, db)
        ClauseComposer.__init__(self, dialect.quoter, dialect.random_function)
        self._set: Dict[str, str] = {}
        self._set_batch: List[Dict[str, str]] = []
        self._where_key: Optional[str] = None

    def flush(self) -> "QueryBuilder":
        self._reset_clauses()
        self._set = {}
        self._set_batch = []
        self._where_key = None
        BaseBuilder.flush(self)
        return self

    # SET data

    def set(self, key: Any, value: Any = None, quote: bool = True) -> "QueryBuilder":
        """Add column values for INSERT/UPDATE.

        Args:
            key: Column name, mapping of column to value, or a record object.
            value: Value when ``key`` is a column name.
            quote: Quote values. Pass False for raw SQL expressions.
        """
        for column, item in _as_mapping(key, value).items():
            self._set[self.protect(column)] = self._render_value(item, quote)
        return self

    def set_as_batch(self, rows: Sequence[Row], quote: bool = True) -> "QueryBuilder":
        """Add rows for a batch INSERT/UPDATE. Columns are kept in sorted order."""
        for row in rows:
            record = {self.protect(column): self._render_value(item, quote) for column, item in _as_mapping(row).items()}
            if record:
                self._set_batch.append(dict(sorted(record.items())))
        return self

    def _render_value(self, value: Any, quote: bool) -> str:
        if quote or value is None:
            return self.quote(value)
        return str(value)

    def where_key(self, key: str) -> "QueryBuilder":
        """Designate the key column of a batch update."""
        self._where_key = key
        return self

    def _table_name(self, table: str) -> str:
        if table:
            return self.protect(table.strip())
        if self._from:
            return self._from[0]
        raise configuration_error("Table name is required", error_code=ErrorCode.CONFIG_MISSING)

    # Rendering

    def _compose_modifiers(self) -> str:
        return " ".join(self._modifiers) + " " if self._modifiers else ""

    def _compose_conditions(self) -> str:
        where, like = self.where_fragments, self.like_fragments
        if not where and not like:
            return ""

        sql = "\nWHERE " + "\n".join(where)
        if like:
            if where:
                sql += "\nAND "
            sql += "\n".join(like)
        return sql

    def _compose_order_by(self, separator: str = "\n") -> str:
        return f"{separator}ORDER BY " + ", ".join(self._order_by) if self._order_by else ""

    def compose_select(self) -> str:
        """Render the accumulated SELECT without resetting state."""
        self._close_open_groups()

        sql = "SELECT " + self._compose_modifiers()

        if not self._select:
            sql += "*"
        else:
            sql += ", ".join(
                item if item in self._aliased_tables else self.protect(item, quoted)
                for item, quoted in self._select.items()
            )

        if self._from:
            tables = ", ".join(self._from)
            sql += f"\nFROM {tables}" if NESTED_FROM.search(tables) else f"\nFROM ({tables})"

        if self._join:
            sql += "\n" + "\n".join(self._join)

        sql += self._compose_conditions()

        if self._group_by:
            sql += "\nGROUP BY " + ", ".join(self._group_by)

        if self.having_fragments:
            sql += "\nHAVING " + "\n".join(self.having_fragments)

        sql += self._compose_order_by()

        if self._limit:
            sql += "\n" + self.dialect.compose_limit(self._limit, self._offset)

        return sql

    def _compose_insert(self, table: str, replace: bool) -> str:
        verb = "REPLACE" if replace else "INSERT"
        columns = ", ".join(self._set.keys())
        values = ", ".join(self._set.values())
        return f"{verb} {self._compose_modifiers()}INTO {table} ({columns}) VALUES ({values})"

    def _compose_insert_batch(self, table: str, replace: bool) -> str:
        verb = "REPLACE" if replace else "INSERT"
        columns = list(self._set_batch[0].keys())
        for index, row in enumerate(self._set_batch):
            if list(row.keys()) != columns:
                raise validation_error(
                    "Batch rows must share the column set of the first row",
                    field="row",
                    value=index,
                )

        tuples = ", ".join("(" + ", ".join(row.values()) + ")" for row in self._set_batch)
        return f"{verb} {self._compose_modifiers()}INTO {table} ({', '.join(columns)}) VALUES {tuples}"

    def _compose_update(self, table: str) -> str:
        self._close_open_groups()
        assignments = ", ".join(f"{column} = {value}" for column, value in self._set.items())
        sql = f"UPDATE {self._compose_modifiers()}{table} SET {assignments}"

        if self.where_fragments:
            sql += " WHERE " + " ".join(self.where_fragments)
        sql += self._compose_order_by(" ")
        if self._limit:
            sql += f" LIMIT {self._limit}"
        return sql

    def _compose_update_batch(self, table: str) -> str:
        self._close_open_groups()
        if not self._where_key:
            raise validation_error("Batch update requires a key column, see where_key()")

        key = self.protect(self._where_key)
        columns = list(self._set_batch[0].keys())
        for index, row in enumerate(self._set_batch):
            if key not in row:
                raise validation_error(f"Batch row is missing key column {key}", field="row", value=index)
            if list(row.keys()) != columns:
                raise validation_error(
                    "Batch rows must share the column set of the first row",
                    field="row",
                    value=index,
                )

        cases = []
        for column in columns:
            if column == key:
                continue
            whens = "".join(f"WHEN {key} = {row[key]} THEN {row[column]}\n" for row in self._set_batch)
            cases.append(f"{column} = CASE \n{whens}ELSE {column} END")

        if not cases:
            raise validation_error("Batch update has no columns besides the key column", field=self._where_key)

        ids = ",".join(row[key] for row in self._set_batch)
        where = " ".join(self.where_fragments)
        where = f"{where} AND " if where else ""

        sql = f"UPDATE {self._compose_modifiers()}{table} SET " + ", ".join(cases)
        sql += f" WHERE {where}{key} IN ({ids})"
        sql += self._compose_order_by(" ")
        if self._limit:
            sql += f" LIMIT {self._limit}"
        return sql

    def _compose_delete(self, table: str) -> str:
        self._close_open_groups()
        sql = f"DELETE {self._compose_modifiers()}FROM {table}{self._compose_conditions()}"
        if self._limit:
            sql += f" LIMIT {self._limit}"
        return sql

    # Terminal operations

    def row(self, *args: Any) -> Any:
        """Fetch the first row as a dict, or None."""
        return self._realize(self.compose_select(), None, FetchMethod.FETCH, *args)

    def rows(self, *args: Any) -> Any:
        """Fetch all rows as a list of dicts."""
        return self._realize(self.compose_select(), None, FetchMethod.FETCH_ALL, *args)

    def row_column(self, *args: Any) -> Any:
        """Fetch one column of the first row."""
        return self._realize(self.compose_select(), None, FetchMethod.FETCH_COLUMN, *args)

    def execute(
        self,
        sql: str,
        params: Any = None,
        method: Union[FetchMethod, str] = FetchMethod.EXECUTE,
        *args: Any,
    ) -> Any:
        """Run raw SQL through the same realize step as built statements."""
        return self._realize(sql, params, FetchMethod(method), *args)

    def insert(self, table: str = "", values: Any = None, replace: bool = False) -> Any:
        """Insert the SET data, or rows passed as a list, into ``table``.

        Returns False without executing when there is nothing to insert.
        """
        with self._flush_on_error():
            if values is not None:
                if _is_batch(values):
                    self.set_as_batch(values)
                else:
                    self.set(values)

            if not self._set and not self._set_batch:
                logger.debug("Skipping INSERT without values")
                self.flush()
                return False

            table = self._table_name(table)
            if self._set_batch:
                sql = self._compose_insert_batch(table, replace)
            else:
                sql = self._compose_insert(table, replace)

        return self._realize(sql)

    def replace(self, table: str = "", values: Any = None) -> Any:
        return self.insert(table, values, replace=True)

    def update(
        self,
        table: str = "",
        values: Any = None,
        where: Conditions = None,
        where_key: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Any:
        """Update ``table`` with the SET data.

        Rows passed as a list are applied with one CASE expression per
        column keyed by ``where_key``.
        """
        with self._flush_on_error():
            if values is not None:
                if _is_batch(values):
                    self.set_as_batch(values)
                else:
                    self.set(values)
            if where is not None:
                self.where(where)
            if where_key:
                self.where_key(where_key)
            if limit is not None:
                self.limit(limit)

            if not self._set and not self._set_batch:
                logger.debug("Skipping UPDATE without values")
                self.flush()
                return False

            table = self._table_name(table)
            if self._set_batch:
                sql = self._compose_update_batch(table)
            else:
                sql = self._compose_update(table)

        return self._realize(sql)

    def delete(
        self,
        table: Union[str, Sequence[str]] = "",
        where: Conditions = None,
        limit: Optional[int] = None,
    ) -> Any:
        """Delete matching rows.

        At least one WHERE or LIKE condition is required. A list of tables
        produces one DELETE per table.
        """
        with self._flush_on_error():
            if where:
                self.where(where)
            if limit is not None:
                self.limit(limit)

            if not self.where_fragments and not self.like_fragments:
                raise configuration_error("SQL query(delete) must use where condition")

            if isinstance(table, (list, tuple)):
                sql: Union[str, List[str]] = [self._compose_delete(self._table_name(name)) for name in table]
            else:
                sql = self._compose_delete(self._table_name(table))

        return self._realize(sql)

    def truncate(self, table: str = "") -> Any:
        with self._flush_on_error():
            sql = f"TRUNCATE {self._table_name(table)}"
        return self._realize(sql)

    def __str__(self) -> str:
        return self.compose_select()
