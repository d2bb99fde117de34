"""DDL composition.

``SchemaBuilder`` accumulates column and key definitions and renders
CREATE/ALTER/DROP statements through its dialect. Like the query builder,
it returns SQL in prepare mode and otherwise hands statements to the bound
engine, flushing pending definitions afterwards.

Example:
    >>> schema = db.get_schema_builder()
    >>> schema.add_column([
    ...     schema.column_primary_key().name("id"),
    ...     schema.column_string(64).name("email").not_null(),
    ... ]).add_index(schema.index_unique("email")).create_table("users")
"""

from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Union

from querystone.common.exceptions import ErrorCode, configuration_error
from querystone.constants.schema import ColumnType, IndexType
from querystone.constants.sql import FetchMethod
from querystone.logging import get_logger
from querystone.protocols.dialects import ColumnRenderer, IndexRenderer, SchemaRenderer
from querystone.query_builder.base import BaseBuilder
from querystone.schema.column import ColumnBuilder, Constraint
from querystone.schema.index import IndexBuilder

if TYPE_CHECKING:
    from querystone.dialects.base import SQLDialect
    from querystone.engine.database import Database

logger = get_logger(__name__)

ColumnInput = Union[ColumnBuilder, str]
IndexInput = Union[IndexBuilder, str]


def _capped(length: Optional[int], cap: int) -> Optional[int]:
    return min(cap, length) if length else None


class SchemaBuilder(BaseBuilder):
    """Renders and realizes DDL statements for one dialect."""

    def __init__(self, db: Optional["Database"] = None, dialect: Optional["SQLDialect"] = None):
        if dialect is None:
            from querystone.dialects.mysql import MySQLDialect
            dialect = MySQLDialect()
        if not all(isinstance(dialect, p) for p in (ColumnRenderer, IndexRenderer, SchemaRenderer)):
            raise configuration_error(
                f"Dialect {dialect!r} can not render DDL.", error_code=ErrorCode.CONFIG_INVALID
            )

        super().__init__(db)
        self.dialect = dialect
        self.quoter = dialect.quoter
        self._columns: List[str] = []
        self._keys: List[str] = []

    def flush(self) -> "SchemaBuilder":
        self._columns = []
        self._keys = []
        super().flush()
        return self

    @property
    def pending_columns(self) -> List[str]:
        return list(self._columns)

    @property
    def pending_keys(self) -> List[str]:
        return list(self._keys)

    # Column factories

    def _column(self, column_type: ColumnType, constraint: Optional[Constraint] = None) -> ColumnBuilder:
        return ColumnBuilder(self.dialect, column_type, constraint)

    def column_primary_key(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.PRIMARY_KEY, length)

    def column_big_pk(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.BIG_PRIMARY_KEY, length)

    def column_string(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.STRING, length)

    def column_text(self) -> ColumnBuilder:
        return self._column(ColumnType.TEXT)

    def column_medium_text(self) -> ColumnBuilder:
        return self._column(ColumnType.MEDIUM_TEXT)

    def column_long_text(self) -> ColumnBuilder:
        return self._column(ColumnType.LONG_TEXT)

    def column_tinyint(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.TINY_INTEGER, _capped(length, 3))

    def column_smallint(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.SMALL_INTEGER, _capped(length, 5))

    def column_int(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.INTEGER, length)

    def column_big_int(self, length: Optional[int] = None) -> ColumnBuilder:
        return self._column(ColumnType.BIG_INTEGER, length)

    def column_float(self, precision: Optional[Constraint] = None) -> ColumnBuilder:
        return self._column(ColumnType.FLOAT, precision)

    def column_double(self, precision: Optional[Constraint] = None) -> ColumnBuilder:
        return self._column(ColumnType.DOUBLE, precision)

    def column_decimal(self, precision: Optional[Constraint] = None) -> ColumnBuilder:
        return self._column(ColumnType.DECIMAL, precision)

    def column_money(self, precision: Optional[Constraint] = None) -> ColumnBuilder:
        return self._column(ColumnType.MONEY, precision)

    def column_datetime(self) -> ColumnBuilder:
        return self._column(ColumnType.DATETIME)

    def column_timestamp(self) -> ColumnBuilder:
        return self._column(ColumnType.TIMESTAMP)

    def column_time(self) -> ColumnBuilder:
        return self._column(ColumnType.TIME)

    def column_date(self) -> ColumnBuilder:
        return self._column(ColumnType.DATE)

    def column_binary(self) -> ColumnBuilder:
        return self._column(ColumnType.BINARY)

    def column_boolean(self) -> ColumnBuilder:
        return self._column(ColumnType.BOOLEAN)

    def column_json(self) -> ColumnBuilder:
        return self._column(ColumnType.JSON)

    # Index factories

    def primary_key(self, columns: Union[str, Iterable[str]]) -> IndexBuilder:
        return IndexBuilder(self.dialect, IndexType.PRIMARY, columns)

    def index(self, columns: Union[str, Iterable[str]], name: Optional[str] = None) -> IndexBuilder:
        return IndexBuilder(self.dialect, IndexType.INDEX, columns, name)

    def index_unique(self, columns: Union[str, Iterable[str]], name: Optional[str] = None) -> IndexBuilder:
        return IndexBuilder(self.dialect, IndexType.UNIQUE, columns, name)

    def index_fulltext(self, columns: Union[str, Iterable[str]], name: Optional[str] = None) -> IndexBuilder:
        return IndexBuilder(self.dialect, IndexType.FULLTEXT, columns, name)

    # Pending definitions

    @staticmethod
    def _as_list(items: Any) -> List[Any]:
        return list(items) if isinstance(items, (list, tuple)) else [items]

    def _render_column(self, column: ColumnInput) -> str:
        if isinstance(column, ColumnBuilder):
            return column.render()
        text = str(column).strip()
        if " " not in text:
            raise configuration_error(
                "Column information is required.",
                config_key=text or None,
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return text

    def _render_key(self, key: IndexInput) -> str:
        if isinstance(key, IndexBuilder):
            return key.render()
        text = str(key).strip()
        if not text:
            raise configuration_error("Index information is required.", error_code=ErrorCode.CONFIG_MISSING)
        return text

    def add_column(self, column: Union[ColumnInput, Sequence[ColumnInput]], table_name: Optional[str] = None) -> Any:
        """Queue columns for ``create_table``, or ALTER ``table_name`` right away."""
        with self._flush_on_error():
            rendered = [self._render_column(item) for item in self._as_list(column)]
            if table_name:
                sql = self.dialect.compose_alter_table(self._table(table_name), "ADD", rendered)
            else:
                self._columns.extend(rendered)
                return self
        return self._realize(sql)

    create_column = add_column

    def add_index(self, key: Union[IndexInput, Sequence[IndexInput]], table_name: Optional[str] = None) -> Any:
        """Queue keys for ``create_table``, or ALTER ``table_name`` right away."""
        with self._flush_on_error():
            rendered = [self._render_key(item) for item in self._as_list(key)]
            if table_name:
                sql = self.dialect.compose_alter_table(self._table(table_name), "ADD", rendered)
            else:
                self._keys.extend(rendered)
                return self
        return self._realize(sql)

    create_index = add_index

    @staticmethod
    def _table(name: str, kind: str = "Table") -> str:
        name = (name or "").strip()
        if not name:
            raise configuration_error(f"{kind} name can not be empty.", error_code=ErrorCode.CONFIG_MISSING)
        return name

    # Tables

    def create_table(self, table_name: str, if_not_exists: bool = True) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_create_table(
                self._table(table_name), self._columns, self._keys, if_not_exists
            )
        return self._realize(sql)

    def modify_column(self, table_name: str, column: Union[ColumnInput, Sequence[ColumnInput]]) -> Any:
        with self._flush_on_error():
            rendered = [self._render_column(item) for item in self._as_list(column)]
            sql = self.dialect.compose_alter_table(self._table(table_name), "MODIFY", rendered)
        return self._realize(sql)

    def drop_column(self, table_name: str, column_name: Union[str, Sequence[str]]) -> Any:
        with self._flush_on_error():
            names = [self.quoter.protect_identifiers(name) for name in self._as_list(column_name)]
            sql = self.dialect.compose_alter_table(self._table(table_name), "DROP", names)
        return self._realize(sql)

    def rename_table(self, old_name: str, new_name: str) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_rename_table(self._table(old_name), self._table(new_name))
        return self._realize(sql)

    def drop_table(self, table_name: str, if_exists: bool = True) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_drop_table(self._table(table_name), if_exists)
        return self._realize(sql)

    def drop_table_if_exists(self, table_name: str) -> Any:
        return self.drop_table(table_name, True)

    def drop_index(self, table_name: str, index_name: str) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_drop_index(self._table(table_name), self._table(index_name, "Index"))
        return self._realize(sql)

    def drop_primary_key(self, table_name: str) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_drop_primary_key(self._table(table_name))
        return self._realize(sql)

    def exists_table(self, table_name: str) -> Any:
        """Whether ``table_name`` exists. Returns the SQL in prepare mode."""
        with self._flush_on_error():
            sql = self.dialect.compose_exists_table(self._table(table_name))
        result = self._realize(sql, None, FetchMethod.FETCH_ALL)
        if isinstance(result, str):
            return result
        return bool(result)

    def describe_table(self, table_name: str) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_describe_table(self._table(table_name))
        return self._realize(sql, None, FetchMethod.FETCH_ALL)

    def show_tables(self, database: Optional[str] = None) -> Any:
        return self._realize(self.dialect.compose_show_tables(database), None, FetchMethod.FETCH_ALL)

    def show_index(self, table_name: str, database: Optional[str] = None) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_show_index(self._table(table_name), database)
        return self._realize(sql, None, FetchMethod.FETCH_ALL)

    # Databases

    def create_database(
        self,
        name: str,
        if_not_exists: bool = True,
        charset: Optional[str] = None,
        collation: Optional[str] = None,
    ) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_create_database(self._table(name, "Database"), if_not_exists, charset, collation)
        return self._realize(sql)

    def drop_database(self, name: str, if_exists: bool = True) -> Any:
        with self._flush_on_error():
            sql = self.dialect.compose_drop_database(self._table(name, "Database"), if_exists)
        return self._realize(sql)

    def show_databases(self) -> Any:
        return self._realize(self.dialect.compose_show_databases(), None, FetchMethod.FETCH_ALL)
