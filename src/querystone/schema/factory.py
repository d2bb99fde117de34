"""Schema Builder Factory.

This module creates schema, column and index builders for a dialect
selected by name, so callers never import a concrete dialect adapter.
"""

from typing import TYPE_CHECKING, Iterable, Mapping, Optional, Union

from querystone.constants.schema import ColumnType, IndexType
from querystone.dialects import SQLDialect, resolve_dialect
from querystone.schema.builder import SchemaBuilder
from querystone.schema.column import ColumnBuilder, Constraint
from querystone.schema.index import IndexBuilder

if TYPE_CHECKING:
    from querystone.engine.database import Database


class SchemaBuilderFactory:
    """Factory for dialect-specific schema builders.

    Every method takes the dialect name and an optional mapping of
    available adapters. Without a mapping the default adapters are used.
    An unknown dialect name raises a NOT_SUPPORTED ``QuerystoneError``.

    Example:
        >>> schema = SchemaBuilderFactory.create_schema_builder("mysql", db=db)
        >>> column = SchemaBuilderFactory.create_column_builder("mysql", ColumnType.STRING, 64)
    """

    @staticmethod
    def create_schema_builder(
        dialect_name: str,
        db: Optional["Database"] = None,
        dialects: Optional[Mapping[str, SQLDialect]] = None,
    ) -> SchemaBuilder:
        return SchemaBuilder(db, resolve_dialect(dialect_name, dialects))

    @staticmethod
    def create_column_builder(
        dialect_name: str,
        column_type: Union[ColumnType, str],
        constraint: Optional[Constraint] = None,
        dialects: Optional[Mapping[str, SQLDialect]] = None,
    ) -> ColumnBuilder:
        return ColumnBuilder(resolve_dialect(dialect_name, dialects), ColumnType(column_type), constraint)

    @staticmethod
    def create_index_builder(
        dialect_name: str,
        index_type: Union[IndexType, str] = IndexType.INDEX,
        columns: Union[str, Iterable[str], None] = None,
        name: Optional[str] = None,
        dialects: Optional[Mapping[str, SQLDialect]] = None,
    ) -> IndexBuilder:
        return IndexBuilder(resolve_dialect(dialect_name, dialects), IndexType(index_type), columns, name)
