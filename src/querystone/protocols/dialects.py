"""Dialect capability protocols.

A dialect adapter is passed explicitly to every builder. Each capability
is a separate protocol so a partial adapter can be checked with
``isinstance`` against exactly what a builder needs.
"""

from typing import TYPE_CHECKING, Any, Optional, Protocol

from typing_extensions import runtime_checkable

if TYPE_CHECKING:
    from querystone.schema.column import ColumnDefinition
    from querystone.schema.index import IndexDefinition


@runtime_checkable
class IdentifierRules(Protocol):
    """Quoting rules and statement-level keywords of a dialect."""

    name: str
    quoter: Any
    identifier_delimiter: str
    random_function: str

    def compose_limit(self, limit: int, offset: Optional[int] = None) -> str:
        ...


@runtime_checkable
class ColumnRenderer(Protocol):
    def render_column(self, column: "ColumnDefinition") -> str:
        """Render one column definition as used in CREATE/ALTER TABLE."""
        ...


@runtime_checkable
class IndexRenderer(Protocol):
    def render_index(self, index: "IndexDefinition") -> str:
        """Render one key definition as used in CREATE/ALTER TABLE."""
        ...


@runtime_checkable
class SchemaRenderer(Protocol):
    """Whole-statement DDL composition."""

    def compose_create_table(self, table: str, columns: list, keys: list, if_not_exists: bool = True) -> str:
        ...

    def compose_alter_table(self, table: str, action: str, definitions: list) -> str:
        ...

    def compose_rename_table(self, old_name: str, new_name: str) -> str:
        ...

    def compose_drop_table(self, table: str, if_exists: bool = True) -> str:
        ...

    def compose_drop_index(self, table: str, index_name: str) -> str:
        ...

    def compose_drop_primary_key(self, table: str) -> str:
        ...

    def compose_create_database(
        self,
        name: str,
        if_not_exists: bool = True,
        charset: Optional[str] = None,
        collation: Optional[str] = None,
    ) -> str:
        ...

    def compose_drop_database(self, name: str, if_exists: bool = True) -> str:
        ...

    def compose_exists_table(self, table: str) -> str:
        ...

    def compose_describe_table(self, table: str) -> str:
        ...

    def compose_show_databases(self) -> str:
        ...

    def compose_show_index(self, table: str, database: Optional[str] = None) -> str:
        ...

    def compose_show_tables(self, database: Optional[str] = None) -> str:
        ...
