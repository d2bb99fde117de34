"""Dialect adapter base class.

A dialect bundles every capability the builders need: identifier rules,
column rendering, index rendering and whole-statement DDL composition.
Builders receive a dialect instance explicitly; there is no global
registry.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from querystone.query_builder.quoting import IdentifierQuoter

if TYPE_CHECKING:
    from querystone.schema.column import ColumnDefinition
    from querystone.schema.index import IndexDefinition


class SQLDialect(ABC):
    """Base interface for dialect adapters.

    Subclasses set the class attributes and implement the renderers. The
    shared ``quoter`` is built from ``identifier_delimiter`` and
    ``reserved_identifiers``.
    """

    name: str = ""
    identifier_delimiter: str = '"'
    reserved_identifiers: Tuple[str, ...] = ("*",)
    random_function: str = "RANDOM()"

    def __init__(self, reserved_identifiers: Optional[Iterable[str]] = None):
        reserved = set(self.reserved_identifiers)
        if reserved_identifiers:
            reserved.update(reserved_identifiers)
        self.quoter = IdentifierQuoter(self.identifier_delimiter, reserved)

    def compose_limit(self, limit: int, offset: Optional[int] = None) -> str:
        if offset:
            return f"LIMIT {limit} OFFSET {offset}"
        return f"LIMIT {limit}"

    # Column and index rendering

    @abstractmethod
    def render_column(self, column: "ColumnDefinition") -> str:
        pass

    @abstractmethod
    def render_index(self, index: "IndexDefinition") -> str:
        pass

    # Whole statements

    @abstractmethod
    def compose_create_table(
        self,
        table: str,
        columns: List[str],
        keys: List[str],
        if_not_exists: bool = True,
    ) -> str:
        pass

    @abstractmethod
    def compose_alter_table(self, table: str, action: str, definitions: List[str]) -> str:
        pass

    @abstractmethod
    def compose_rename_table(self, old_name: str, new_name: str) -> str:
        pass

    @abstractmethod
    def compose_drop_table(self, table: str, if_exists: bool = True) -> str:
        pass

    @abstractmethod
    def compose_drop_index(self, table: str, index_name: str) -> str:
        pass

    @abstractmethod
    def compose_drop_primary_key(self, table: str) -> str:
        pass

    @abstractmethod
    def compose_create_database(
        self,
        name: str,
        if_not_exists: bool = True,
        charset: Optional[str] = None,
        collation: Optional[str] = None,
    ) -> str:
        pass

    @abstractmethod
    def compose_drop_database(self, name: str, if_exists: bool = True) -> str:
        pass

    @abstractmethod
    def compose_exists_table(self, table: str) -> str:
        pass

    @abstractmethod
    def compose_describe_table(self, table: str) -> str:
        pass

    @abstractmethod
    def compose_show_databases(self) -> str:
        pass

    @abstractmethod
    def compose_show_index(self, table: str, database: Optional[str] = None) -> str:
        pass

    @abstractmethod
    def compose_show_tables(self, database: Optional[str] = None) -> str:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
