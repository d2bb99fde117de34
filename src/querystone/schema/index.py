"""Index definitions and their fluent builder."""

from typing import TYPE_CHECKING, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from querystone.constants.schema import IndexType

if TYPE_CHECKING:
    from querystone.protocols.dialects import IndexRenderer


class IndexDefinition(BaseModel):
    type: IndexType = IndexType.INDEX
    columns: List[str] = Field(default_factory=list)
    name: Optional[str] = None

    def add_columns(self, columns: Iterable[str]) -> None:
        """Append columns, keeping insertion order and dropping duplicates."""
        for column in columns:
            column = str(column).strip()
            if column and column not in self.columns:
                self.columns.append(column)

    def get_name(self) -> str:
        return self.name or "_".join(self.columns)


class IndexBuilder:
    """Fluent configuration of an ``IndexDefinition``."""

    def __init__(
        self,
        renderer: "IndexRenderer",
        index_type: IndexType,
        columns: Union[str, Iterable[str], None] = None,
        name: Optional[str] = None,
    ):
        self._renderer = renderer
        self.definition = IndexDefinition(type=index_type, name=name)
        if columns is not None:
            self.columns(columns)

    def columns(self, *columns: Union[str, Iterable[str]]) -> "IndexBuilder":
        """Add columns. Comma-separated strings and iterables are accepted."""
        for column in columns:
            if isinstance(column, str):
                self.definition.add_columns(column.split(","))
            else:
                self.definition.add_columns(column)
        return self

    def name(self, name: str) -> "IndexBuilder":
        self.definition.name = name
        return self

    def render(self) -> str:
        return self._renderer.render_index(self.definition)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"IndexBuilder({self.definition.type.value!r}, {self.definition.columns!r})"
