"""Column definitions and their fluent builder."""

from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from querystone.constants.schema import ColumnPlacement, ColumnType

if TYPE_CHECKING:
    from querystone.protocols.dialects import ColumnRenderer

Constraint = Union[int, float, str, Tuple[int, int], List[int]]


class ColumnDefinition(BaseModel):
    """Semantic attributes of one column, independent of any dialect.

    ``has_default`` distinguishes "no DEFAULT clause" from an explicit
    ``DEFAULT NULL``.
    """

    model_config = ConfigDict(validate_assignment=True)

    name: str = ""
    type: ColumnType
    constraint: Optional[Constraint] = None
    not_null: bool = False
    unique: bool = False
    unsigned: bool = False
    has_default: bool = False
    default: Any = None
    default_quoted: bool = True
    comment: Optional[str] = None
    placement: Optional[ColumnPlacement] = None
    after_column: Optional[str] = None


class ColumnBuilder:
    """Fluent configuration of a ``ColumnDefinition``.

    Builders are created through a schema builder's ``column_*`` factories,
    configured through chained setters and rendered once by the dialect
    they were created for.

    Example:
        >>> schema.column_string(32).name("title").not_null().default("untitled")
    """

    def __init__(self, renderer: "ColumnRenderer", column_type: ColumnType, constraint: Optional[Constraint] = None):
        self._renderer = renderer
        self.definition = ColumnDefinition(type=column_type, constraint=constraint)

    def name(self, name: str) -> "ColumnBuilder":
        self.definition.name = name
        return self

    def length(self, constraint: Constraint) -> "ColumnBuilder":
        self.definition.constraint = constraint
        return self

    def unsigned(self) -> "ColumnBuilder":
        self.definition.unsigned = True
        return self

    def not_null(self) -> "ColumnBuilder":
        self.definition.not_null = True
        return self

    def null(self) -> "ColumnBuilder":
        self.definition.not_null = False
        return self

    def unique(self) -> "ColumnBuilder":
        self.definition.unique = True
        return self

    def default(self, value: Any, quoted: bool = True) -> "ColumnBuilder":
        """Set the DEFAULT value.

        Args:
            value: None, int, float, bool or string default.
            quoted: Quote string defaults. Pass False for expressions such
                as ``CURRENT_TIMESTAMP``.
        """
        self.definition.has_default = True
        self.definition.default = value
        self.definition.default_quoted = quoted
        return self

    def comment(self, comment: str) -> "ColumnBuilder":
        self.definition.comment = comment
        return self

    def first(self) -> "ColumnBuilder":
        self.definition.placement = ColumnPlacement.FIRST
        self.definition.after_column = None
        return self

    def after(self, column: str) -> "ColumnBuilder":
        self.definition.placement = ColumnPlacement.AFTER
        self.definition.after_column = column
        return self

    def render(self) -> str:
        return self._renderer.render_column(self.definition)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"ColumnBuilder({self.definition.name!r}, {self.definition.type.value!r})"
