"""Paged row collections."""

import copy
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

import pandas as pd

from querystone.common.exceptions import ErrorCode, configuration_error, validation_error
from querystone.models.record import RecordItem

if TYPE_CHECKING:
    from querystone.engine.database import Database
    from querystone.query_builder.statement import QueryBuilder


def _row_as_dict(row: Any) -> Dict[str, Any]:
    if isinstance(row, RecordItem):
        return row.to_dict()
    if isinstance(row, Mapping):
        return dict(row)
    return {name: value for name, value in vars(row).items() if not name.startswith("_")}


class Recordset(ABC):
    """A page of rows produced by ``get_query``.

    Subclasses implement ``get_query`` and usually build it with
    ``query_builder()`` and ``paginate()``:

        >>> class RecentOrders(Recordset):
        ...     def get_query(self):
        ...         qb = self.query_builder().select("*").from_("orders").order_by("id", "DESC")
        ...         return self.paginate(qb).rows()
        >>> orders = RecentOrders(db, page_size=20).fetch_rows()
        >>> [order["id"] for order in orders]
    """

    def __init__(
        self,
        db: Optional["Database"] = None,
        params: Any = None,
        columns: Optional[Sequence[str]] = None,
        page_size: int = 10,
        page_index: int = 1,
    ):
        self._db = db
        self.params = params
        self._columns: List[str] = list(columns or [])
        self._rows: List[Any] = []
        self._cursor = 0
        self.page_size = page_size
        self.page_index = page_index

    @abstractmethod
    def get_query(self) -> str:
        """SQL producing the rows of the current page."""

    @property
    def db(self) -> "Database":
        if self._db is None:
            raise configuration_error(
                f"{type(self).__name__} is not bound to a database",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return self._db

    def set_db(self, db: "Database") -> "Recordset":
        self._db = db
        return self

    # Paging

    @property
    def page_size(self) -> int:
        return self._page_size

    @page_size.setter
    def page_size(self, value: int) -> None:
        if value < 1:
            raise validation_error("Page size must be at least 1", field="page_size", value=value)
        self._page_size = value

    @property
    def page_index(self) -> int:
        return self._page_index

    @page_index.setter
    def page_index(self, value: int) -> None:
        if value < 1:
            raise validation_error("Page index starts at 1", field="page_index", value=value)
        self._page_index = value

    @property
    def offset(self) -> int:
        return (self._page_index - 1) * self._page_size

    def query_builder(self) -> "QueryBuilder":
        """A query builder in prepare mode, so terminal calls return SQL."""
        qb = self.db.get_query_builder()
        qb.prepare()
        return qb

    def paginate(self, qb: "QueryBuilder") -> "QueryBuilder":
        qb.limit(self._page_size, self.offset)
        return qb

    # Rows

    def fetch_rows(self, factory: Optional[Callable[[Dict[str, Any]], Any]] = None) -> "Recordset":
        rows = self.db.load_sql(self.get_query(), self.params).fetch_all(factory)
        return self.set_rows(rows)

    def set_rows(self, rows: Sequence[Any]) -> "Recordset":
        self.flush()
        for row in rows:
            self._rows.append(self._normalize(row))
        return self

    def _normalize(self, row: Any) -> Any:
        if not self._columns:
            return row
        if isinstance(row, RecordItem):
            filtered = copy.copy(row)
            filtered.flush()
            for name in self._columns:
                if name in row:
                    filtered.store(name, row.get(name))
            return filtered
        if isinstance(row, Mapping):
            return {name: row[name] for name in self._columns if name in row}
        return row

    def filter_columns(self, *columns: str) -> "Recordset":
        """Keep only ``columns`` in loaded and future rows. No arguments clears the filter."""
        self._columns = list(columns)
        self._rows = [self._normalize(row) for row in self._rows]
        return self

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    @property
    def rows(self) -> List[Any]:
        return list(self._rows)

    def fetch_row(self, index: Optional[int] = None) -> Any:
        """Row at ``index``, or the next row of the internal cursor when omitted."""
        if index is not None:
            return self._rows[index] if 0 <= index < len(self._rows) else None

        if self._cursor >= len(self._rows):
            return None
        row = self._rows[self._cursor]
        self._cursor += 1
        return row

    def rewind(self) -> None:
        self._cursor = 0

    def first(self) -> Any:
        return self._rows[0] if self._rows else None

    def last(self) -> Any:
        return self._rows[-1] if self._rows else None

    def get_column(self, name: str, row: Any = None) -> Any:
        """Value of column ``name`` in ``row``, defaulting to the first row."""
        if row is None:
            row = self.first()
        if row is None:
            return None
        if isinstance(row, (RecordItem, Mapping)):
            return row.get(name)
        return getattr(row, name, None)

    def flush(self) -> None:
        self._rows = []
        self._cursor = 0

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records([_row_as_dict(row) for row in self._rows], columns=self._columns or None)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> Any:
        return self._rows[index]
