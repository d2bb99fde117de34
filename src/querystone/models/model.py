"""Active-record style model on top of the query builder."""

import re
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional

from querystone.common.exceptions import ErrorCode, configuration_error
from querystone.logging import get_logger
from querystone.models.record import RecordItem

if TYPE_CHECKING:
    from querystone.engine.database import Database

logger = get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<![A-Z])([A-Z])")


def snake_case(name: str) -> str:
    """``OrderItem`` -> ``order_item``; acronym runs stay together (``HTTPLog`` -> ``httplog``)."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).strip("_").lower()


class Model(RecordItem):
    """One table row bound to a ``Database``.

    The table defaults to the snake_case class name and the primary key to
    ``id``. Each write has ``before_*`` and ``after_*`` hooks; a
    ``before_*`` hook returning False cancels the operation.

    Example:
        >>> class OrderItem(Model):
        ...     pass
        >>> item = OrderItem(db)
        >>> item.find(3)
        >>> item["quantity"] = 2
        >>> item.update()
    """

    table_name: ClassVar[Optional[str]] = None
    primary_key: ClassVar[str] = "id"

    def __init__(self, db: Optional["Database"] = None, data: Optional[Mapping[str, Any]] = None):
        super().__init__()
        self._db = db
        self._exists = False
        if data:
            self.load(data)

    @classmethod
    def get_table_name(cls) -> str:
        return cls.table_name or snake_case(cls.__name__)

    @property
    def db(self) -> "Database":
        if self._db is None:
            raise configuration_error(
                f"{type(self).__name__} is not bound to a database",
                error_code=ErrorCode.CONFIG_MISSING,
            )
        return self._db

    def set_db(self, db: "Database") -> "Model":
        self._db = db
        return self

    @property
    def id(self) -> Any:
        return self.get(self.primary_key)

    def is_existing(self) -> bool:
        return self._exists and self.id is not None

    def load(self, data: Mapping[str, Any]) -> bool:
        """Replace all fields with ``data``. Returns False when ``before_load`` vetoes."""
        self.flush()
        data = dict(data)
        if self.before_load(data) is False:
            return False
        self.update_fields(data)
        self.after_load()
        return True

    def find(self, id: Any) -> Optional[Dict[str, Any]]:
        return self.find_by_condition({self.primary_key: id}, assign=True)

    def find_by_condition(self, condition: Any, assign: bool = False) -> Optional[Dict[str, Any]]:
        """Fetch the first row matching ``condition``.

        With ``assign`` the row is loaded into this model, which then
        counts as existing.
        """
        if assign:
            self._exists = False

        sql = (
            self.db.get_query_builder()
            .prepare()
            .select("*")
            .from_(self.get_table_name())
            .where(condition)
            .limit(1)
            .row()
        )
        row = self.db.load_sql(sql).fetch()
        if row is None:
            return None

        if assign:
            if not self.load(row):
                return None
            self._exists = True
        return row

    def insert(self) -> Any:
        """Insert the fields as a new row. An existing model is updated instead."""
        if self.is_existing():
            return self.update()
        if self.before_insert() is False:
            return None

        result = self.db.get_query_builder().insert(self.get_table_name(), self.to_dict())
        if result:
            if self.id is None:
                self.store(self.primary_key, self.db.get_last_insert_id())
            self._exists = True
            self.after_insert()
        return result

    def update(self) -> Any:
        """Write the fields back to the row. A new model is inserted instead."""
        if not self.is_existing():
            return self.insert()
        if self.before_update() is False:
            return None

        values = {name: value for name, value in self.to_dict().items() if name != self.primary_key}
        result = (
            self.db.get_query_builder()
            .where(self.primary_key, self.id)
            .update(self.get_table_name(), values)
        )
        self.after_update()
        return result

    def delete(self, id: Any = None) -> Any:
        """Delete the row with ``id``, defaulting to this model's own row."""
        own_row = id is None
        if own_row:
            id = self.id
        if id is None:
            logger.debug("Skipping DELETE without primary key", extra={"table": self.get_table_name()})
            return None
        if self.before_delete() is False:
            return None

        result = self.db.get_query_builder().delete(self.get_table_name(), {self.primary_key: id})
        if own_row:
            self._exists = False
        self.after_delete()
        return result

    def truncate(self) -> Any:
        if self.before_truncate() is False:
            return None
        result = self.db.get_query_builder().truncate(self.get_table_name())
        self._exists = False
        self.after_truncate()
        return result

    # Hooks

    def before_load(self, data: Dict[str, Any]) -> bool:
        return True

    def after_load(self) -> None:
        pass

    def before_insert(self) -> bool:
        return True

    def after_insert(self) -> None:
        pass

    def before_update(self) -> bool:
        return True

    def after_update(self) -> None:
        pass

    def before_delete(self) -> bool:
        return True

    def after_delete(self) -> None:
        pass

    def before_truncate(self) -> bool:
        return True

    def after_truncate(self) -> None:
        pass
