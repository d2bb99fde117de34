"""Schema definition constants for columns and indexes."""

from enum import Enum


class ColumnType(str, Enum):
    """Logical column types rendered by a dialect's column renderer."""

    PRIMARY_KEY = "pk"
    BIG_PRIMARY_KEY = "bigpk"
    STRING = "string"
    TEXT = "text"
    MEDIUM_TEXT = "mediumtext"
    LONG_TEXT = "longtext"
    TINY_INTEGER = "tinyint"
    SMALL_INTEGER = "smallint"
    INTEGER = "integer"
    BIG_INTEGER = "bigint"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    DATE = "date"
    BINARY = "binary"
    BOOLEAN = "boolean"
    MONEY = "money"
    JSON = "json"

    @property
    def is_primary_key(self) -> bool:
        return self in (ColumnType.PRIMARY_KEY, ColumnType.BIG_PRIMARY_KEY)


class IndexType(str, Enum):
    PRIMARY = "PRIMARY KEY"
    INDEX = "INDEX"
    UNIQUE = "UNIQUE"
    FULLTEXT = "FULLTEXT"


class ColumnPlacement(str, Enum):
    """Relative placement of a column inside ALTER TABLE statements."""

    FIRST = "FIRST"
    AFTER = "AFTER"
