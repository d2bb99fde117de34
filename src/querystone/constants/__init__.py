"""Constants module for querystone.

Enumerations used throughout the toolkit. This module has no dependencies
on other querystone modules.

Organization:
    - sql: statement, clause and fetch constants
    - schema: column and index definition constants
"""

from querystone.constants.schema import ColumnPlacement, ColumnType, IndexType
from querystone.constants.sql import (
    CACHEABLE_STATEMENT,
    Connective,
    FetchMethod,
    JoinType,
    LikeSide,
    SortDirection,
)

__all__ = [
    "CACHEABLE_STATEMENT",
    "ColumnPlacement",
    "ColumnType",
    "Connective",
    "FetchMethod",
    "IndexType",
    "JoinType",
    "LikeSide",
    "SortDirection",
]
