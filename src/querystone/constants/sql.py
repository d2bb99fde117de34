"""SQL statement and clause constants.

Enumerations shared by the query builder and the execution engine. This
module has no dependencies on other querystone modules.
"""

import re
from enum import Enum


class FetchMethod(str, Enum):
    """How the execution engine materializes a statement's result.

    The value takes part in cache key derivation, so the same SQL fetched
    as a single row and as a row list never share a cache entry.
    """

    EXECUTE = "execute"
    FETCH = "fetch"
    FETCH_ALL = "fetch_all"
    FETCH_COLUMN = "fetch_column"


class Connective(str, Enum):
    """Boolean connective prefixed to a condition fragment."""

    AND = "AND"
    OR = "OR"


class LikeSide(str, Enum):
    """Side(s) of a LIKE value wrapped with the ``%`` wildcard."""

    NONE = "none"
    BEFORE = "before"
    AFTER = "after"
    BOTH = "both"


class JoinType(str, Enum):
    """Join types accepted by ``join``. Anything else renders a plain JOIN."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"
    OUTER = "OUTER"
    INNER = "INNER"
    LEFT_OUTER = "LEFT OUTER"
    RIGHT_OUTER = "RIGHT OUTER"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"
    RANDOM = "RANDOM"


# Read-only statements whose results may be cached
CACHEABLE_STATEMENT = re.compile(r"^\s*(SELECT|SHOW|DESCRIBE)\b", re.IGNORECASE)

# Raw subqueries passed to ``from_``
SUBQUERY_STATEMENT = re.compile(r"^\s*\(?\s*(SELECT|SHOW|DESCRIBE)\b", re.IGNORECASE)

# FROM text that must not be wrapped in brackets
NESTED_FROM = re.compile(r"\b(SELECT|FROM|JOIN)\b", re.IGNORECASE)

# Condition left-hand sides that already carry a comparison
COMPARISON_OPERATOR = re.compile(r"(\s|<|>|!|=|is null|is not null)", re.IGNORECASE)
