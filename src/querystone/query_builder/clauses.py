"""Clause accumulation for the statement builder.

``ClauseComposer`` keeps the per-statement fragment lists and implements
every chainable clause method. Conditions (WHERE, LIKE, HAVING) live in a
small arena of fragment lists; bracket groups are tracked as a stack of
arena handles, so a condition appended while a group is open always lands
in the buffer the group was opened on.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from querystone.constants.sql import (
    SUBQUERY_STATEMENT,
    Connective,
    JoinType,
    LikeSide,
    SortDirection,
)
from querystone.logging import get_logger
from querystone.query_builder.quoting import IdentifierQuoter, has_operator

logger = get_logger(__name__)

BRACKET_START = "("
BRACKET_END = ")"

# Arena handles
WHERE = 0
LIKE = 1
HAVING = 2

_JOIN_RULE = re.compile(r"([\w.]+)([\W\s]+)(.+)")
_AS_KEYWORD = re.compile(r"\s+AS\s+", re.IGNORECASE)
_JOIN_TYPES = {join_type.value for join_type in JoinType}

Conditions = Union[str, Mapping[str, Any], None]


class ClauseComposer:
    """Mutable clause state of one statement and the methods that fill it.

    Every clause method returns ``self`` for chaining. Unusable input (a
    None key, an empty IN list) is skipped and logged at DEBUG.
    """

    def __init__(self, quoter: IdentifierQuoter, random_function: str = "RAND()"):
        self.quoter = quoter
        self.random_function = random_function
        self._reset_clauses()

    def _reset_clauses(self) -> None:
        self._select: Dict[str, Optional[bool]] = {}
        self._from: List[str] = []
        self._join: List[str] = []
        self._arena: List[List[str]] = [[], [], []]
        self._active: Optional[int] = None
        self._group_stack: List[Optional[int]] = []
        self._group_by: List[str] = []
        self._order_by: List[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._modifiers: List[str] = []
        self._aliased_tables: List[str] = []

    # Fragment access

    @property
    def where_fragments(self) -> List[str]:
        return self._arena[WHERE]

    @property
    def like_fragments(self) -> List[str]:
        return self._arena[LIKE]

    @property
    def having_fragments(self) -> List[str]:
        return self._arena[HAVING]

    @property
    def open_groups(self) -> int:
        return len(self._group_stack)

    def protect(self, item: Any, protect: Optional[bool] = True) -> Any:
        return self.quoter.protect_identifiers(item, protect)

    def quote(self, value: Any) -> str:
        return self.quoter.quote(value)

    # Bracket groups

    def _open_group(self, target: int) -> "ClauseComposer":
        self._arena[target].append(BRACKET_START)
        self._group_stack.append(self._active)
        self._active = target
        return self

    def _close_group(self) -> "ClauseComposer":
        if self._active is None:
            logger.debug("Ignoring bracket close without an open group")
            return self

        buffer = self._arena[self._active]
        if buffer and buffer[-1] == BRACKET_START:
            # Nothing was added since the group opened
            buffer.pop()
        else:
            buffer.append(BRACKET_END)

        self._active = self._group_stack.pop()
        return self

    def _close_open_groups(self) -> None:
        if self._active is None:
            return
        logger.warning("Closing unbalanced bracket groups", extra={"open_groups": self.open_groups})
        while self._active is not None:
            self._close_group()

    def where_brackets(self) -> "ClauseComposer":
        return self._open_group(WHERE)

    def where_brackets_end(self) -> "ClauseComposer":
        return self._close_group()

    def like_brackets(self) -> "ClauseComposer":
        return self._open_group(LIKE)

    def like_brackets_end(self) -> "ClauseComposer":
        return self._close_group()

    def having_brackets(self) -> "ClauseComposer":
        return self._open_group(HAVING)

    def having_brackets_end(self) -> "ClauseComposer":
        return self._close_group()

    def _prefix(self, target: int, connective: Connective) -> str:
        """Connective for the next fragment of ``target``.

        Inside a group, brackets opened since the last condition are merged
        into the prefix so a condition directly follows ``(``.
        """
        keyword = f"{connective.value} "

        if self._active is None:
            return keyword if self._arena[target] else ""

        buffer = self._arena[self._active]
        if not buffer or buffer[-1] != BRACKET_START:
            return keyword

        brackets = ""
        while buffer and buffer[-1] == BRACKET_START:
            brackets += buffer.pop()

        return f"{keyword}{brackets}" if buffer else brackets

    def _accept(self, target: int, statement: str) -> None:
        self._arena[self._active if self._active is not None else target].append(statement)

    # WHERE

    def where(self, key: Conditions, value: Any = None, escape: bool = True) -> "ClauseComposer":
        """Add ``AND`` conditions.

        Args:
            key: Column (optionally with an operator, ``"age >"``), a raw
                condition, or a mapping of column to value.
            value: Compared value. None renders ``IS NULL`` unless the key
                carries its own operator.
            escape: Quote the column and the value.
        """
        return self._compose_where(key, value, Connective.AND, escape)

    def or_where(self, key: Conditions, value: Any = None, escape: bool = True) -> "ClauseComposer":
        return self._compose_where(key, value, Connective.OR, escape)

    def _compose_where(self, key: Conditions, value: Any, connective: Connective, escape: bool) -> "ClauseComposer":
        if key is None and value is None:
            return self

        pairs = key.items() if isinstance(key, Mapping) else [(key, value)]
        for k, v in pairs:
            if k is None:
                logger.debug("Skipping WHERE condition without a column")
                continue

            prefix = self._prefix(WHERE, connective)
            k = str(k).strip()

            if v is None:
                if not has_operator(k):
                    k += " IS NULL"
                statement = prefix + self.protect(k, escape)
            else:
                if escape:
                    k = self.protect(k, escape)
                    rendered = self.quote(v)
                else:
                    rendered = str(v)
                if not has_operator(k):
                    k += " ="
                statement = f"{prefix}{k} {rendered}"

            self._accept(WHERE, statement)

        return self

    def where_in(self, key: Optional[str] = None, values: Union[str, Iterable[Any], None] = None) -> "ClauseComposer":
        """Add ``AND key IN (...)``.

        ``values`` is either an iterable of values to quote or a raw
        subquery string.
        """
        return self._compose_where_in(key, values, False, Connective.AND)

    def or_where_in(self, key: Optional[str] = None, values: Union[str, Iterable[Any], None] = None) -> "ClauseComposer":
        return self._compose_where_in(key, values, False, Connective.OR)

    def where_not_in(self, key: Optional[str] = None, values: Union[str, Iterable[Any], None] = None) -> "ClauseComposer":
        return self._compose_where_in(key, values, True, Connective.AND)

    def or_where_not_in(self, key: Optional[str] = None, values: Union[str, Iterable[Any], None] = None) -> "ClauseComposer":
        return self._compose_where_in(key, values, True, Connective.OR)

    def _compose_where_in(self, key, values, negate: bool, connective: Connective) -> "ClauseComposer":
        if key is None or values is None:
            return self

        if isinstance(values, str):
            in_list = values.strip()
        else:
            in_list = ", ".join(self.quote(value) for value in values)

        if not in_list:
            logger.debug("Skipping IN condition with an empty value list", extra={"column": key})
            return self

        prefix = self._prefix(WHERE, connective)
        not_keyword = " NOT" if negate else ""
        self._accept(WHERE, f"{prefix}{self.protect(str(key).strip())}{not_keyword} IN ({in_list})")
        return self

    # LIKE

    def like(self, field: Conditions, match: Any = "", side: Union[LikeSide, str] = LikeSide.BOTH) -> "ClauseComposer":
        return self._compose_like(field, match, Connective.AND, side, False)

    def not_like(self, field: Conditions, match: Any = "", side: Union[LikeSide, str] = LikeSide.BOTH) -> "ClauseComposer":
        return self._compose_like(field, match, Connective.AND, side, True)

    def or_like(self, field: Conditions, match: Any = "", side: Union[LikeSide, str] = LikeSide.BOTH) -> "ClauseComposer":
        return self._compose_like(field, match, Connective.OR, side, False)

    def or_not_like(self, field: Conditions, match: Any = "", side: Union[LikeSide, str] = LikeSide.BOTH) -> "ClauseComposer":
        return self._compose_like(field, match, Connective.OR, side, True)

    def _compose_like(self, field, match, connective: Connective, side, negate: bool) -> "ClauseComposer":
        if field is None:
            return self

        side = LikeSide(side)
        pairs = field.items() if isinstance(field, Mapping) else [(field, match)]
        for k, v in pairs:
            if k is None:
                continue

            prefix = self._prefix(LIKE, connective)
            column = self.protect(str(k).strip())
            pattern = self.quoter.quote_str(v, like=side != LikeSide.NONE)

            if side == LikeSide.BEFORE:
                pattern = f"%{pattern}"
            elif side == LikeSide.AFTER:
                pattern = f"{pattern}%"
            elif side == LikeSide.BOTH:
                pattern = f"%{pattern}%"

            not_keyword = " NOT" if negate else ""
            self._accept(LIKE, f"{prefix}{column}{not_keyword} LIKE '{pattern}'")

        return self

    # HAVING

    def having(self, key: Conditions, value: Any = "", quote: bool = True) -> "ClauseComposer":
        return self._compose_having(key, value, Connective.AND, quote)

    def or_having(self, key: Conditions, value: Any = "", quote: bool = True) -> "ClauseComposer":
        return self._compose_having(key, value, Connective.OR, quote)

    def _compose_having(self, key, value, connective: Connective, quote: bool) -> "ClauseComposer":
        if key is None:
            return self

        pairs = key.items() if isinstance(key, Mapping) else [(key, value)]
        for k, v in pairs:
            prefix = self._prefix(HAVING, connective)
            k = str(k).strip()
            if quote:
                k = self.protect(k)

            if not has_operator(k):
                k += " IS NULL" if v is None else " ="

            statement = f"{prefix}{k}"
            if v is not None and v != "":
                statement += f" {self.quote(v)}"

            self._accept(HAVING, statement)

        return self

    # SELECT / FROM / JOIN

    def select(self, select: Union[str, Sequence[str]] = "*", quoted: Optional[bool] = None) -> "ClauseComposer":
        """Add columns to the select list.

        Comma-separated strings are split. Pass a sequence for expressions
        that themselves contain commas.
        """
        items = select.split(",") if isinstance(select, str) else select
        for item in items:
            item = str(item).strip()
            if item:
                self._select[item] = quoted
        return self

    def from_(self, tables: Union[str, Sequence[str]]) -> "ClauseComposer":
        """Add tables. A raw SELECT/SHOW/DESCRIBE subquery is added verbatim."""
        if isinstance(tables, str) and SUBQUERY_STATEMENT.match(tables):
            self._from.append(tables.strip())
            return self

        for value in [tables] if isinstance(tables, str) else tables:
            for table in str(value).split(","):
                table = table.strip()
                if not table:
                    continue
                self._register_alias(table)
                self._from.append(self.protect(table))

        return self

    def _register_alias(self, table: str) -> None:
        if " " not in table:
            return
        alias = _AS_KEYWORD.sub(" ", table).strip().split(" ")[-1]
        if alias not in self._aliased_tables:
            self._aliased_tables.append(alias)

    def join(self, table: str, rule: str, join_type: Union[JoinType, str] = "") -> "ClauseComposer":
        """Add a join. Unknown join types render a plain ``JOIN``."""
        join_type = str(getattr(join_type, "value", join_type)).strip().upper()
        if join_type not in _JOIN_TYPES:
            join_type = ""

        self._register_alias(table.strip())

        match = _JOIN_RULE.search(rule)
        if match:
            rule = f"{self.protect(match.group(1))}{match.group(2)}{self.protect(match.group(3))}"

        keyword = f"{join_type} JOIN" if join_type else "JOIN"
        self._join.append(f"{keyword} {self.protect(table.strip())} ON {rule}")
        return self

    def join_inner(self, table: str, rule: str) -> "ClauseComposer":
        return self.join(table, rule, JoinType.INNER)

    def join_left(self, table: str, rule: str) -> "ClauseComposer":
        return self.join(table, rule, JoinType.LEFT)

    def join_right(self, table: str, rule: str) -> "ClauseComposer":
        return self.join(table, rule, JoinType.RIGHT)

    def join_outer(self, table: str, rule: str) -> "ClauseComposer":
        return self.join(table, rule, JoinType.OUTER)

    # GROUP BY / ORDER BY / LIMIT

    def group_by(self, by: Union[str, Sequence[str]]) -> "ClauseComposer":
        items = by.split(",") if isinstance(by, str) else by
        for item in items:
            item = str(item).strip()
            if item:
                self._group_by.append(self.protect(item))
        return self

    def order_by(self, order: str, direction: str = "") -> "ClauseComposer":
        """Add an ORDER BY term.

        ``direction`` is ASC or DESC; ``"random"`` orders by the dialect's
        random function and ignores ``order``. Other values fall back to ASC.
        """
        direction = (direction or "").strip().upper()

        if direction == SortDirection.RANDOM.value:
            self._order_by.append(self.random_function)
            return self

        if direction:
            suffix = f" {direction}" if direction in (SortDirection.ASC.value, SortDirection.DESC.value) else " ASC"
        else:
            suffix = ""

        terms = []
        for part in order.split(","):
            part = part.strip()
            if not part:
                continue
            terms.append(part if part in self._aliased_tables else self.protect(part))

        if terms:
            self._order_by.append(", ".join(terms) + suffix)
        return self

    def limit(self, value: Any, offset: Any = None) -> "ClauseComposer":
        """Set LIMIT and OFFSET. A non-positive or non-numeric value clears both."""
        try:
            limit = int(value)
        except (TypeError, ValueError):
            limit = 0

        if limit > 0:
            self._limit = limit
            self._offset = int(offset) if offset else None
        else:
            self._limit = None
            self._offset = None
        return self

    def offset(self, offset: Any) -> "ClauseComposer":
        self._offset = int(offset) if offset else None
        return self

    def modifiers(self, modifiers: Union[str, Sequence[str], None] = None) -> "ClauseComposer":
        """Statement modifiers such as ``DISTINCT`` or ``LOW_PRIORITY``."""
        if not modifiers:
            return self
        items = modifiers.split(" ") if isinstance(modifiers, str) else modifiers
        for item in items:
            item = str(item).strip().upper()
            if item and item not in self._modifiers:
                self._modifiers.append(item)
        return self
