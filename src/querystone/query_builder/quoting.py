"""Identifier and value quoting.

``IdentifierQuoter`` neutralizes untrusted names in identifier position
(``protect_identifiers``) and untrusted values in value position
(``quote``). Every clause composed by the builders goes through one of
the two.
"""

import re
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from querystone.constants.sql import COMPARISON_OPERATOR

_WHITESPACE = re.compile(r"[\t\n ]+")

# Backslashes first, so later escapes are not doubled again
_STRING_ESCAPES = (
    ("\\", "\\\\"),
    ("\0", "\\0"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("'", "\\'"),
    ('"', '\\"'),
    ("\x1a", "\\Z"),
)


class IdentifierQuoter:
    """Quoting rules for one dialect.

    Args:
        delimiter: Identifier delimiter, a backtick for the reference dialect.
        reserved_identifiers: Tokens that pass through ``protect_identifiers``
            unquoted. ``*`` is always reserved.
    """

    def __init__(self, delimiter: str = "`", reserved_identifiers: Optional[Iterable[str]] = None):
        self.delimiter = delimiter
        self.reserved_identifiers = {"*"}
        if reserved_identifiers:
            self.reserved_identifiers.update(reserved_identifiers)

    def quote_identifier(self, name: str) -> str:
        """Quote each dot-separated segment, doubling embedded delimiters.

        Segments that are already delimited and the ``*`` wildcard are kept
        as they are, so quoting is idempotent.
        """
        return ".".join(self._quote_segment(part) for part in str(name).split("."))

    def _quote_segment(self, part: str) -> str:
        if part == "*":
            return part
        d = self.delimiter
        if len(part) >= 2 and part.startswith(d) and part.endswith(d):
            return part
        return f"{d}{part.replace(d, d + d)}{d}"

    def protect_identifiers(self, item: Any, protect: Optional[bool] = True) -> Any:
        """Quote a raw column/table fragment.

        A trailing alias (everything from the first space on) is kept
        verbatim, function calls are left alone, dotted names are quoted per
        segment and reserved tokens pass through. Mappings and sequences are
        protected element-wise.
        """
        if isinstance(item, Mapping):
            return {key: self.protect_identifiers(value, protect) for key, value in item.items()}
        if isinstance(item, (list, tuple)):
            return [self.protect_identifiers(value, protect) for value in item]

        protect = True if protect is None else protect
        item = _WHITESPACE.sub(" ", str(item))

        alias = ""
        space = item.find(" ")
        if space != -1:
            alias = item[space:]
            item = item[:space]

        if "(" in item:
            return item + alias

        if "." in item:
            if protect:
                item = self.quote_identifier(item)
            return item + alias

        if protect and item not in self.reserved_identifiers:
            item = self.quote_identifier(item)

        return item + alias

    def quote(self, value: Any) -> str:
        """Render a value as an SQL literal.

        Strings are escaped and wrapped in single quotes, numbers become
        quoted numeric text, booleans ``1``/``0`` and None ``NULL``.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return f"'{value}'"
        text = str(value).strip("'")
        return f"'{self.quote_str(text)}'"

    def quote_str(self, value: Any, like: bool = False) -> str:
        """Escape a string body without adding quotes.

        With ``like`` the ``%`` and ``_`` wildcards are escaped as well.
        """
        text = "" if value is None else str(value)
        for raw, escaped in _STRING_ESCAPES:
            text = text.replace(raw, escaped)
        if like:
            text = text.replace("%", "\\%").replace("_", "\\_")
        return text

    def quote_list(self, values: Sequence[Any]) -> List[str]:
        return [self.quote(value) for value in values]


def has_operator(condition: Union[str, Any]) -> bool:
    """Whether a condition's left-hand side already carries a comparison."""
    return bool(COMPARISON_OPERATOR.search(str(condition).strip()))
