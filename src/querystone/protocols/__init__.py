"""Structural interfaces shared across querystone."""

from querystone.protocols.cache import CacheProtocol
from querystone.protocols.dialects import (
    ColumnRenderer,
    IdentifierRules,
    IndexRenderer,
    SchemaRenderer,
)

__all__ = [
    "CacheProtocol",
    "ColumnRenderer",
    "IdentifierRules",
    "IndexRenderer",
    "SchemaRenderer",
]
