"""Dialect adapters.

Dialects are plain values injected into builders and the engine.
``default_dialects()`` returns a fresh mapping for the engine to own.
"""

from typing import Dict, Mapping, Optional

from querystone.common.exceptions import not_supported_error
from querystone.dialects.base import SQLDialect
from querystone.dialects.mysql import MySQLDialect


def default_dialects() -> Dict[str, SQLDialect]:
    return {"mysql": MySQLDialect()}


def resolve_dialect(name: str, dialects: Optional[Mapping[str, SQLDialect]] = None) -> SQLDialect:
    """Look up a dialect adapter by name.

    Raises:
        QuerystoneError: NOT_SUPPORTED when no adapter is registered for ``name``.
    """
    available = dialects if dialects is not None else default_dialects()
    try:
        return available[name.lower()]
    except KeyError:
        raise not_supported_error(
            "dialect", name, details={"available": sorted(available)}
        ) from None


__all__ = ["MySQLDialect", "SQLDialect", "default_dialects", "resolve_dialect"]
