"""Logging filters for context injection.

Filters here stamp log records with session context so statements issued
by one builder/engine session can be correlated.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

from querystone.__version__ import __version__

session_id_var: ContextVar[Optional[str]] = ContextVar("session_id", default=None)
connection_key_var: ContextVar[Optional[str]] = ContextVar("connection_key", default=None)

_static_context: Dict[str, Any] = {}


class ContextFilter(logging.Filter):
    """Logging filter that adds context variables to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context variables to the log record.

        Args:
            record: Log record to enhance

        Returns:
            Always True (doesn't filter out any records)
        """
        setattr(record, "session_id", session_id_var.get())
        setattr(record, "connection_key", connection_key_var.get())
        setattr(record, "sdk_name", "querystone")
        setattr(record, "querystone_version", __version__)

        for key, value in _static_context.items():
            if not hasattr(record, key):
                setattr(record, key, value)

        return True


def set_logging_context(
    environment: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Set process-wide fields added to every record."""
    if environment is not None:
        _static_context["environment"] = environment
    if extra:
        _static_context.update(extra)


def set_session_context(
    session_id: Optional[str] = None,
    connection_key: Optional[str] = None,
) -> None:
    """Set session context variables."""
    if session_id is not None:
        session_id_var.set(session_id)
    if connection_key is not None:
        connection_key_var.set(connection_key)


def clear_session_context() -> None:
    """Clear all session context variables and static fields."""
    session_id_var.set(None)
    connection_key_var.set(None)
    _static_context.clear()
