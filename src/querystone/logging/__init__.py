"""Logging infrastructure for querystone.

Structured logging with JSON output and session context tracking.
"""

from querystone.logging.filters import (
    ContextFilter,
    clear_session_context,
    set_logging_context,
    set_session_context,
)
from querystone.logging.logger import CustomJsonFormatter, get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "CustomJsonFormatter",
    "ContextFilter",
    "set_logging_context",
    "set_session_context",
    "clear_session_context",
]
