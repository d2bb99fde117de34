"""Common utilities shared across querystone."""

from querystone.common.exceptions import (
    ErrorCode,
    QuerystoneError,
    configuration_error,
    connection_error,
    not_supported_error,
    statement_error,
    transaction_error,
    validation_error,
)

__all__ = [
    "ErrorCode",
    "QuerystoneError",
    "configuration_error",
    "connection_error",
    "not_supported_error",
    "statement_error",
    "transaction_error",
    "validation_error",
]
