from enum import Enum
from typing import Any, Dict, Optional


_MAX_QUERY_DETAIL = 500


class ErrorCode(Enum):
    """Standard error codes for querystone operations.

    Error codes categorize failures without creating numerous exception
    classes. Each category has its own prefix for easy identification.

    Attributes:
        CONFIG_*: Configuration errors, including unknown drivers and dialects (1xxx)
        VALIDATION_*: Input validation errors (2xxx)
        CONNECTION_*: Connection lifecycle errors (3xxx)
        EXECUTION_*: Statement execution and transaction errors (4xxx)
    """
    # Configuration errors (1xxx)
    CONFIG_ERROR = "CONFIG_001"
    CONFIG_MISSING = "CONFIG_002"
    CONFIG_INVALID = "CONFIG_003"
    NOT_SUPPORTED = "CONFIG_004"

    # Validation errors (2xxx)
    VALIDATION_ERROR = "VALIDATION_001"
    INVALID_ARGUMENT = "VALIDATION_002"

    # Connection errors (3xxx)
    CONNECTION_ERROR = "CONNECTION_001"

    # Execution errors (4xxx)
    EXECUTION_ERROR = "EXECUTION_001"
    QUERY_EXECUTION_ERROR = "EXECUTION_002"
    TRANSACTION_ERROR = "EXECUTION_003"


class QuerystoneError(Exception):
    """Base exception for all querystone errors.

    A single exception class categorized by ``ErrorCode``.

    Attributes:
        message: Error message
        error_code: Error code from ErrorCode enum
        details: Additional error details
        cause: Optional underlying exception
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXECUTION_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

        # Lazy import, the logging package imports the version module only
        from querystone.logging import get_logger
        logger = get_logger(__name__)
        logger.error(
            message,
            extra={"error_code": error_code.value, "error_details": self.details},
            exc_info=cause is not None,
        )

    @property
    def sql_state(self) -> Optional[str]:
        """Native driver error code for statement errors."""
        return self.details.get("sql_state")

    def __str__(self) -> str:
        msg = f"[{self.error_code.value}] {self.message}"
        if self.details:
            rendered = ", ".join(f"{key}={value}" for key, value in self.details.items())
            msg = f"{msg} | Details: {rendered}"
        if self.cause:
            msg = f"{msg} | Caused by: {type(self.cause).__name__}: {self.cause}"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
        }


def _truncate_query(query: str) -> str:
    return query[:_MAX_QUERY_DETAIL] + "..." if len(query) > _MAX_QUERY_DETAIL else query


# Helper functions for common error scenarios
def configuration_error(
    message: str,
    config_key: Optional[str] = None,
    error_code: ErrorCode = ErrorCode.CONFIG_ERROR,
    **kwargs
) -> QuerystoneError:
    """Create a configuration error.

    Args:
        message: Error message
        config_key: Configuration key (connection key, table name, ...) at fault
        error_code: One of the CONFIG_* codes
        **kwargs: Additional error details

    Returns:
        QuerystoneError with a CONFIG_* code
    """
    details = kwargs.get('details', {})
    if config_key:
        details["config_key"] = config_key

    return QuerystoneError(
        message=message,
        error_code=error_code,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def validation_error(
    message: str,
    field: Optional[str] = None,
    value: Any = None,
    **kwargs
) -> QuerystoneError:
    """Create a validation error.

    Args:
        message: Error message
        field: Field that failed validation
        value: Invalid value
        **kwargs: Additional error details

    Returns:
        QuerystoneError with VALIDATION_ERROR code
    """
    details = kwargs.get('details', {})
    if field:
        details["field"] = field
    if value is not None:
        details["value"] = str(value)

    return QuerystoneError(
        message=message,
        error_code=ErrorCode.VALIDATION_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def connection_error(
    message: str,
    database: Optional[str] = None,
    driver: Optional[str] = None,
    **kwargs
) -> QuerystoneError:
    """Create a connection error.

    Args:
        message: Error message
        database: Database name extracted from the DSN
        driver: Backend name of the failing driver
        **kwargs: Additional error details

    Returns:
        QuerystoneError with CONNECTION_ERROR code
    """
    details = kwargs.get('details', {})
    if database:
        details["database"] = database
    if driver:
        details["driver"] = driver

    return QuerystoneError(
        message=message,
        error_code=ErrorCode.CONNECTION_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def statement_error(
    query: str,
    original_error: BaseException,
    sql_state: Optional[str] = None,
    **kwargs
) -> QuerystoneError:
    """Create a statement execution error.

    Args:
        query: SQL statement that failed
        original_error: The native driver exception
        sql_state: Driver-specific error code, preserved verbatim
        **kwargs: Additional error details

    Returns:
        QuerystoneError with QUERY_EXECUTION_ERROR code
    """
    details = kwargs.get('details', {})
    details["query"] = _truncate_query(query)
    if sql_state is not None:
        details["sql_state"] = str(sql_state)

    return QuerystoneError(
        message=f"Query execution failed: {original_error}",
        error_code=ErrorCode.QUERY_EXECUTION_ERROR,
        details=details,
        cause=original_error,
        **{k: v for k, v in kwargs.items() if k not in ['details', 'cause']}
    )


def transaction_error(
    message: str,
    operation: Optional[str] = None,
    **kwargs
) -> QuerystoneError:
    """Create a transaction error.

    Args:
        message: Error message
        operation: Transaction verb that failed (begin, commit, rollback)
        **kwargs: Additional error details

    Returns:
        QuerystoneError with TRANSACTION_ERROR code
    """
    details = kwargs.get('details', {})
    if operation:
        details["operation"] = operation

    return QuerystoneError(
        message=message,
        error_code=ErrorCode.TRANSACTION_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def not_supported_error(
    kind: str,
    name: str,
    **kwargs
) -> QuerystoneError:
    """Create an error for an unknown dialect adapter or database driver.

    Args:
        kind: What was requested, e.g. ``dialect`` or ``driver``
        name: Requested name
        **kwargs: Additional error details

    Returns:
        QuerystoneError with NOT_SUPPORTED code
    """
    details = kwargs.get('details', {})
    details[kind] = name

    return QuerystoneError(
        message=f"{kind.capitalize()} '{name}' is not supported",
        error_code=ErrorCode.NOT_SUPPORTED,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )
