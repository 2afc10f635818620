"""
Centralized error handling utilities for FlowGuard.

This module provides standardized error handling, logging, and exception classes
for use throughout the FlowGuard codebase.
"""

import functools
import inspect
import logging
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type, TypeVar, Union, cast

from fastapi import HTTPException, status

# Configure logger
logger = logging.getLogger(__name__)

# Type variable for function return types
T = TypeVar("T")


class ErrorSeverity(Enum):
    """Enum for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FlowGuardError(Exception):
    """Base exception class for FlowGuard-specific errors."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize FlowGuardError.

        Args:
            message: Error message
            severity: Error severity level
            details: Additional error details
        """
        self.message = message
        self.severity = severity
        self.details = details or {}
        super().__init__(message)


class SourceUnavailableError(FlowGuardError):
    """A source file is missing or cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Cannot read {path}: {reason}",
            severity=ErrorSeverity.MEDIUM,
            details={"path": path}
        )
        self.path = path


class ParseFailureError(FlowGuardError):
    """The syntax provider could not produce an AST for a file."""

    def __init__(self, path: str, provider_message: str):
        super().__init__(
            provider_message,
            severity=ErrorSeverity.MEDIUM,
            details={"path": path}
        )
        self.path = path


class ConfigurationError(FlowGuardError):
    """Invalid FLOWGUARD_* configuration value."""
    pass


class ValidationError(FlowGuardError):
    """Exception for request/input validation errors."""

    def __init__(self, message: str, field: str, value: Any):
        """
        Initialize ValidationError.

        Args:
            message: Error message
            field: Field that failed validation
            value: Invalid value
        """
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            details={"field": field, "value": str(value)}
        )
        self.field = field
        self.value = value


def error_to_http_exception(error: Exception) -> HTTPException:
    """
    Convert an exception to an appropriate HTTPException.

    Args:
        error: The exception to convert

    Returns:
        HTTPException with appropriate status code and details
    """
    # Map of exception types to HTTP status codes, most specific first
    status_code_map = {
        ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
        ParseFailureError: status.HTTP_422_UNPROCESSABLE_ENTITY,
        SourceUnavailableError: status.HTTP_404_NOT_FOUND,
        ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
        ValueError: status.HTTP_400_BAD_REQUEST,
        KeyError: status.HTTP_400_BAD_REQUEST,
        FlowGuardError: status.HTTP_500_INTERNAL_SERVER_ERROR
    }

    # Determine status code based on error type
    for error_type, code in status_code_map.items():
        if isinstance(error, error_type):
            status_code = code
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    # Format error details based on error type
    if isinstance(error, ValidationError):
        detail = {
            "message": error.message,
            "field": error.field,
            "value": str(error.value),
            "type": "validation_error"
        }
    elif isinstance(error, FlowGuardError):
        detail = {
            "message": str(error),
            "type": error.__class__.__name__.lower(),
            "severity": error.severity.value
        }
        if error.details:
            detail["details"] = error.details
    else:
        detail = {
            "message": str(error) or "An unexpected error occurred",
            "type": "unknown"
        }

    return HTTPException(status_code=status_code, detail=detail)


def handle_exceptions(
    error_types: Optional[Union[Type[Exception], tuple]] = None,
    log_traceback: bool = True,
    default_return: Any = None,
    raise_http_exception: bool = False
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for handling exceptions in functions.

    Args:
        error_types: Exception type(s) to catch; anything else propagates
        log_traceback: Whether to log the traceback
        default_return: Default value to return on error
        raise_http_exception: Whether to convert exceptions to HTTPExceptions

    Returns:
        Decorated function
    """
    def _log(func: Callable[..., Any], e: Exception) -> None:
        if log_traceback:
            logger.error(
                f"Error in {func.__name__}: {str(e)}\n"
                f"{traceback.format_exc()}"
            )
        else:
            logger.error(f"Error in {func.__name__}: {str(e)}")

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                if error_types and not isinstance(e, error_types):
                    raise
                _log(func, e)
                if raise_http_exception:
                    raise error_to_http_exception(e)
                return cast(T, default_return)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as e:
                if error_types and not isinstance(e, error_types):
                    raise
                _log(func, e)
                if raise_http_exception:
                    raise error_to_http_exception(e)
                return cast(T, default_return)

        if inspect.iscoroutinefunction(func):
            return cast(Callable[..., T], async_wrapper)
        return cast(Callable[..., T], sync_wrapper)

    return decorator
