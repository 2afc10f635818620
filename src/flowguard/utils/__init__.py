"""
FlowGuard Utils Package

This package contains utility functions and helper modules:
- Error handling: exception hierarchy and decorators
- Logger: shared logging setup
- File collector: Solidity file discovery
"""

from .error_handling import (
    FlowGuardError,
    SourceUnavailableError,
    ParseFailureError,
    ConfigurationError,
    ValidationError,
    handle_exceptions,
)
from .file_collector import collect_solidity_files
from .logger import setup_logger

__all__ = [
    'FlowGuardError',
    'SourceUnavailableError',
    'ParseFailureError',
    'ConfigurationError',
    'ValidationError',
    'handle_exceptions',
    'collect_solidity_files',
    'setup_logger',
]
