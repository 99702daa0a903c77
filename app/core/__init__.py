"""
==============================================================================
Core Package
==============================================================================

Core infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- StorageError / NetworkError for the scan store and sync failures
- Exception factory functions for common error scenarios

Usage:
------
    from app.core import AppException, StorageError

    from app.core import exceptions
    raise exceptions.scan_not_found(record_id)

==============================================================================
"""

from .exceptions import (
    AppException,
    NetworkError,
    StorageError,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "NetworkError",
    "StorageError",
    "register_exception_handlers",
]
