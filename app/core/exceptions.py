"""
Application Exception Handling

AppException base class for all application errors with FastAPI integration,
plus the storage and network failures the scan core reports.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Scan not found", "SCAN_NOT_FOUND", 404)
        raise AppException("Sync running", "SYNC_IN_PROGRESS", 409)

    Error Codes:
        Scans:
            - SCAN_NOT_FOUND (404)
            - INVALID_PAYLOAD (400)

        Storage:
            - STORAGE_ERROR (503)

        Sync:
            - NETWORK_ERROR (502)
            - SYNC_IN_PROGRESS (409)

        General:
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "SCAN_NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class StorageError(AppException):
    """Backing store unreachable or corrupt. Never retried locally."""

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, "STORAGE_ERROR", 503, details)
        self.operation = operation


class NetworkError(AppException):
    """A single record could not be delivered to the remote endpoint."""

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        status: Optional[int] = None
    ):
        details: Dict[str, Any] = {}
        if record_id:
            details["record_id"] = record_id
        if status is not None:
            details["status"] = status
        super().__init__(message, "NETWORK_ERROR", 502, details)
        self.record_id = record_id
        self.status = status


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def scan_not_found(record_id: Optional[str] = None) -> AppException:
    """Create scan not found exception."""
    details = {"record_id": record_id} if record_id else {}
    return AppException("Scanned code not found", "SCAN_NOT_FOUND", 404, details)


def invalid_payload(reason: str) -> AppException:
    """Create invalid decode payload exception."""
    return AppException(
        f"Invalid scan payload: {reason}",
        "INVALID_PAYLOAD",
        400,
        {"reason": reason}
    )


def sync_in_progress() -> AppException:
    """Create sync already running exception."""
    return AppException(
        "A synchronization is already in progress",
        "SYNC_IN_PROGRESS",
        409
    )
