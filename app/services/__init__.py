"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

Service classes implementing the scan core.

This package provides:
- ScanStore: Durable scan log with aggregate statistics
- ScanService: Decode event pipeline (debounce → store → notify)
- SyncCoordinator: Best-effort export to the remote service
- NotificationService: Plain-text feedback sink
- ScanEngine: Application-wide holder of the long-lived collaborators

Architecture Pattern: Service Layer
----------------------------------

    ┌─────────────────┐
    │ API / WebSocket │
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Service      │  ← Business Logic
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │   ScanStore     │  ← Data Access (via ORM)
    └─────────────────┘

==============================================================================
"""

from .scan_store import ScanStore
from .notification_service import NotificationService
from .scan_service import ScanOutcome, ScanService, ScanStatus
from .sync_service import (
    HttpScanUploader,
    ScanUploader,
    SyncCoordinator,
    SyncResult,
    SyncStatus,
)
from .engine import ScanEngine, get_scan_engine

__all__ = [
    "ScanStore",
    "NotificationService",
    "ScanOutcome",
    "ScanService",
    "ScanStatus",
    "HttpScanUploader",
    "ScanUploader",
    "SyncCoordinator",
    "SyncResult",
    "SyncStatus",
    "ScanEngine",
    "get_scan_engine",
]
