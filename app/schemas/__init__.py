"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Scan: Scan records, decode events, statistics and sync results

==============================================================================
"""

from .common import MessageResponse
from .scan import (
    AggregateStats,
    DecodeEvent,
    ExistsResponse,
    ScanListResponse,
    ScanOutcomeResponse,
    ScanRecord,
    StatsResponse,
    SyncResponse,
)

__all__ = [
    # Common
    "MessageResponse",
    # Scan
    "AggregateStats",
    "DecodeEvent",
    "ExistsResponse",
    "ScanListResponse",
    "ScanOutcomeResponse",
    "ScanRecord",
    "StatsResponse",
    "SyncResponse",
]
