"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: Decode event stream with per-session debouncing

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
