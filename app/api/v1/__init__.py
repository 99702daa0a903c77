"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- scans: Decode events and scan store operations
- sync: Remote synchronization

==============================================================================
"""

from . import health, scans, sync

__all__ = ["health", "scans", "sync"]
