"""
==============================================================================
Scanner Package - Decode Event Debouncing
==============================================================================

Filters raw decode events before they reach the scan store.

Classes:
--------
- Deduplicator: Cooldown + processing-flag debounce engine
- DeduplicationState: Debounce state owned by one Deduplicator
- ScanDecision: ACCEPT / REJECT_BUSY / REJECT_DUPLICATE

==============================================================================
"""

from .deduplicator import DeduplicationState, Deduplicator, ScanDecision, current_millis

__all__ = ["DeduplicationState", "Deduplicator", "ScanDecision", "current_millis"]
