"""
==============================================================================
Scan Service Module
==============================================================================

The scan pipeline: one decode event in, one outcome out.

Flow:
-----
    decode event
         │
    ┌────▼─────────┐  REJECT_BUSY / REJECT_DUPLICATE
    │ Deduplicator │ ─────────────────────────────────▶ outcome (REJECTED)
    └────┬─────────┘
         │ ACCEPT
    ┌────▼─────────┐  known payload
    │ store.exists │ ───────────▶ notify "already scanned"
    └────┬─────────┘              (insert only if record_repeat_scans)
         │ new payload
    notify "new code" ─▶ store.insert ─▶ store.compute_stats
         │
    schedule_release()   (always, even on storage failure)

==============================================================================
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from app.core import exceptions
from app.scanner.deduplicator import Deduplicator, ScanDecision
from app.schemas.scan import AggregateStats, ScanRecord
from app.services.notification_service import NotificationService
from app.services.scan_store import ScanStore
from app.utils.validators import PayloadValidator, SymbologyValidator


# Module logger
logger = logging.getLogger(__name__)


class ScanStatus(str, enum.Enum):
    """What happened to an event after the debounce decision."""

    NEW = "new"
    KNOWN = "known"
    REJECTED = "rejected"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ScanOutcome:
    """
    Result of ScanService.process().

    Attributes:
        decision: Debounce decision for the event
        status: NEW, KNOWN or REJECTED
        record: Record inserted for this event, if any
        stats: Store statistics after the event (accepted events only)
        message: Notification text sent for the event
    """

    decision: ScanDecision
    status: ScanStatus
    record: Optional[ScanRecord] = None
    stats: Optional[AggregateStats] = None
    message: Optional[str] = None


class ScanService:
    """
    Runs decode events through debounce, storage and notification.

    The Deduplicator is long-lived (one per scanning session); the store
    wraps a request-scoped database session.

    Example:
        >>> service = ScanService(dedup, ScanStore(db), notifier)
        >>> outcome = await service.process("ABC123", "qr")
        >>> outcome.status
        <ScanStatus.NEW: 'new'>
    """

    def __init__(
        self,
        deduplicator: Deduplicator,
        store: ScanStore,
        notifier: NotificationService,
        record_repeat_scans: bool = False,
    ) -> None:
        self._deduplicator = deduplicator
        self._store = store
        self._notifier = notifier
        self._record_repeat_scans = record_repeat_scans
        self._payload_validator = PayloadValidator()
        self._symbology_validator = SymbologyValidator()

    async def process(
        self,
        payload: str,
        symbology: str,
        timestamp: Optional[int] = None,
    ) -> ScanOutcome:
        """
        Handle one decode event.

        Args:
            payload: Raw decoded data
            symbology: Symbology as reported by the decoder
            timestamp: Decode time in ms (clock time if None)

        Returns:
            ScanOutcome for the event

        Raises:
            AppException: INVALID_PAYLOAD for empty/oversized input
            StorageError: If the store fails after the event was accepted
        """
        is_valid, error = self._payload_validator.validate(payload)
        if not is_valid:
            raise exceptions.invalid_payload(error)

        is_valid, type_tag, error = self._symbology_validator.validate(symbology)
        if not is_valid:
            raise exceptions.invalid_payload(error)

        if not self._symbology_validator.is_known(symbology):
            logger.warning(f"⚠️ Unrecognized symbology {symbology!r}, stored as {type_tag!r}")

        decision = self._deduplicator.decide(payload, timestamp)
        if not decision.accepted:
            return ScanOutcome(decision=decision, status=ScanStatus.REJECTED)

        logger.info(f"📷 Processing scan ({type_tag}): {payload!r}")

        try:
            if self._store.exists(payload):
                status = ScanStatus.KNOWN
                message = NotificationService.known_code_message(payload)
                await self._notifier.notify(message)
                record = (
                    self._store.insert(payload, type_tag)
                    if self._record_repeat_scans else None
                )
            else:
                status = ScanStatus.NEW
                message = NotificationService.new_code_message(payload)
                await self._notifier.notify(message)
                record = self._store.insert(payload, type_tag)

            stats = self._store.compute_stats()
        finally:
            self._deduplicator.schedule_release()

        return ScanOutcome(
            decision=decision,
            status=status,
            record=record,
            stats=stats,
            message=message,
        )
