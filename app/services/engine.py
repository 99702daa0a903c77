"""
==============================================================================
Scan Engine Module
==============================================================================

Application-wide holder of the long-lived scan collaborators.

The database session is request-scoped, while the debounce state, the
notification subscribers and the sync coordinator live for the whole
process. ScanEngine owns the latter and builds request-scoped services
around a session.

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.core import exceptions
from app.scanner.deduplicator import Deduplicator
from app.services.notification_service import NotificationService
from app.services.scan_service import ScanService
from app.services.scan_store import ScanStore
from app.services.sync_service import SyncCoordinator, SyncResult


# Module logger
logger = logging.getLogger(__name__)


class ScanEngine:
    """
    Owns the shared Deduplicator, NotificationService and SyncCoordinator.

    Example:
        >>> engine = get_scan_engine()
        >>> outcome = await engine.scan_service(db).process("ABC123", "qr")
        >>> result = await engine.sync(db)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sync_coordinator: Optional[SyncCoordinator] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._deduplicator = Deduplicator.from_settings(self._settings)
        self._notifier = NotificationService()
        self._sync = sync_coordinator or SyncCoordinator.from_settings(self._settings)

    # =========================================================================
    # COLLABORATORS
    # =========================================================================

    @property
    def deduplicator(self) -> Deduplicator:
        return self._deduplicator

    @property
    def notifier(self) -> NotificationService:
        return self._notifier

    @property
    def sync_coordinator(self) -> SyncCoordinator:
        return self._sync

    def new_deduplicator(self) -> Deduplicator:
        """Fresh debounce state for a dedicated scanning session."""
        return Deduplicator.from_settings(self._settings)

    def store(self, db: Session) -> ScanStore:
        return ScanStore(db)

    def scan_service(
        self,
        db: Session,
        deduplicator: Optional[Deduplicator] = None,
    ) -> ScanService:
        """Build a ScanService over a request-scoped session."""
        return ScanService(
            deduplicator or self._deduplicator,
            ScanStore(db),
            self._notifier,
            record_repeat_scans=self._settings.record_repeat_scans,
        )

    # =========================================================================
    # SYNC
    # =========================================================================

    async def sync(self, db: Session) -> SyncResult:
        """
        Sync the full record set.

        Raises:
            AppException: SYNC_IN_PROGRESS if a sync is already running
        """
        if self._sync.is_syncing:
            raise exceptions.sync_in_progress()

        records = ScanStore(db).list()
        return await self._sync.sync(records)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def shutdown(self) -> None:
        """Cancel pending timers and close network resources."""
        self._deduplicator.close()
        await self._sync.close()
        logger.info("Scan engine stopped")


@lru_cache(maxsize=1)
def get_scan_engine() -> ScanEngine:
    """Get the global ScanEngine instance (also a FastAPI dependency)."""
    return ScanEngine()
