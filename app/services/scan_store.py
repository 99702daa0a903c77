"""
==============================================================================
Scan Store Service Module
==============================================================================

Durable log of accepted scans with aggregation queries.

This module implements:
- ScanStore: CRUD over the scanned_codes table plus derived statistics

Semantics:
---------
- The store is a log, not a set: inserting an already known payload
  creates another record. exists() lets callers tell both cases apart.
- Records are immutable; they are only ever created or deleted.
- Statistics are derived from one snapshot read and never stored, so
  the per-type counts always add up to the total.
- Each mutation runs in its own transaction. Any SQLAlchemy failure is
  rolled back and surfaced as StorageError; nothing is retried here.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StorageError
from app.db.models import ScannedCode, Symbology, generate_uuid
from app.scanner.deduplicator import current_millis
from app.schemas.scan import AggregateStats, ScanRecord


# Module logger
logger = logging.getLogger(__name__)


class ScanStore:
    """
    Scan record store backed by a SQLAlchemy session.

    Example:
        >>> store = ScanStore(db_session)
        >>> record = store.insert("ABC123", "qr")
        >>> store.exists("ABC123")
        True
        >>> store.compute_stats().total
        1
    """

    def __init__(self, db: Session, clock: Callable[[], int] = current_millis) -> None:
        """
        Initialize the store.

        Args:
            db: SQLAlchemy database session
            clock: Millisecond clock stamping new records
        """
        self._db = db
        self._clock = clock

    # =========================================================================
    # QUERIES
    # =========================================================================

    def exists(self, payload: str) -> bool:
        """Check whether any stored record carries this payload."""
        try:
            found = self._db.query(ScannedCode.seq).filter(
                ScannedCode.data == payload
            ).first()
        except SQLAlchemyError as e:
            raise self._failure("exists", e) from e
        return found is not None

    def list(self) -> List[ScanRecord]:
        """
        Fetch every record, most recently inserted first.

        Returns:
            Fresh list of immutable ScanRecord objects
        """
        try:
            rows = self._db.query(ScannedCode).order_by(
                ScannedCode.seq.desc()
            ).all()
        except SQLAlchemyError as e:
            raise self._failure("list", e) from e
        return [ScanRecord.model_validate(row) for row in rows]

    def get(self, record_id: str) -> Optional[ScanRecord]:
        """Fetch one record by identifier, None when absent."""
        try:
            row = self._db.query(ScannedCode).filter(
                ScannedCode.id == record_id
            ).first()
        except SQLAlchemyError as e:
            raise self._failure("get", e) from e
        return ScanRecord.model_validate(row) if row else None

    def compute_stats(self) -> AggregateStats:
        """
        Derive aggregate statistics from the current contents.

        Every canonical symbology appears in by_type, plus any other tag
        present in the store.
        """
        records = self.list()

        by_type = {tag: 0 for tag in Symbology.values()}
        for record in records:
            by_type[record.type] = by_type.get(record.type, 0) + 1

        return AggregateStats(
            total=len(records),
            by_type=by_type,
            last_scanned_at=records[0].timestamp if records else None,
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def insert(self, payload: str, type_tag: str) -> ScanRecord:
        """
        Persist a new scan record.

        Args:
            payload: Raw decoded data
            type_tag: Symbology tag

        Returns:
            The created record with its assigned id and timestamp
        """
        row = ScannedCode(
            id=generate_uuid(),
            data=payload,
            type=type_tag,
            timestamp=self._clock(),
        )

        try:
            self._db.add(row)
            self._db.commit()
            self._db.refresh(row)
        except SQLAlchemyError as e:
            raise self._failure("insert", e) from e

        logger.info(f"💾 Stored scan {row.id} ({row.type}): {row.data!r}")
        return ScanRecord.model_validate(row)

    def delete_by_id(self, record_id: str) -> bool:
        """
        Delete exactly one record.

        Returns:
            True if a record was removed, False if the id was unknown
        """
        try:
            deleted = self._db.query(ScannedCode).filter(
                ScannedCode.id == record_id
            ).delete(synchronize_session=False)
            self._db.commit()
        except SQLAlchemyError as e:
            raise self._failure("delete", e) from e

        if deleted:
            logger.info(f"🗑️ Deleted scan {record_id}")
        return deleted > 0

    def clear_all(self) -> int:
        """
        Delete every record.

        Returns:
            Number of records removed
        """
        try:
            deleted = self._db.query(ScannedCode).delete(synchronize_session=False)
            self._db.commit()
        except SQLAlchemyError as e:
            raise self._failure("clear", e) from e

        logger.info(f"🗑️ Cleared {deleted} scans")
        return deleted

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _failure(self, operation: str, error: SQLAlchemyError) -> StorageError:
        try:
            self._db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after failed {operation} also failed: {rollback_error}")
        logger.error(f"❌ Scan store {operation} failed: {error}")
        return StorageError(f"Scan store {operation} failed: {error}", operation=operation)
