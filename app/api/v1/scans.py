"""
==============================================================================
Scan Endpoints
==============================================================================

Decode event submission and the scan store (list, stats, delete, clear).

==============================================================================
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.core import exceptions
from app.schemas.common import MessageResponse
from app.schemas.scan import (
    DecodeEvent,
    ExistsResponse,
    ScanListResponse,
    ScanOutcomeResponse,
    StatsResponse,
)
from app.services.engine import ScanEngine, get_scan_engine


router = APIRouter(prefix="/scans", tags=["Scans"])


class ScanController:
    """Controller for scan store operations."""

    def __init__(self, db: Session, engine: ScanEngine):
        self._engine = engine
        self._db = db
        self._store = engine.store(db)

    async def decode(self, event: DecodeEvent) -> ScanOutcomeResponse:
        """Feed one decode event through the shared pipeline."""
        outcome = await self._engine.scan_service(self._db).process(
            event.data, event.type, event.timestamp
        )
        return ScanOutcomeResponse(
            decision=outcome.decision.value,
            status=outcome.status.value,
            message=outcome.message,
            record=outcome.record,
            stats=outcome.stats,
        )

    def list_scans(self) -> ScanListResponse:
        scans = self._store.list()
        return ScanListResponse(total=len(scans), scans=scans)

    def get_stats(self) -> StatsResponse:
        return StatsResponse(stats=self._store.compute_stats())

    def exists(self, data: str) -> ExistsResponse:
        return ExistsResponse(data=data, exists=self._store.exists(data))

    def get_scan(self, record_id: str) -> dict:
        record = self._store.get(record_id)
        if record is None:
            raise exceptions.scan_not_found(record_id)
        return {"success": True, "scan": record.model_dump()}

    def delete_scan(self, record_id: str) -> MessageResponse:
        if not self._store.delete_by_id(record_id):
            raise exceptions.scan_not_found(record_id)
        return MessageResponse(message="Scanned code deleted")

    def clear(self) -> dict:
        deleted = self._store.clear_all()
        return {"success": True, "message": "History cleared", "deleted": deleted}


@router.post("/decode", response_model=ScanOutcomeResponse)
async def submit_decode_event(
    event: DecodeEvent,
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Submit a decoded payload; returns the debounce decision and stats."""
    controller = ScanController(db, engine)
    return await controller.decode(event)


@router.get("", response_model=ScanListResponse)
async def list_scans(
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """List stored scans, most recent first."""
    controller = ScanController(db, engine)
    return controller.list_scans()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Aggregate statistics: total, per-type counts, last scan time."""
    controller = ScanController(db, engine)
    return controller.get_stats()


@router.get("/exists", response_model=ExistsResponse)
async def scan_exists(
    data: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Check whether a payload has been stored before."""
    controller = ScanController(db, engine)
    return controller.exists(data)


@router.get("/{record_id}")
async def get_scan(
    record_id: str,
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Get one stored scan."""
    controller = ScanController(db, engine)
    return controller.get_scan(record_id)


@router.delete("/{record_id}", response_model=MessageResponse)
async def delete_scan(
    record_id: str,
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Delete one stored scan."""
    controller = ScanController(db, engine)
    return controller.delete_scan(record_id)


@router.delete("")
async def clear_scans(
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Delete every stored scan."""
    controller = ScanController(db, engine)
    return controller.clear()
