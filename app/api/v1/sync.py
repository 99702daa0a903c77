"""
==============================================================================
Sync Endpoints
==============================================================================

Trigger delivery of the stored scans to the remote service.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.schemas.scan import SyncResponse
from app.services.engine import ScanEngine, get_scan_engine


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post("", response_model=SyncResponse)
async def sync_scans(
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """
    Send every stored scan to the remote endpoint.

    Partial failures are reported, not raised: success is False and
    count holds the number of records sent before the failure.
    """
    result = await engine.sync(db)
    return SyncResponse(
        success=result.success,
        status=result.status.value,
        count=result.count,
        message=result.message,
    )


@router.get("/status")
async def sync_status(engine: ScanEngine = Depends(get_scan_engine)):
    """Whether a sync is running and whether local-only mode is on."""
    coordinator = engine.sync_coordinator
    return {
        "success": True,
        "syncing": coordinator.is_syncing,
        "local_mode": coordinator.local_mode,
    }
