"""
Scan engine tests: shared collaborators, overlapping syncs and shutdown.
"""

import asyncio

import pytest

from app.core.exceptions import AppException
from app.services.engine import ScanEngine
from app.services.sync_service import SyncCoordinator, SyncStatus


class BlockingUploader:
    """Uploader that waits until released."""

    def __init__(self):
        self.started = asyncio.Event()
        self.finish = asyncio.Event()
        self.closed = False

    async def upload(self, record):
        self.started.set()
        await self.finish.wait()

    async def close(self):
        self.closed = True


class TestScanEngine:

    def test_new_deduplicator_is_independent(self, scan_engine: ScanEngine):
        session_dedup = scan_engine.new_deduplicator()
        session_dedup.decide("ABC123", 1_000)

        assert session_dedup is not scan_engine.deduplicator
        assert scan_engine.deduplicator.is_processing is False
        assert session_dedup.cooldown_ms == 3000
        session_dedup.release()

    @pytest.mark.asyncio
    async def test_shared_deduplicator_across_requests(self, scan_engine: ScanEngine, db):
        first = await scan_engine.scan_service(db).process("ABC123", "qr", 1_000)
        second = await scan_engine.scan_service(db).process("OTHER", "qr", 1_010)

        assert first.decision.accepted
        assert second.decision.value == "reject_busy"
        scan_engine.deduplicator.close()

    @pytest.mark.asyncio
    async def test_overlapping_sync_refused(self, test_settings, db, store):
        store.insert("ABC123", "qr")
        uploader = BlockingUploader()
        engine = ScanEngine(
            settings=test_settings,
            sync_coordinator=SyncCoordinator(uploader, local_mode=False),
        )

        first = asyncio.create_task(engine.sync(db))
        await uploader.started.wait()

        with pytest.raises(AppException) as exc_info:
            await engine.sync(db)
        assert exc_info.value.code == "SYNC_IN_PROGRESS"
        assert exc_info.value.status_code == 409

        uploader.finish.set()
        result = await first
        assert result.status is SyncStatus.SUCCEEDED
        assert result.count == 1

    @pytest.mark.asyncio
    async def test_sync_reads_current_store(self, scan_engine: ScanEngine, db, store):
        store.insert("A", "qr")
        store.insert("B", "qr")

        result = await scan_engine.sync(db)

        assert result.status is SyncStatus.LOCAL_MODE
        assert result.count == 2

    @pytest.mark.asyncio
    async def test_shutdown_closes_uploader(self, scan_engine: ScanEngine, uploader):
        await scan_engine.shutdown()
        assert uploader.closed is True
