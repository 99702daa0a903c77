"""
==============================================================================
Scan Pipeline Tests
==============================================================================

Debounce decision, known/new branching, notifications and release
scheduling of ScanService.process().

==============================================================================
"""

import pytest
import pytest_asyncio

from app.core.exceptions import AppException, StorageError
from app.scanner import Deduplicator, ScanDecision
from app.services.notification_service import NotificationService
from app.services.scan_service import ScanService, ScanStatus


class RecordingDeduplicator(Deduplicator):
    """Deduplicator counting schedule_release calls."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.scheduled = 0

    def schedule_release(self, delay_ms=None):
        self.scheduled += 1
        super().schedule_release(delay_ms)


class BrokenStore:
    """Store whose backend is unavailable."""

    def exists(self, payload):
        raise StorageError("database is locked", operation="exists")


@pytest_asyncio.fixture
async def dedup():
    d = RecordingDeduplicator(cooldown_ms=3000, processing_timeout_ms=60_000)
    yield d
    d.close()


@pytest.fixture
def notifier():
    return NotificationService()


@pytest.fixture
def service(dedup, store, notifier):
    return ScanService(dedup, store, notifier)


class TestProcess:
    """Tests for ScanService.process."""

    @pytest.mark.asyncio
    async def test_new_payload_is_stored_and_notified(self, service, store, notifier, dedup):
        outcome = await service.process("ABC123", "qr", 1_000)

        assert outcome.decision is ScanDecision.ACCEPT
        assert outcome.status is ScanStatus.NEW
        assert outcome.record is not None
        assert outcome.record.data == "ABC123"
        assert outcome.stats.total == 1
        assert outcome.stats.by_type["qr"] == 1
        assert notifier.history == ["New code scanned: ABC123"]
        assert store.exists("ABC123") is True
        assert dedup.scheduled == 1

    @pytest.mark.asyncio
    async def test_event_while_processing_is_rejected(self, service, store, notifier):
        await service.process("ABC123", "qr", 1_000)

        outcome = await service.process("OTHER", "qr", 1_050)

        assert outcome.decision is ScanDecision.REJECT_BUSY
        assert outcome.status is ScanStatus.REJECTED
        assert outcome.record is None
        assert outcome.stats is None
        assert len(store.list()) == 1
        assert len(notifier.history) == 1

    @pytest.mark.asyncio
    async def test_duplicate_within_cooldown_is_rejected(self, service, dedup, notifier):
        await service.process("ABC123", "qr", 1_000)
        dedup.release()

        outcome = await service.process("ABC123", "qr", 2_000)

        assert outcome.decision is ScanDecision.REJECT_DUPLICATE
        assert outcome.status is ScanStatus.REJECTED
        assert len(notifier.history) == 1

    @pytest.mark.asyncio
    async def test_known_payload_after_cooldown_is_not_stored_again(
        self, service, dedup, store, notifier
    ):
        await service.process("ABC123", "qr", 1_000)
        dedup.release()

        outcome = await service.process("ABC123", "qr", 4_500)

        assert outcome.decision is ScanDecision.ACCEPT
        assert outcome.status is ScanStatus.KNOWN
        assert outcome.record is None
        assert outcome.stats.total == 1
        assert notifier.history[-1] == "Code already scanned: ABC123"
        assert len(store.list()) == 1

    @pytest.mark.asyncio
    async def test_repeat_scans_recorded_when_enabled(self, dedup, store, notifier):
        service = ScanService(dedup, store, notifier, record_repeat_scans=True)
        await service.process("ABC123", "qr", 1_000)
        dedup.release()

        outcome = await service.process("ABC123", "qr", 4_500)

        assert outcome.status is ScanStatus.KNOWN
        assert outcome.record is not None
        assert outcome.stats.total == 2
        assert notifier.history[-1] == "Code already scanned: ABC123"

    @pytest.mark.asyncio
    async def test_symbology_is_normalized(self, service):
        outcome = await service.process("4006381333931", "org.gs1.EAN-13", 1_000)

        assert outcome.record.type == "ean13"
        assert outcome.stats.by_type["ean13"] == 1

    @pytest.mark.asyncio
    async def test_unknown_symbology_stored_with_warning(self, service, caplog):
        with caplog.at_level("WARNING", logger="app.services.scan_service"):
            outcome = await service.process("ABC123", "MaxiCode", 1_000)

        assert outcome.record.type == "maxicode"
        assert outcome.stats.by_type["maxicode"] == 1
        assert "Unrecognized symbology" in caplog.text

    @pytest.mark.asyncio
    async def test_known_symbology_logs_no_warning(self, service, caplog):
        with caplog.at_level("WARNING", logger="app.services.scan_service"):
            await service.process("ABC123", "org.iso.QRCode", 1_000)

        assert "Unrecognized symbology" not in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_payload_rejected_before_debounce(self, service, dedup):
        with pytest.raises(AppException) as exc_info:
            await service.process("", "qr", 1_000)

        assert exc_info.value.code == "INVALID_PAYLOAD"
        assert exc_info.value.status_code == 400
        assert dedup.is_processing is False

    @pytest.mark.asyncio
    async def test_storage_failure_still_schedules_release(self, dedup, notifier):
        service = ScanService(dedup, BrokenStore(), notifier)

        with pytest.raises(StorageError):
            await service.process("ABC123", "qr", 1_000)

        assert dedup.scheduled == 1
        assert dedup.is_processing is True
        assert notifier.history == []

    @pytest.mark.asyncio
    async def test_notifications_reach_subscribers(self, service, notifier):
        received = []

        async def subscriber(message):
            received.append(message)

        notifier.subscribe(subscriber)
        await service.process("ABC123", "qr", 1_000)

        assert received == ["New code scanned: ABC123"]


class TestNotificationService:
    """Tests for NotificationService fan-out."""

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_dropped(self, notifier):
        received = []

        async def broken(message):
            raise RuntimeError("socket closed")

        async def healthy(message):
            received.append(message)

        notifier.subscribe(broken)
        notifier.subscribe(healthy)

        await notifier.notify("first")
        await notifier.notify("second")

        assert received == ["first", "second"]
        assert notifier.subscriber_count == 1

    @pytest.mark.asyncio
    async def test_history_is_bounded(self, notifier):
        for i in range(NotificationService.HISTORY_SIZE + 5):
            await notifier.notify(f"m{i}")

        history = notifier.history
        assert len(history) == NotificationService.HISTORY_SIZE
        assert history[0] == "m5"

    def test_subscribe_is_idempotent(self, notifier):
        async def subscriber(message):
            pass

        notifier.subscribe(subscriber)
        notifier.subscribe(subscriber)
        assert notifier.subscriber_count == 1

        notifier.unsubscribe(subscriber)
        notifier.unsubscribe(subscriber)
        assert notifier.subscriber_count == 0
