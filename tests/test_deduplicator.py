"""
==============================================================================
Deduplicator Tests
==============================================================================

Cooldown, processing flag and automatic release behaviour.

==============================================================================
"""

import asyncio

import pytest

from app.config import Settings
from app.scanner import Deduplicator, ScanDecision


class TestDecisions:
    """Synchronous decision protocol (no event loop, manual release)."""

    def test_first_event_is_accepted(self):
        dedup = Deduplicator()
        assert dedup.decide("ABC123", 1_000) is ScanDecision.ACCEPT
        assert dedup.is_processing is True

    def test_events_while_processing_are_busy_regardless_of_payload(self):
        dedup = Deduplicator()
        dedup.decide("ABC123", 1_000)

        for payload in ["ABC123", "OTHER", "", "XYZ"]:
            assert dedup.decide(payload, 50_000) is ScanDecision.REJECT_BUSY

    def test_same_payload_within_cooldown_is_duplicate(self):
        dedup = Deduplicator(cooldown_ms=3000)
        dedup.decide("ABC123", 1_000)
        dedup.release()

        assert dedup.decide("ABC123", 3_999) is ScanDecision.REJECT_DUPLICATE

    def test_same_payload_at_cooldown_boundary_is_accepted(self):
        dedup = Deduplicator(cooldown_ms=3000)
        dedup.decide("ABC123", 1_000)
        dedup.release()

        assert dedup.decide("ABC123", 4_000) is ScanDecision.ACCEPT

    def test_other_payload_within_cooldown_is_accepted(self):
        dedup = Deduplicator(cooldown_ms=3000)
        dedup.decide("ABC123", 1_000)
        dedup.release()

        assert dedup.decide("XYZ", 1_100) is ScanDecision.ACCEPT
        dedup.release()
        # XYZ is now the last accepted payload, so ABC123 is fresh again
        assert dedup.decide("ABC123", 1_200) is ScanDecision.ACCEPT

    def test_burst_of_identical_events_yields_one_accept(self):
        dedup = Deduplicator(cooldown_ms=3000)
        decisions = []
        for i, ts in enumerate(range(10_000, 12_900, 60)):
            decisions.append(dedup.decide("STATIC-CODE", ts))
            if i == 5:
                dedup.release()

        assert decisions[0] is ScanDecision.ACCEPT
        assert decisions.count(ScanDecision.ACCEPT) == 1
        assert set(decisions[1:]) <= {
            ScanDecision.REJECT_BUSY,
            ScanDecision.REJECT_DUPLICATE,
        }
        assert ScanDecision.REJECT_DUPLICATE in decisions

    def test_accept_records_state(self):
        dedup = Deduplicator()
        dedup.decide("ABC123", 1_234)

        state = dedup.state
        assert state.last_payload == "ABC123"
        assert state.last_accepted_at == 1_234
        assert state.processing is True

    def test_state_is_a_snapshot(self):
        dedup = Deduplicator()
        snapshot = dedup.state
        snapshot.processing = True

        assert dedup.is_processing is False

    def test_clock_used_when_timestamp_missing(self):
        dedup = Deduplicator(cooldown_ms=3000, clock=lambda: 5_000)
        dedup.decide("ABC123")

        assert dedup.state.last_accepted_at == 5_000

    def test_release_is_idempotent(self):
        dedup = Deduplicator()
        dedup.release()
        dedup.decide("ABC123", 1_000)
        dedup.release()
        dedup.release()

        assert dedup.is_processing is False

    def test_schedule_release_when_idle_is_noop(self):
        dedup = Deduplicator()
        dedup.schedule_release()
        assert dedup.is_processing is False

    @pytest.mark.parametrize(
        "cooldown_ms, timeout_ms",
        [(-1, 1000), (3000, 0), (3000, -5)],
    )
    def test_invalid_configuration_rejected(self, cooldown_ms, timeout_ms):
        with pytest.raises(ValueError):
            Deduplicator(cooldown_ms=cooldown_ms, processing_timeout_ms=timeout_ms)

    def test_from_settings(self):
        settings = Settings(scan_cooldown_ms=1500, processing_timeout_ms=250)
        dedup = Deduplicator.from_settings(settings)

        assert dedup.cooldown_ms == 1500
        assert dedup.processing_timeout_ms == 250


class TestAutomaticRelease:
    """Release timer behaviour on a running event loop."""

    @pytest.mark.asyncio
    async def test_flag_released_after_timeout(self):
        dedup = Deduplicator(cooldown_ms=50, processing_timeout_ms=20)
        assert dedup.decide("ABC123", 1_000) is ScanDecision.ACCEPT
        assert dedup.decide("ABC123", 1_010) is ScanDecision.REJECT_BUSY

        await asyncio.sleep(0.2)

        assert dedup.is_processing is False
        assert dedup.decide("ABC123", 1_050) is ScanDecision.ACCEPT
        dedup.close()

    @pytest.mark.asyncio
    async def test_schedule_release_rearms_timer(self):
        dedup = Deduplicator(processing_timeout_ms=30)
        dedup.decide("ABC123", 1_000)

        dedup.schedule_release(delay_ms=400)
        await asyncio.sleep(0.1)
        assert dedup.is_processing is True

        dedup.release()
        assert dedup.is_processing is False

    @pytest.mark.asyncio
    async def test_close_cancels_pending_release(self):
        dedup = Deduplicator(processing_timeout_ms=10)
        dedup.decide("ABC123", 1_000)
        dedup.close()

        await asyncio.sleep(0.1)

        assert dedup.is_processing is True
        dedup.release()

    @pytest.mark.asyncio
    async def test_manual_release_cancels_timer(self):
        dedup = Deduplicator(cooldown_ms=0, processing_timeout_ms=200)
        dedup.decide("A", 1_000)
        await asyncio.sleep(0.1)
        dedup.release()
        dedup.decide("B", 1_001)

        # the timer of "A" would have fired by now
        await asyncio.sleep(0.15)
        assert dedup.is_processing is True

        await asyncio.sleep(0.3)
        assert dedup.is_processing is False
