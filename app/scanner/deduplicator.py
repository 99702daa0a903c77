"""
==============================================================================
Scan Deduplicator Module
==============================================================================

Debounce engine for raw decode events.

Decoders fire many times per second while a code stays in frame. The
Deduplicator turns that stream into at most one in-flight accepted scan:

- BUSY:      a previously accepted scan is still settling
- DUPLICATE: same payload as the last accepted one, inside the cooldown
- ACCEPT:    everything else; the processing flag is set

Processing Flag Lifecycle:
-------------------------

    ┌──────┐  decide() == ACCEPT   ┌────────────┐
    │ IDLE │ ────────────────────▶ │ PROCESSING │
    └──────┘                       └────────────┘
        ▲                               │
        │   release() / timer fires     │
        └───────────────────────────────┘

The release timer is an asyncio task owned by the instance. It is armed
on every accept so a stuck consumer can never hold the flag forever.

==============================================================================
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional


# Module logger
logger = logging.getLogger(__name__)


def current_millis() -> int:
    """Wall-clock time in milliseconds since epoch."""
    return int(time.time() * 1000)


class ScanDecision(str, enum.Enum):
    """Outcome of a single decode event."""

    ACCEPT = "accept"
    REJECT_BUSY = "reject_busy"
    REJECT_DUPLICATE = "reject_duplicate"

    def __str__(self) -> str:
        return self.value

    @property
    def accepted(self) -> bool:
        return self is ScanDecision.ACCEPT


@dataclass
class DeduplicationState:
    """
    Mutable debounce state, owned by exactly one Deduplicator.

    Attributes:
        last_payload: Last accepted payload ("" when nothing accepted yet)
        last_accepted_at: Decode timestamp of the last accept (ms)
        processing: True while an accepted scan is in flight
    """

    last_payload: str = ""
    last_accepted_at: int = 0
    processing: bool = False


class Deduplicator:
    """
    Stateful filter deciding whether a decode event is accepted.

    Attributes:
        cooldown_ms: Window during which the same payload is rejected
        processing_timeout_ms: Delay of the automatic release

    Example:
        >>> dedup = Deduplicator(cooldown_ms=3000, processing_timeout_ms=1000)
        >>> dedup.decide("ABC123", 10_000)
        <ScanDecision.ACCEPT: 'accept'>
        >>> dedup.decide("XYZ", 10_050)
        <ScanDecision.REJECT_BUSY: 'reject_busy'>
        >>> dedup.release()
        >>> dedup.decide("ABC123", 11_000)
        <ScanDecision.REJECT_DUPLICATE: 'reject_duplicate'>
    """

    def __init__(
        self,
        cooldown_ms: int = 3000,
        processing_timeout_ms: int = 1000,
        clock: Callable[[], int] = current_millis,
    ) -> None:
        """
        Initialize the deduplicator with an empty state.

        Args:
            cooldown_ms: Same-payload cooldown window in milliseconds
            processing_timeout_ms: Automatic release delay in milliseconds
            clock: Millisecond clock used when no decode timestamp is given
        """
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms cannot be negative")
        if processing_timeout_ms <= 0:
            raise ValueError("processing_timeout_ms must be positive")

        self._cooldown_ms = cooldown_ms
        self._processing_timeout_ms = processing_timeout_ms
        self._clock = clock
        self._state = DeduplicationState()
        self._release_task: Optional[asyncio.Task] = None

        logger.debug(
            f"Deduplicator created (cooldown={cooldown_ms}ms, "
            f"timeout={processing_timeout_ms}ms)"
        )

    @classmethod
    def from_settings(cls, settings) -> Deduplicator:
        """Build a deduplicator from application settings."""
        return cls(
            cooldown_ms=settings.scan_cooldown_ms,
            processing_timeout_ms=settings.processing_timeout_ms,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def cooldown_ms(self) -> int:
        return self._cooldown_ms

    @property
    def processing_timeout_ms(self) -> int:
        return self._processing_timeout_ms

    @property
    def is_processing(self) -> bool:
        return self._state.processing

    @property
    def state(self) -> DeduplicationState:
        """Snapshot copy of the current state."""
        return replace(self._state)

    # =========================================================================
    # DECISION PROTOCOL
    # =========================================================================

    def decide(self, payload: str, decode_timestamp: Optional[int] = None) -> ScanDecision:
        """
        Decide whether a decode event should be accepted.

        Args:
            payload: Raw decoded payload
            decode_timestamp: Decode time in ms (clock time if None)

        Returns:
            ScanDecision for this event
        """
        if decode_timestamp is None:
            decode_timestamp = self._clock()

        if self._state.processing:
            logger.debug(f"Scan ignored, still processing: {payload!r}")
            return ScanDecision.REJECT_BUSY

        elapsed = decode_timestamp - self._state.last_accepted_at
        if payload == self._state.last_payload and elapsed < self._cooldown_ms:
            logger.debug(f"Scan ignored, same code {elapsed}ms ago: {payload!r}")
            return ScanDecision.REJECT_DUPLICATE

        self._state.processing = True
        self._state.last_payload = payload
        self._state.last_accepted_at = decode_timestamp
        self._arm_release(self._processing_timeout_ms)

        logger.debug(f"Scan accepted: {payload!r}")
        return ScanDecision.ACCEPT

    def release(self) -> None:
        """Clear the processing flag now and cancel any pending timer."""
        self._cancel_release()
        if self._state.processing:
            self._state.processing = False
            logger.debug("Scanner unlocked")

    def schedule_release(self, delay_ms: Optional[int] = None) -> None:
        """
        Re-arm the release timer to fire after delay_ms from now.

        No-op when nothing is in flight.

        Args:
            delay_ms: Delay in ms (processing timeout if None)
        """
        if not self._state.processing:
            return
        self._arm_release(self._processing_timeout_ms if delay_ms is None else delay_ms)

    def close(self) -> None:
        """Cancel the pending release timer. Call on teardown."""
        self._cancel_release()

    # =========================================================================
    # RELEASE TIMER
    # =========================================================================

    def _arm_release(self, delay_ms: int) -> None:
        self._cancel_release()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller has to release() explicitly.
            logger.debug("No running event loop, automatic release disabled")
            return

        self._release_task = loop.create_task(self._release_after(delay_ms / 1000))

    def _cancel_release(self) -> None:
        task = self._release_task
        self._release_task = None
        if task is not None and not task.done():
            task.cancel()

    async def _release_after(self, delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)
        self._release_task = None
        if self._state.processing:
            self._state.processing = False
            logger.debug("Scanner unlocked (timeout)")

    def __repr__(self) -> str:
        return (
            f"Deduplicator(cooldown_ms={self._cooldown_ms}, "
            f"processing_timeout_ms={self._processing_timeout_ms}, "
            f"processing={self._state.processing})"
        )
