"""
==============================================================================
Sync Service Module
==============================================================================

Best-effort export of stored scans to a remote service.

This module implements:
- SyncStatus / SyncResult: Discriminated outcome of a sync attempt
- ScanUploader: Structural interface for posting one record
- HttpScanUploader: aiohttp implementation (POST {api_url}/codigos)
- SyncCoordinator: Sequential, non-atomic batch delivery

Delivery Semantics:
------------------
- Records are posted one at a time, in the order given.
- The first failure aborts the batch; records already sent stay sent.
- There is no retry, no rollback and no resume checkpoint: a following
  sync sends the full record set again.
- Local-only mode performs no network I/O at all.

==============================================================================
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import aiohttp

from app.core.exceptions import NetworkError
from app.schemas.scan import ScanRecord


# Module logger
logger = logging.getLogger(__name__)


class SyncStatus(str, enum.Enum):
    """Sync outcome discriminator."""

    NOTHING_TO_SYNC = "nothing_to_sync"
    LOCAL_MODE = "local_mode"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of SyncCoordinator.sync().

    Attributes:
        status: Which outcome occurred
        count: Records concerned (sent before failure for FAILED)
        message: User-facing summary
    """

    status: SyncStatus
    count: int = 0
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is not SyncStatus.FAILED

    @classmethod
    def nothing_to_sync(cls) -> SyncResult:
        return cls(SyncStatus.NOTHING_TO_SYNC, 0, "No codes to synchronize")

    @classmethod
    def local_mode(cls, count: int) -> SyncResult:
        return cls(
            SyncStatus.LOCAL_MODE,
            count,
            f"Working in local mode. {count} codes are stored locally.",
        )

    @classmethod
    def succeeded(cls, count: int) -> SyncResult:
        return cls(
            SyncStatus.SUCCEEDED,
            count,
            f"Synchronized {count} codes with the server",
        )

    @classmethod
    def failed(cls, partial_count: int) -> SyncResult:
        return cls(
            SyncStatus.FAILED,
            partial_count,
            f"Could not synchronize the codes ({partial_count} sent). "
            "Check your connection.",
        )


class ScanUploader(Protocol):
    """Structural interface for delivering one record.

    Implementations raise NetworkError when the record was not accepted.
    """

    async def upload(self, record: ScanRecord) -> None:
        ...

    async def close(self) -> None:
        ...


class HttpScanUploader:
    """POSTs records as JSON to the remote /codigos endpoint."""

    HEADERS = {
        "Accept": "application/json;encoding=utf-8",
        "Content-Type": "application/json;encoding=utf-8",
    }

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 10.0,
        http_session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._http = http_session
        self._owns_session = http_session is None

    def _session(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._http

    async def upload(self, record: ScanRecord) -> None:
        body = json.dumps(record.to_sync_body())
        logger.debug("POST %s (%s)", self._endpoint, record.id)

        try:
            async with self._session().post(
                self._endpoint, data=body, headers=self.HEADERS
            ) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    raise NetworkError(
                        f"HTTP {resp.status} from {self._endpoint}: {text[:200]}",
                        record_id=record.id,
                        status=resp.status,
                    )
        except NetworkError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise NetworkError(
                f"Request to {self._endpoint} failed: {exc!r}",
                record_id=record.id,
            ) from exc

    async def close(self) -> None:
        if self._owns_session and self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None


class SyncCoordinator:
    """
    Sends stored scans to the remote service.

    Callers must not run two syncs at once; is_syncing lets them refuse
    a trigger while one is outstanding.

    Example:
        >>> coordinator = SyncCoordinator(uploader, local_mode=False)
        >>> result = await coordinator.sync(store.list())
        >>> result.status
        <SyncStatus.SUCCEEDED: 'succeeded'>
    """

    def __init__(
        self,
        uploader: ScanUploader,
        local_mode: bool = True,
        local_mode_delay_ms: int = 500,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            uploader: Delivers one record to the remote endpoint
            local_mode: Skip all network I/O
            local_mode_delay_ms: Cosmetic delay before a local-mode result
        """
        self._uploader = uploader
        self._local_mode = local_mode
        self._local_mode_delay = local_mode_delay_ms / 1000
        self._syncing = False

    @classmethod
    def from_settings(cls, settings) -> SyncCoordinator:
        """Build a coordinator posting to settings.sync_endpoint."""
        uploader = HttpScanUploader(
            settings.sync_endpoint,
            timeout_seconds=settings.sync_timeout_seconds,
        )
        return cls(
            uploader,
            local_mode=settings.local_mode,
            local_mode_delay_ms=settings.local_mode_delay_ms,
        )

    @property
    def local_mode(self) -> bool:
        return self._local_mode

    @property
    def is_syncing(self) -> bool:
        return self._syncing

    async def sync(self, records: Sequence[ScanRecord]) -> SyncResult:
        """
        Deliver records one by one.

        Args:
            records: Snapshot of the store to send

        Returns:
            SyncResult describing what happened
        """
        if not records:
            logger.info("Nothing to synchronize")
            return SyncResult.nothing_to_sync()

        self._syncing = True
        try:
            if self._local_mode:
                await asyncio.sleep(self._local_mode_delay)
                logger.info(f"📴 Local mode: {len(records)} codes kept locally")
                return SyncResult.local_mode(len(records))

            sent = 0
            for record in records:
                try:
                    await self._uploader.upload(record)
                except NetworkError as e:
                    logger.error(
                        f"❌ Sync aborted after {sent}/{len(records)} codes: {e.message}"
                    )
                    return SyncResult.failed(sent)
                sent += 1

            logger.info(f"✅ Synchronized {sent} codes")
            return SyncResult.succeeded(sent)
        finally:
            self._syncing = False

    async def close(self) -> None:
        """Release the uploader's network resources."""
        await self._uploader.close()
