"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Real-time decode event stream via WebSocket connection.

Protocol:
---------
1. Client connects; server replies with a "ready" message and stats
2. Client sends {"type": "decode", "data", "symbology", "timestamp"?}
   for every decoder callback, at whatever rate the camera produces them
3. Server replies with a "decision" message per event and pushes
   "notification" messages for accepted scans
4. Client sends {"type": "stop"} (or disconnects) to end the session

Each connection gets its own Deduplicator, so two devices never
debounce each other.

==============================================================================
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session

from app.core.exceptions import AppException
from app.db.database import get_db
from app.services.engine import ScanEngine, get_scan_engine
from app.services.notification_service import NotificationService


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ScannerWebSocketHandler:
    """
    Handler for one scanning session.

    Manages the lifecycle of a scanning session including:
    - Per-session debounce state
    - Decode event processing
    - Notification push
    """

    def __init__(self, websocket: WebSocket, db: Session, engine: ScanEngine):
        self._websocket = websocket
        self._engine = engine
        self._deduplicator = engine.new_deduplicator()
        self._service = engine.scan_service(db, self._deduplicator)
        self._store = engine.store(db)

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def send_notification(self, message: str) -> None:
        await self._websocket.send_json({
            "type": "notification",
            "title": NotificationService.TITLE,
            "message": message
        })

    async def handle_decode(self, data: dict) -> None:
        """Handle one decode event from the client."""
        payload = data.get("data")
        if not isinstance(payload, str) or not payload:
            await self.send_error("Decode event without data", "INVALID_PAYLOAD")
            return

        symbology = data.get("symbology") or data.get("barcode_type") or "qr"
        if not isinstance(symbology, str):
            await self.send_error("Symbology must be a string", "INVALID_PAYLOAD")
            return

        timestamp = data.get("timestamp")
        if timestamp is not None and (
            isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0
        ):
            await self.send_error(
                "Timestamp must be milliseconds since epoch", "INVALID_PAYLOAD"
            )
            return

        try:
            outcome = await self._service.process(payload, symbology, timestamp)
        except AppException as e:
            logger.error(f"Scan processing error: {e.message}")
            await self.send_error(e.message, e.code)
            return

        await self._websocket.send_json({
            "type": "decision",
            "decision": outcome.decision.value,
            "status": outcome.status.value,
            "message": outcome.message,
            "record": outcome.record.model_dump() if outcome.record else None,
            "stats": outcome.stats.model_dump() if outcome.stats else None,
        })

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        self._engine.notifier.subscribe(self.send_notification)

        try:
            await self._websocket.send_json({
                "type": "ready",
                "stats": self._store.compute_stats().model_dump(),
                "local_mode": self._engine.sync_coordinator.local_mode,
            })

            while True:
                data = await self._websocket.receive_json()
                if not isinstance(data, dict):
                    await self.send_error("Message must be a JSON object", "INVALID_MESSAGE")
                    continue

                message_type = data.get("type")

                if message_type == "decode":
                    await self.handle_decode(data)

                elif message_type == "stop":
                    logger.info("🛑 Client requested stop")
                    break

                else:
                    await self.send_error(
                        f"Unknown message type: {message_type}", "UNKNOWN_MESSAGE"
                    )

        except WebSocketDisconnect:
            logger.info("📱 Client disconnected")
        except AppException as e:
            logger.error(f"WebSocket error: {e.message}")
            await self.send_error(e.message, e.code)
        finally:
            self._engine.notifier.unsubscribe(self.send_notification)
            self._deduplicator.close()
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    engine: ScanEngine = Depends(get_scan_engine)
):
    """Real-time decode event stream via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, db, engine)
    await handler.run()
