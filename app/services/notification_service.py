"""
==============================================================================
Notification Service Module
==============================================================================

Plain-text notification sink for scan feedback.

Messages are logged and forwarded to every subscribed async callback
(e.g. connected WebSocket clients). Delivery is best effort: a failing
subscriber is logged and dropped, the scan pipeline never waits on it.

==============================================================================
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Awaitable, Callable, List


# Module logger
logger = logging.getLogger(__name__)

Subscriber = Callable[[str], Awaitable[None]]


class NotificationService:
    """
    Fan-out of text messages to subscribers.

    Example:
        >>> notifier = NotificationService()
        >>> notifier.subscribe(websocket_sender)
        >>> await notifier.notify("New code scanned: ABC123")
    """

    TITLE = "QR Scanner"
    HISTORY_SIZE = 100

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._history: deque = deque(maxlen=self.HISTORY_SIZE)

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> None:
        """Register a coroutine function receiving every message."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # =========================================================================
    # DELIVERY
    # =========================================================================

    async def notify(self, message: str) -> None:
        """Log the message and forward it to all subscribers."""
        logger.info(f"🔔 {self.TITLE}: {message}")
        self._history.append(message)

        for callback in list(self._subscribers):
            try:
                await callback(message)
            except Exception as e:
                logger.warning(f"Dropping notification subscriber: {e}")
                self.unsubscribe(callback)

    @property
    def history(self) -> List[str]:
        """Most recent messages, oldest first."""
        return list(self._history)

    # =========================================================================
    # MESSAGE TEMPLATES
    # =========================================================================

    @staticmethod
    def new_code_message(payload: str) -> str:
        return f"New code scanned: {payload}"

    @staticmethod
    def known_code_message(payload: str) -> str:
        return f"Code already scanned: {payload}"
