"""Event bus — fans engine events out to subscribers in emission order."""

from __future__ import annotations

import logging
from typing import Any

from ..types import Subscriber

logger = logging.getLogger(__name__)


class EventBus:
    """Sequential fan-out to subscribers.

    Every subscriber is awaited before the next one runs, so a slow subscriber
    delays the next event instead of dropping it. A failing subscriber is
    logged and skipped.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    @property
    def subscribers(self) -> list[Subscriber]:
        return list(self._subscribers)

    def add_subscriber(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def remove_subscriber(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    async def notify(self, event_type: str, data: Any) -> None:
        for sub in list(self._subscribers):
            try:
                await sub.record(event_type, data)
            except Exception:
                logger.exception("Subscriber error for %s", event_type)
