"""
Best-effort fan-out of match events to real-time transports.

Handlers are awaited in registration order. A failing handler is logged and
skipped; publishing never raises into the operation that triggered it.
"""

import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[str, dict[str, Any]], Awaitable[None]]

MATCH_MUTUAL = "match.mutual"
MATCH_INTERACTION = "match.interaction"


class NotificationService:
    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def clear(self) -> None:
        self._handlers.clear()

    async def publish(self, event: str, payload: dict[str, Any]) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event, payload)
            except Exception:
                logger.exception("Notification handler failed for %s", event)


async def log_event(event: str, payload: dict[str, Any]) -> None:
    logger.info("Event %s: %s", event, payload)


notifier = NotificationService()
notifier.subscribe(log_event)
