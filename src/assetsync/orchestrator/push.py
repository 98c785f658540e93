"""Push-notification producer.

The pub/sub transport itself lives outside the connector. Transports hand
their notifications to a :class:`PushEventBridge`, which fans them out to the
subscribed handlers on the connector's event loop.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)

TRANSACTION_HISTORY_EVENT = "global-transaction-history-update"


def channel_name(channel_id: int) -> str:
    """Name of the private channel a tenant's notifications are published on."""
    return f"private-2-{channel_id}"


@dataclass(frozen=True)
class PushEvent:
    """A "sync without metadata should run now" notification."""

    channel_id: Optional[int] = None
    event_name: str = TRANSACTION_HISTORY_EVENT
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


PushHandler = Callable[[PushEvent], Awaitable[None]]


class PushSource(Protocol):
    def on_push_event(self, handler: PushHandler) -> Callable[[], None]:
        ...

    def start(self, channel_id: int) -> None:
        ...

    def stop(self) -> None:
        ...


class PushEventBridge:
    """In-process push source that transports publish into."""

    def __init__(self) -> None:
        self._handlers: List[PushHandler] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._channel_id: Optional[int] = None

    @property
    def active(self) -> bool:
        return self._loop is not None

    @property
    def channel(self) -> Optional[str]:
        return channel_name(self._channel_id) if self._channel_id is not None else None

    def on_push_event(self, handler: PushHandler) -> Callable[[], None]:
        """Subscribe ``handler``; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def start(self, channel_id: int) -> None:
        """Bind to the running event loop and accept events for ``channel_id``."""
        self._loop = asyncio.get_running_loop()
        self._channel_id = channel_id
        logger.info("Push event bridge listening", extra={"sync_channel": self.channel})

    def stop(self) -> None:
        self._loop = None
        logger.info("Push event bridge stopped", extra={"sync_channel": self.channel})

    async def emit(self, event: Optional[PushEvent] = None) -> None:
        """Deliver an event to every handler from the owning loop."""
        if not self.active:
            logger.debug("Ignoring push event, bridge is not started")
            return

        event = event or PushEvent(channel_id=self._channel_id)
        if event.event_name != TRANSACTION_HISTORY_EVENT:
            logger.debug("Ignoring push event %s", event.event_name)
            return

        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:  # noqa: BLE001
                logger.exception("Push event handler failed")

    def publish(self, event: Optional[PushEvent] = None) -> Optional[concurrent.futures.Future]:
        """Thread-safe entry point for transports running outside the loop.

        Returns:
            Future of the delivery, or None when the bridge is not started
        """
        loop = self._loop
        if loop is None:
            logger.debug("Dropping push event, bridge is not started")
            return None
        return asyncio.run_coroutine_threadsafe(self.emit(event), loop)


__all__ = [
    "PushEvent",
    "PushEventBridge",
    "PushHandler",
    "PushSource",
    "TRANSACTION_HISTORY_EVENT",
    "channel_name",
]
