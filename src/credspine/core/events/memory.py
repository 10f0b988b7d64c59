"""
In-process event bus.

Handlers run in the publishing process, concurrently, and nothing is
persisted. One bus can be driven from several event loops in turn (each
:func:`~credspine.core.events.publish_event` call from sync code runs its
own loop), so the bus holds no loop-bound primitives.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import NamedTuple

from credspine.core.events import Event, EventHandler
from credspine.core.logging import get_logger

__all__ = ["InMemoryEventBus"]

logger = get_logger(__name__)


class _Subscription(NamedTuple):
    pattern: str
    handler: EventHandler


class InMemoryEventBus:
    """Wildcard pub/sub bus for a single process.

    Example::

        bus = InMemoryEventBus()
        await bus.subscribe("provider.*", on_provider_event)
        await bus.publish(Event("provider.status_changed", "engine.hooks", record))
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, _Subscription] = {}
        self._ids = itertools.count(1)
        self._closed = False

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler; a failing handler is logged."""
        if self._closed:
            return
        handlers = [s.handler for s in self._subscriptions.values() if event.matches(s.pattern)]
        if not handlers:
            return
        outcomes = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                logger.warning(
                    "event.handler_failed",
                    event_type=event.event_type,
                    event_id=event.event_id,
                    error=str(outcome),
                )

    async def subscribe(self, event_type: str, handler: EventHandler) -> str:
        subscription_id = f"sub-{next(self._ids)}"
        self._subscriptions[subscription_id] = _Subscription(event_type, handler)
        return subscription_id

    async def unsubscribe(self, subscription_id: str) -> None:
        self._subscriptions.pop(subscription_id, None)

    async def close(self) -> None:
        """Drop every subscription; later publishes are ignored."""
        self._closed = True
        self._subscriptions.clear()
