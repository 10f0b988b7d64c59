"""Event system for post-commit notifications.

Why This Package Exists
-----------------------
The generic patch primitive must not know which entity's business rules
care about which field transitions. It hands a committed change to
observers, and observers that need to tell the outside world publish an
:class:`Event` on an ``EventBus``. Producers and consumers never import
each other.

Usage::

    from credspine.core.events import Event, publish_event
    from credspine.core.events.memory import InMemoryEventBus

    bus = InMemoryEventBus()

    async def handler(event: Event):
        print(event.payload["id"])
    await bus.subscribe("provider.*", handler)

    # From synchronous engine code (fire-and-forget)
    publish_event(bus, "provider.status_changed", "engine.hooks", {"id": "p-1"})

Modules
-------
memory      InMemoryEventBus -- asyncio, single-node
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Any, Protocol, runtime_checkable

from credspine.core.logging import get_logger
from credspine.core.timestamps import utc_now

__all__ = [
    "Event",
    "EventBus",
    "EventHandler",
    "publish_event",
]

logger = get_logger(__name__)

# Tasks scheduled from inside a running loop; held until done so they are not collected.
_pending: set[asyncio.Task[None]] = set()


@dataclass(frozen=True)
class Event:
    """One notification.

    Attributes:
        event_type: Dotted type, e.g. ``provider.status_changed``
        source: Component that published it
        payload: Event data (for status changes, the full updated record)
        timestamp: Publish time (UTC)
        correlation_id: Correlation id of the request that caused it
        event_id: Unique id
    """

    event_type: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)
    correlation_id: str | None = None
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def matches(self, pattern: str) -> bool:
        """Shell-style match: ``*`` is everything, ``provider.*`` a dotted prefix."""
        return fnmatchcase(self.event_type, pattern)


EventHandler = Callable[[Event], Awaitable[None]]


@runtime_checkable
class EventBus(Protocol):
    """Publish/subscribe with wildcard patterns."""

    async def publish(self, event: Event) -> None: ...

    async def subscribe(self, event_type: str, handler: EventHandler) -> str:
        """Returns a subscription id for :meth:`unsubscribe`."""
        ...

    async def unsubscribe(self, subscription_id: str) -> None: ...

    async def close(self) -> None: ...


def publish_event(
    bus: EventBus,
    event_type: str,
    source: str,
    payload: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> None:
    """Publish from synchronous code and never raise.

    With no running loop the publish completes before this returns. Inside a
    running loop it is scheduled as a task. Either way a failure is logged
    as ``event.publish_failed`` and not retried.
    """
    event = Event(event_type, source, dict(payload or {}), correlation_id=correlation_id)
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        try:
            asyncio.run(bus.publish(event))
        except Exception as exc:
            _log_failure(event, exc)
        return

    task = loop.create_task(bus.publish(event))
    _pending.add(task)
    task.add_done_callback(lambda done: _settle(event, done))


def _settle(event: Event, task: asyncio.Task[None]) -> None:
    _pending.discard(task)
    if not task.cancelled() and task.exception() is not None:
        _log_failure(event, task.exception())


def _log_failure(event: Event, exc: BaseException) -> None:
    logger.warning(
        "event.publish_failed",
        event_type=event.event_type,
        event_id=event.event_id,
        error=str(exc),
    )
