"""
Notification sinks - one-way, fire-and-forget event publishing.

The engine never waits on a sink and never retries: a failed delivery is
logged and the originating write stands.

Implementations:
    - :class:`EventBusSink` -- forwards to a :mod:`credspine.core.events` bus
    - :class:`NullSink` -- drops everything (CLI and batch tools)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from credspine.core.events import EventBus, publish_event
from credspine.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Anything that accepts ``publish(event_type, payload, correlation_id=...)``."""

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> None:
        ...


class EventBusSink:
    """Publishes notifications as :class:`~credspine.core.events.Event` objects."""

    def __init__(self, bus: EventBus, *, source: str = "credspine.engine") -> None:
        self._bus = bus
        self._source = source

    @property
    def bus(self) -> EventBus:
        return self._bus

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> None:
        publish_event(self._bus, event_type, self._source, payload, correlation_id)
        logger.debug("notification.published", event_type=event_type, correlation_id=correlation_id)


class NullSink:
    """Discards notifications."""

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> None:
        logger.debug("notification.dropped", event_type=event_type)


__all__ = [
    "NotificationSink",
    "EventBusSink",
    "NullSink",
]
