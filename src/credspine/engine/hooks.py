"""
Post-commit observers.

``DataEngine.patch_by_id`` does not know any entity's business rules. After
a patch is written it hands a :class:`PatchCommitted` (the diff plus the
fully updated record) to every registered observer; observers decide what,
if anything, the outside world should hear about it.

An observer that raises is logged and skipped. The patch has already been
committed and is never rolled back.

Example::

    engine.add_observer(ProviderStatusNotifier(sink))
    engine.patch_by_id("Providers", pid, {"credentialingStatus": "Active"})
    # sink.publish("provider.status_changed", {...updated provider...})
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from credspine.core.logging import get_logger
from credspine.engine.notifications import NotificationSink
from credspine.engine.schemas import PROVIDERS_TABLE

logger = get_logger(__name__)

STATUS_CHANGED_EVENT = "provider.status_changed"


@dataclass(frozen=True)
class PatchCommitted:
    """A patch that changed at least one field.

    Attributes:
        table: Table that was written
        record_id: Identity of the patched row
        changes: ``{key: (old, new)}`` for every changed field
        record: The full record after the write
        correlation_id: Correlation id of the originating request
    """

    table: str
    record_id: str
    changes: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    record: dict[str, Any] = field(default_factory=dict)
    correlation_id: str | None = None


PatchObserver = Callable[[PatchCommitted], None]


class ProviderStatusNotifier:
    """Publishes the updated provider when its credentialing status changes."""

    def __init__(
        self,
        sink: NotificationSink,
        *,
        table: str = PROVIDERS_TABLE,
        field_key: str = "credentialingStatus",
        event_type: str = STATUS_CHANGED_EVENT,
    ) -> None:
        self._sink = sink
        self._table = table
        self._field = field_key
        self._event_type = event_type

    def __call__(self, change: PatchCommitted) -> None:
        if change.table != self._table or self._field not in change.changes:
            return
        old, new = change.changes[self._field]
        logger.info(
            "hooks.status_changed",
            table=change.table,
            record_id=change.record_id,
            old=old,
            new=new,
        )
        self._sink.publish(
            self._event_type, dict(change.record), correlation_id=change.correlation_id
        )


__all__ = [
    "STATUS_CHANGED_EVENT",
    "PatchCommitted",
    "PatchObserver",
    "ProviderStatusNotifier",
]
