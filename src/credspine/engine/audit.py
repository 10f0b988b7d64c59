"""
Audit Hook - one immutable row per mutation attempt.

Every engine mutator calls :meth:`AuditHook.record` exactly once, with
``Request`` on success and ``Error`` on failure. Audit rows are appended to
the ``AuditLog`` table and are never updated or deleted by the engine.

An audit write must never block a business operation: if appending the row
fails for any reason the failure goes to the structured log
(``audit.write_failed``) and ``record`` returns ``None``.

Examples:
    >>> hook = AuditHook(store, index=index)
    >>> event = hook.record(AuditKind.REQUEST, "patch_by_id Providers",
    ...                     {"operation": "patch_by_id", "id": "p-1"},
    ...                     correlation_id="req-42")
    >>> event.kind
    'Request'

Tags:
    audit, side-effect, append-only, cred-spine
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from credspine.core.logging import get_logger
from credspine.core.timestamps import new_record_id, utc_now_iso
from credspine.engine.codec import encode_row, header_specs
from credspine.engine.index import RowIndexCache
from credspine.engine.schemas import AUDIT_EVENT, AUDIT_TABLE
from credspine.store.protocols import TabularStore

logger = get_logger(__name__)


class AuditKind(str, Enum):
    """Audit event kinds. Any other string is accepted as well."""

    REQUEST = "Request"
    ERROR = "Error"


@dataclass(frozen=True)
class AuditEvent:
    """An audit row as written."""

    id: str
    timestamp: str
    kind: str
    message: str
    correlation_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        record = asdict(self)
        record["correlationId"] = record.pop("correlation_id") or ""
        return record


class AuditHook:
    """Appends :class:`AuditEvent` rows to the audit table."""

    def __init__(
        self,
        store: TabularStore,
        *,
        index: RowIndexCache | None = None,
        table: str = AUDIT_TABLE,
    ) -> None:
        self._store = store
        self._index = index
        self._table = table

    @property
    def table(self) -> str:
        return self._table

    def record(
        self,
        kind: AuditKind | str,
        message: str,
        context: dict[str, Any] | None = None,
        *,
        correlation_id: str | None = None,
    ) -> AuditEvent | None:
        """Append one audit event; never raises."""
        event = AuditEvent(
            id=new_record_id(),
            timestamp=utc_now_iso(),
            kind=kind.value if isinstance(kind, AuditKind) else str(kind),
            message=message,
            correlation_id=correlation_id,
            context=dict(context or {}),
        )
        try:
            headers = self._store.get_headers(self._table)
            row = encode_row(header_specs(headers, AUDIT_EVENT), event.to_record())
            self._store.append_row(self._table, row)
            if self._index is not None:
                self._index.invalidate(self._table)
        except Exception as exc:
            logger.error(
                "audit.write_failed",
                table=self._table,
                kind=event.kind,
                audit_message=message,
                correlation_id=correlation_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
        return event


__all__ = [
    "AuditKind",
    "AuditEvent",
    "AuditHook",
]
