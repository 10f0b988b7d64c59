"""
Request-scoped context for operations.

Every operation function receives an :class:`OperationContext` as its first
argument. The context carries the engine, caller identity, dry-run flag and
arbitrary metadata. Its ``request_id`` doubles as the correlation id stamped
on every audit event the request produces.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from credspine.engine.mutators import DataEngine


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        engine: The :class:`DataEngine` the operation runs against.
        request_id: Unique ID for this invocation (auto-generated).
        caller: Origin of the request: ``"cli"``, ``"api"`` or ``"sdk"``.
        user: Optional authenticated user identifier.
        dry_run: When ``True``, mutations return a preview without writing.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    engine: DataEngine
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    user: str | None = None
    dry_run: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
