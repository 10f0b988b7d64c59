"""
Operations layer: request-facing record operations for cred-spine.

The ops package wraps the data-access engine with consistent patterns:

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions are transport-agnostic (no HTTP, no CLI knowledge)
- Mutations support ``dry_run`` for safe previews

Usage::

    from credspine.engine import build_engine
    from credspine.ops import OperationContext
    from credspine.ops.records import create_record
    from credspine.ops.requests import CreateRecordRequest

    ctx = OperationContext(engine=build_engine())
    result = create_record(ctx, CreateRecordRequest("Providers", {"firstName": "Ada", "lastName": "L"}))
    assert result.success
"""

from credspine.ops.context import OperationContext
from credspine.ops.result import OperationError, OperationResult, PagedResult, error_code

__all__ = [
    "OperationContext",
    "OperationError",
    "OperationResult",
    "PagedResult",
    "error_code",
]
