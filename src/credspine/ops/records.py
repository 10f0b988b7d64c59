"""
Record operations.

Request-facing wrappers over :class:`~credspine.engine.mutators.DataEngine`
and :class:`~credspine.engine.graph.EntityGraph`. Each function takes an
:class:`OperationContext` and a typed request, and returns an
:class:`OperationResult`. Nothing here raises: engine errors become failed
envelopes via :meth:`OperationResult.from_error`, and unexpected exceptions
are logged with their traceback and reported as ``INTERNAL``.
"""

from __future__ import annotations

from typing import Any

from credspine.core.logging import LogContext, get_logger
from credspine.core.result import Err
from credspine.engine.graph import EntityGraph
from credspine.ops.context import OperationContext
from credspine.ops.requests import (
    CreateChildRecordRequest,
    CreateRecordRequest,
    DeleteEntityRequest,
    DeleteRecordRequest,
    GetEntityRequest,
    ListRecordsRequest,
    ReplaceRecordRequest,
    UpdateRecordRequest,
)
from credspine.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)


def _log_context(ctx: OperationContext) -> LogContext:
    return LogContext(request_id=ctx.request_id, caller=ctx.caller, user=ctx.user)


def _internal(action: str, exc: Exception, elapsed_ms: float) -> OperationResult[Any]:
    logger.exception("op_failed", action=action, error=str(exc))
    return OperationResult.fail("INTERNAL", f"Failed to {action}: {exc}", elapsed_ms=elapsed_ms)


# ------------------------------------------------------------------ #
# Tables
# ------------------------------------------------------------------ #


def initialize_tables(ctx: OperationContext) -> OperationResult[dict]:
    """Create every registry table missing from the store."""
    timer = start_timer()

    if ctx.dry_run:
        missing = [
            s.table for s in ctx.engine.registry.tables()
            if not ctx.engine.store.has_table(s.table)
        ]
        return OperationResult.ok(
            {"dry_run": True, "would_create": missing},
            message=f"Would create {len(missing)} tables",
            elapsed_ms=timer.elapsed_ms,
        )

    with _log_context(ctx):
        try:
            created = ctx.engine.ensure_tables()
        except Exception as exc:
            return _internal("initialize tables", exc, timer.elapsed_ms)

    return OperationResult.ok(
        {"created": created},
        message=f"Created {len(created)} tables",
        elapsed_ms=timer.elapsed_ms,
    )


def list_tables(ctx: OperationContext) -> OperationResult[list[dict]]:
    """Describe every registry table and its current row count."""
    timer = start_timer()

    try:
        registry = ctx.engine.registry
        store = ctx.engine.store
        tables = []
        for schema in registry.tables():
            parent = registry.parent_of(schema.table)
            exists = store.has_table(schema.table)
            tables.append(
                {
                    "table": schema.table,
                    "parent": parent.table if parent is not None else None,
                    "columns": len(schema.headers),
                    "rows": len(store.get_grid(schema.table)) - 1 if exists else None,
                }
            )
    except Exception as exc:
        return _internal("list tables", exc, timer.elapsed_ms)

    return OperationResult.ok(tables, message=f"{len(tables)} tables", elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Reads
# ------------------------------------------------------------------ #


def get_record(ctx: OperationContext, table: str, record_id: str) -> OperationResult[dict]:
    """Get a single record by id."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            result = ctx.engine.get_record(table, record_id)
        except Exception as exc:
            return _internal("get record", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(result.value, elapsed_ms=timer.elapsed_ms)


def list_records(ctx: OperationContext, request: ListRecordsRequest) -> PagedResult[dict]:
    """List a table's records with optional equality filters."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            result = ctx.engine.list_records(request.table, request.filters or None)
        except Exception as exc:
            logger.exception("op_failed", action="list records", error=str(exc))
            return PagedResult.fail(
                "INTERNAL", f"Failed to list records: {exc}", elapsed_ms=timer.elapsed_ms
            )

    if isinstance(result, Err):
        return PagedResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)

    records = result.value
    page = records[request.offset : request.offset + request.limit]
    return PagedResult.from_items(
        page,
        total=len(records),
        limit=request.limit,
        offset=request.offset,
        message=f"{len(records)} records",
        elapsed_ms=timer.elapsed_ms,
    )


def get_entity_details(ctx: OperationContext, request: GetEntityRequest) -> OperationResult[dict]:
    """Root record with its declared child lists attached."""
    timer = start_timer()

    with _log_context(ctx):
        try:
            result = EntityGraph(ctx.engine).get_entity_with_children(
                request.entity_type, request.record_id
            )
        except Exception as exc:
            return _internal("load entity", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(result.value, elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Mutations
# ------------------------------------------------------------------ #


def create_record(ctx: OperationContext, request: CreateRecordRequest) -> OperationResult[dict]:
    """Create a root record; returns its new id."""
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "would_create": request.table},
            message=f"Would create a record in {request.table}",
            elapsed_ms=timer.elapsed_ms,
        )

    with _log_context(ctx):
        try:
            result = ctx.engine.create_record(
                request.table, request.fields, correlation_id=ctx.request_id
            )
        except Exception as exc:
            return _internal("create record", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(
        {"id": result.value},
        message=f"Created {request.table} record",
        elapsed_ms=timer.elapsed_ms,
    )


def create_child_record(
    ctx: OperationContext,
    request: CreateChildRecordRequest,
) -> OperationResult[dict]:
    """Create a child record after checking its parent exists."""
    timer = start_timer()
    engine = ctx.engine

    with _log_context(ctx):
        try:
            parent = engine.registry.parent_of(request.table)
            if parent is not None and request.parent_id:
                found = engine.get_record(parent.table, request.parent_id)
                if isinstance(found, Err):
                    return OperationResult.from_error(found.error, elapsed_ms=timer.elapsed_ms)

            if ctx.dry_run:
                return OperationResult.ok(
                    {"dry_run": True, "would_create": request.table},
                    message=f"Would create a record in {request.table}",
                    elapsed_ms=timer.elapsed_ms,
                )

            result = engine.create_child_record(
                request.table,
                request.parent_id,
                request.fields,
                correlation_id=ctx.request_id,
            )
        except Exception as exc:
            return _internal("create child record", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    return OperationResult.ok(
        {"id": result.value},
        message=f"Created {request.table} record",
        elapsed_ms=timer.elapsed_ms,
    )


def update_record(ctx: OperationContext, request: UpdateRecordRequest) -> OperationResult[dict]:
    """Patch a record: only the supplied fields that differ are written."""
    return _update(ctx, request.table, request.record_id, request.fields, replace=False)


def replace_record(ctx: OperationContext, request: ReplaceRecordRequest) -> OperationResult[dict]:
    """Replace a record: fields not supplied are cleared."""
    return _update(ctx, request.table, request.record_id, request.fields, replace=True)


def _update(
    ctx: OperationContext,
    table: str,
    record_id: str,
    fields: dict[str, Any],
    *,
    replace: bool,
) -> OperationResult[dict]:
    timer = start_timer()
    engine = ctx.engine

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "would_update": record_id, "fields": sorted(fields)},
            message=f"Would update {table} record",
            elapsed_ms=timer.elapsed_ms,
        )

    with _log_context(ctx):
        try:
            mutate = engine.replace_by_id if replace else engine.patch_by_id
            result = mutate(table, record_id, fields, correlation_id=ctx.request_id)
        except Exception as exc:
            return _internal("update record", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    outcome = result.value
    return OperationResult.ok(
        {
            "id": outcome.record_id,
            "updated": outcome.updated,
            "changes": {k: list(v) for k, v in outcome.changes.items()},
            "record": outcome.record,
        },
        message=f"Updated {table} record" if outcome.updated else "No changes",
        elapsed_ms=timer.elapsed_ms,
    )


def delete_record(ctx: OperationContext, request: DeleteRecordRequest) -> OperationResult[dict]:
    """Delete a single row. A missing id succeeds with ``deleted=False``."""
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "would_delete": request.record_id},
            message=f"Would delete {request.table} record",
            elapsed_ms=timer.elapsed_ms,
        )

    with _log_context(ctx):
        try:
            result = ctx.engine.delete_by_id(
                request.table, request.record_id, correlation_id=ctx.request_id
            )
        except Exception as exc:
            return _internal("delete record", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    outcome = result.value
    return OperationResult.ok(
        {"id": outcome.record_id, "deleted": outcome.deleted},
        message="Deleted" if outcome.deleted else "Nothing to delete",
        elapsed_ms=timer.elapsed_ms,
    )


def delete_entity(ctx: OperationContext, request: DeleteEntityRequest) -> OperationResult[dict]:
    """Cascade-delete a root entity and every linked child row."""
    timer = start_timer()

    if ctx.dry_run:
        return OperationResult.ok(
            {"dry_run": True, "would_delete": request.record_id},
            message=f"Would delete {request.entity_type} and related records",
            elapsed_ms=timer.elapsed_ms,
        )

    with _log_context(ctx):
        try:
            result = EntityGraph(ctx.engine).delete_entity_cascade(
                request.entity_type, request.record_id, correlation_id=ctx.request_id
            )
        except Exception as exc:
            return _internal("delete entity", exc, timer.elapsed_ms)

    if isinstance(result, Err):
        return OperationResult.from_error(result.error, elapsed_ms=timer.elapsed_ms)
    report = result.value
    return OperationResult.ok(
        report.to_dict(),
        message=report.message,
        warnings=[f"Cleanup failed for {t}" for t in report.failed_tables],
        elapsed_ms=timer.elapsed_ms,
    )


__all__ = [
    "create_child_record",
    "create_record",
    "delete_entity",
    "delete_record",
    "get_entity_details",
    "get_record",
    "initialize_tables",
    "list_records",
    "list_tables",
    "replace_record",
    "update_record",
]
