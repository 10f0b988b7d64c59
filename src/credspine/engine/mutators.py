"""
Generic Mutators - the handful of primitives every entity is built on.

:class:`DataEngine` turns a table name plus registry metadata into typed
record operations over a :class:`~credspine.store.protocols.TabularStore`:

    create_record             append a row with an engine-generated id
    create_child_record       same, plus the parent-link column
    patch_by_id               write only the cells whose values changed
    replace_by_id             full replace; unspecified fields are cleared
    delete_by_id              remove one row
    delete_all_by_column_value  remove every matching row (cascade support)
    get_record / list_records  indexed lookup / full-scan read

Manifesto:
    - **Expected failures are values:** unknown table, missing id and missing
      required fields come back as ``Err``; nothing here raises for them
    - **Index hygiene:** every insert/delete invalidates that table's row
      index; in-place patches don't move rows and leave it alone
    - **No locking, no transactions:** concurrent patches of one row race and
      the last write wins (lost update). Writes touch only changed cells,
      so a race can lose a value but never misalign a row
    - **Audited:** every mutation attempt writes exactly one audit event
    - **Append-only tables:** the audit log refuses every generic write; only
      the audit hook appends to it

Architecture:
    ::

        caller ──► DataEngine.patch_by_id(table, id, fields)
                     │ registry.lookup_table(table)
                     │ index.get_or_build(table)  ──(miss)──► full scan
                     │ store.read_row → decode → diff
                     │ store.update_cells(changed cells only)
                     │ audit.record(Request | Error)
                     └ observers(PatchCommitted)  ──► e.g. status notifier

Examples:
    >>> rid = engine.create_record("Providers", {"firstName": "Ada", "lastName": "Lovelace"}).unwrap()
    >>> engine.patch_by_id("Providers", rid, {"credentialingStatus": "Active"}).unwrap().updated
    True
    >>> engine.patch_by_id("Providers", rid, {"credentialingStatus": "Active"}).unwrap().updated
    False

Tags:
    data-access, mutators, crud, cascade, row-index, cred-spine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from credspine.core.errors import (
    CredSpineError,
    NotFoundError,
    ValidationError,
)
from credspine.core.logging import get_logger
from credspine.core.result import Err, Ok, Result
from credspine.core.timestamps import new_record_id, utc_now_iso
from credspine.engine.audit import AuditHook, AuditKind
from credspine.engine.codec import (
    Record,
    canonical_value,
    decode,
    decode_row,
    encode_row,
    encode_value,
    header_drift,
    header_specs,
)
from credspine.engine.columns import CREATED_AT_KEY, ID_KEY, UPDATED_AT_KEY, ColumnSpec
from credspine.engine.hooks import PatchCommitted, PatchObserver
from credspine.engine.index import RowIndex, RowIndexCache
from credspine.engine.registry import ChildSchema, TableRegistry, TableSchema
from credspine.store.protocols import TabularStore

logger = get_logger(__name__)

_ENGINE_MANAGED = frozenset({ID_KEY, CREATED_AT_KEY, UPDATED_AT_KEY})


@dataclass(frozen=True)
class PatchOutcome:
    """Result of a patch or replace.

    Attributes:
        updated: ``False`` when every supplied value matched the stored one
        record_id: Identity of the target row
        changes: ``{key: (old, new)}`` for each field that was written
        record: The full record after the operation
    """

    updated: bool
    record_id: str
    changes: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    record: Record = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of a single-row delete."""

    deleted: bool
    record_id: str


class DataEngine:
    """Schema-driven record operations over one tabular store."""

    def __init__(
        self,
        store: TabularStore,
        registry: TableRegistry,
        index: RowIndexCache,
        *,
        audit: AuditHook | None = None,
        observers: Iterable[PatchObserver] = (),
    ) -> None:
        self._store = store
        self._registry = registry
        self._index = index
        self._audit = audit
        self._observers: list[PatchObserver] = list(observers)
        self._drift_reported: set[tuple[str, tuple[str, ...], tuple[str, ...]]] = set()

    @property
    def store(self) -> TabularStore:
        return self._store

    @property
    def registry(self) -> TableRegistry:
        return self._registry

    @property
    def index(self) -> RowIndexCache:
        return self._index

    def add_observer(self, observer: PatchObserver) -> None:
        """Register a callback invoked after every effective patch."""
        self._observers.append(observer)

    def ensure_tables(self) -> list[str]:
        """Create every registry table missing from the store."""
        created = []
        for schema in self._registry.tables():
            if not self._store.has_table(schema.table):
                self._store.create_table(schema.table, list(schema.headers))
                created.append(schema.table)
        if created:
            logger.info("engine.tables_created", tables=created)
        return created

    # ------------------------------------------------------------------ #
    # Index passthrough
    # ------------------------------------------------------------------ #

    def get_or_build_index(self, table: str) -> RowIndex:
        schema = self._registry.lookup_table(table).unwrap_or(None)
        return self._index.get_or_build(table, schema)

    def invalidate(self, table: str) -> None:
        self._index.invalidate(table)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_record(self, table: str, record_id: str) -> Result[Record]:
        """Indexed single-record read."""
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return lookup
        schema = lookup.value
        try:
            located = self._resolve(schema, self._specs(schema), record_id)
        except CredSpineError as exc:
            return Err(exc)
        if located is None:
            return Err(NotFoundError(table, record_id).with_context(operation="get_record"))
        return Ok(located[1])

    def list_records(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
    ) -> Result[list[Record]]:
        """Full-scan read with optional equality filters on record keys."""
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return lookup
        schema = lookup.value
        try:
            grid = self._store.get_grid(table)
        except CredSpineError as exc:
            return Err(exc)
        if grid:
            self._check_drift(schema, grid[0])
        records = decode(grid, schema)
        if filters:
            records = [r for r in records if _matches(r, filters)]
        return Ok(records)

    # ------------------------------------------------------------------ #
    # Create
    # ------------------------------------------------------------------ #

    def create_record(
        self,
        table: str,
        fields: Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> Result[str]:
        """Append a root-table row with a fresh id; returns the new id.

        Child tables go through :meth:`create_child_record`.
        """
        operation = "create_record"
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return self._fail(operation, table, None, lookup.error, correlation_id)
        schema = lookup.value
        if refused := _refuse_write(schema):
            return self._fail(operation, table, None, refused, correlation_id)
        if isinstance(schema, ChildSchema):
            error = ValidationError(
                f"{table} is a child table; use create_child_record with a parent id",
                field=schema.parent_link_key,
                constraint="child_table",
            )
            return self._fail(operation, table, None, error, correlation_id)

        missing = _missing_required(schema, fields)
        if missing:
            error = ValidationError(
                f"Missing required fields for {table}: {', '.join(missing)}",
                missing_fields=missing,
            )
            return self._fail(operation, table, None, error, correlation_id)

        return self._insert(schema, fields, operation, correlation_id)

    def create_child_record(
        self,
        table: str,
        parent_id: str,
        fields: Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> Result[str]:
        """Append a child row linked to ``parent_id``; returns the new id.

        The parent's existence is not checked here.
        """
        operation = "create_child_record"
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return self._fail(operation, table, None, lookup.error, correlation_id)
        schema = lookup.value
        if refused := _refuse_write(schema):
            return self._fail(operation, table, None, refused, correlation_id)

        if not isinstance(schema, ChildSchema):
            error = ValidationError(f"{table} is not a child table", constraint="child_table")
            return self._fail(operation, table, None, error, correlation_id)

        if _is_blank(parent_id):
            error = ValidationError(
                f"A parent id is required to create a row in {table}",
                field=schema.parent_link_key,
                constraint="required",
                missing_fields=[schema.parent_link_key],
            )
            return self._fail(operation, table, None, error, correlation_id)

        linked = {**fields, schema.parent_link_key: parent_id}
        missing = _missing_required(schema, linked)
        if missing:
            error = ValidationError(
                f"Missing required fields for {table}: {', '.join(missing)}",
                missing_fields=missing,
            )
            return self._fail(operation, table, None, error, correlation_id)

        return self._insert(schema, linked, operation, correlation_id)

    # ------------------------------------------------------------------ #
    # Update
    # ------------------------------------------------------------------ #

    def patch_by_id(
        self,
        table: str,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> Result[PatchOutcome]:
        """Write the supplied fields that differ from the stored row."""
        return self._update(table, record_id, fields, False, "patch_by_id", correlation_id)

    def replace_by_id(
        self,
        table: str,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> Result[PatchOutcome]:
        """Replace every non-managed field; fields not supplied are cleared."""
        return self._update(table, record_id, fields, True, "replace_by_id", correlation_id)

    # ------------------------------------------------------------------ #
    # Delete
    # ------------------------------------------------------------------ #

    def delete_by_id(
        self,
        table: str,
        record_id: str,
        *,
        correlation_id: str | None = None,
    ) -> Result[DeleteOutcome]:
        """Remove one row. A missing id is ``deleted=False``, not an error."""
        operation = "delete_by_id"
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return self._fail(operation, table, record_id, lookup.error, correlation_id)
        schema = lookup.value
        if refused := _refuse_write(schema):
            return self._fail(operation, table, record_id, refused, correlation_id)

        try:
            located = self._resolve(schema, self._specs(schema), record_id)
            if located is None:
                self._record(
                    AuditKind.REQUEST,
                    f"{operation} {table}: no matching row",
                    operation, table, record_id, correlation_id,
                    deleted=False,
                )
                return Ok(DeleteOutcome(deleted=False, record_id=record_id))

            self._store.delete_row(table, located[0])
            self._index.invalidate(table)
        except CredSpineError as exc:
            return self._fail(operation, table, record_id, exc, correlation_id)

        logger.info("mutator.record_deleted", table=table, record_id=record_id)
        self._record(
            AuditKind.REQUEST, f"{operation} {table}", operation, table, record_id,
            correlation_id, deleted=True,
        )
        return Ok(DeleteOutcome(deleted=True, record_id=record_id))

    def delete_all_by_column_value(
        self,
        table: str,
        column: str,
        value: Any,
        *,
        correlation_id: str | None = None,
    ) -> Result[int]:
        """Remove every row whose ``column`` (label or key) equals ``value``."""
        operation = "delete_all_by_column_value"
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return self._fail(operation, table, None, lookup.error, correlation_id)
        schema = lookup.value
        if refused := _refuse_write(schema):
            return self._fail(operation, table, None, refused, correlation_id)

        if _is_blank(value):
            error = ValidationError(
                f"Refusing to bulk-delete {table} rows with an empty {column}",
                field=column,
                constraint="non_empty",
            )
            return self._fail(operation, table, None, error, correlation_id)

        target = str(value)
        removed = 0
        try:
            grid = self._store.get_grid(table)
            headers = grid[0] if grid else []
            self._check_drift(schema, headers)
            specs = header_specs(headers, schema)
            position = next(
                (
                    i for i, spec in enumerate(specs)
                    if spec is not None and column in (spec.label, spec.key)
                ),
                None,
            )
            if position is None:
                logger.warning("mutator.column_missing", table=table, column=column)
            else:
                # Bottom-up so the row numbers still to visit don't shift.
                for offset in range(len(grid) - 1, 0, -1):
                    row = grid[offset]
                    cell = row[position] if position < len(row) else ""
                    if cell is not None and str(cell) == target:
                        self._store.delete_row(table, offset + 1)
                        removed += 1
            if removed:
                self._index.invalidate(table)
        except CredSpineError as exc:
            if removed:
                self._index.invalidate(table)
            return self._fail(
                operation, table, None, exc.with_context(removed=removed), correlation_id
            )

        logger.info(
            "mutator.rows_deleted", table=table, column=column, value=target, removed=removed
        )
        self._record(
            AuditKind.REQUEST, f"{operation} {table}", operation, table, None,
            correlation_id, column=column, value=target, removed=removed,
        )
        return Ok(removed)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _insert(
        self,
        schema: TableSchema,
        fields: Mapping[str, Any],
        operation: str,
        correlation_id: str | None,
    ) -> Result[str]:
        table = schema.table
        record_id = new_record_id()
        record: Record = {k: v for k, v in fields.items() if k not in _ENGINE_MANAGED}
        record[ID_KEY] = record_id
        now = utc_now_iso()
        for stamp in (CREATED_AT_KEY, UPDATED_AT_KEY):
            if stamp in schema.by_key:
                record[stamp] = now

        try:
            specs = self._specs(schema)
            stored_keys = {spec.key for spec in specs if spec is not None}
            ignored = sorted(k for k in record if k not in stored_keys)
            if ignored:
                logger.debug("mutator.fields_ignored", table=table, fields=ignored)
            self._store.append_row(table, encode_row(specs, record))
            self._index.invalidate(table)
        except CredSpineError as exc:
            return self._fail(operation, table, record_id, exc, correlation_id)

        logger.info("mutator.record_created", table=table, record_id=record_id)
        self._record(
            AuditKind.REQUEST, f"{operation} {table}", operation, table, record_id, correlation_id
        )
        return Ok(record_id)

    def _update(
        self,
        table: str,
        record_id: str,
        fields: Mapping[str, Any],
        replace: bool,
        operation: str,
        correlation_id: str | None,
    ) -> Result[PatchOutcome]:
        lookup = self._registry.lookup_table(table)
        if isinstance(lookup, Err):
            return self._fail(operation, table, record_id, lookup.error, correlation_id)
        schema = lookup.value
        if refused := _refuse_write(schema):
            return self._fail(operation, table, record_id, refused, correlation_id)

        try:
            specs = self._specs(schema)
            located = self._resolve(schema, specs, record_id)
            if located is None:
                return self._fail(
                    operation, table, record_id, NotFoundError(table, record_id), correlation_id
                )
            position, current = located

            columns: dict[str, tuple[int, ColumnSpec]] = {
                spec.key: (number, spec)
                for number, spec in enumerate(specs, start=1)
                if spec is not None
            }
            if replace:
                incoming = {k: fields.get(k) for k in columns if k not in _ENGINE_MANAGED}
            else:
                incoming = dict(fields)

            changes: dict[str, tuple[Any, Any]] = {}
            cells: dict[int, Any] = {}
            ignored = []
            for key, value in incoming.items():
                if key == ID_KEY:
                    continue
                if key not in columns:
                    ignored.append(key)
                    continue
                number, spec = columns[key]
                new = canonical_value(spec, value)
                old = current.get(key)
                if new != old:
                    changes[key] = (old, new)
                    cells[number] = encode_value(spec, value)
            if ignored:
                logger.debug("mutator.fields_ignored", table=table, fields=sorted(ignored))

            if not changes:
                self._record(
                    AuditKind.REQUEST, f"{operation} {table}: no changes", operation, table,
                    record_id, correlation_id, updated=False,
                )
                return Ok(PatchOutcome(updated=False, record_id=record_id, record=current))

            updated = dict(current)
            updated.update({key: new for key, (_, new) in changes.items()})
            if UPDATED_AT_KEY in columns and UPDATED_AT_KEY not in changes:
                number, _ = columns[UPDATED_AT_KEY]
                cells[number] = updated[UPDATED_AT_KEY] = utc_now_iso()

            self._store.update_cells(table, position, cells)
        except CredSpineError as exc:
            return self._fail(operation, table, record_id, exc, correlation_id)

        logger.info(
            "mutator.patch_applied",
            table=table,
            record_id=record_id,
            fields=sorted(changes),
            replace=replace,
        )
        self._record(
            AuditKind.REQUEST, f"{operation} {table}", operation, table, record_id,
            correlation_id, updated=True, changes=changes,
        )
        self._notify(
            PatchCommitted(
                table=table,
                record_id=record_id,
                changes=changes,
                record=updated,
                correlation_id=correlation_id,
            )
        )
        return Ok(PatchOutcome(updated=True, record_id=record_id, changes=changes, record=updated))

    def _specs(self, schema: TableSchema) -> list[ColumnSpec | None]:
        """Column specs for the table's *stored* header row."""
        headers = self._store.get_headers(schema.table)
        self._check_drift(schema, headers)
        return header_specs(headers, schema)

    def _resolve(
        self,
        schema: TableSchema,
        specs: list[ColumnSpec | None],
        record_id: str,
    ) -> tuple[int, Record] | None:
        """Find ``(row_number, record)`` for an id, healing a stale index once."""
        table = schema.table
        for attempt in range(2):
            position = self._index.get_or_build(table, schema).get(str(record_id))
            if position is not None:
                try:
                    record = decode_row(specs, self._store.read_row(table, position), table=table)
                except CredSpineError:
                    record = None
                if record is not None and str(record.get(ID_KEY)) == str(record_id):
                    return position, record
            elif attempt == 0:
                return None
            if attempt == 0:
                logger.info("row_index.stale", table=table, record_id=record_id)
                self._index.invalidate(table)
        return None

    def _check_drift(self, schema: TableSchema, headers: list[str]) -> None:
        drift = header_drift(schema.headers, headers)
        if not drift:
            return
        signature = (schema.table, drift.missing, drift.unexpected)
        if signature in self._drift_reported:
            return
        self._drift_reported.add(signature)
        logger.warning(
            "table.header_mismatch",
            table=schema.table,
            missing=list(drift.missing),
            unexpected=list(drift.unexpected),
        )

    def _notify(self, change: PatchCommitted) -> None:
        for observer in self._observers:
            try:
                observer(change)
            except Exception as exc:
                logger.warning(
                    "mutator.observer_failed",
                    table=change.table,
                    record_id=change.record_id,
                    observer=type(observer).__name__,
                    error=str(exc),
                )

    def _fail(
        self,
        operation: str,
        table: str,
        record_id: str | None,
        error: CredSpineError,
        correlation_id: str | None,
    ) -> Err:
        error.with_context(operation=operation, correlation_id=correlation_id)
        logger.warning(
            "mutator.failed",
            operation=operation,
            table=table,
            record_id=record_id,
            error=error.message,
            category=error.category.value,
        )
        self._record(
            AuditKind.ERROR, f"{operation} {table}: {error.message}", operation, table,
            record_id, correlation_id, error=error.to_dict(),
        )
        return Err(error)

    def _record(
        self,
        kind: AuditKind,
        message: str,
        operation: str,
        table: str,
        record_id: str | None,
        correlation_id: str | None,
        **extra: Any,
    ) -> None:
        if self._audit is None:
            return
        context = {"operation": operation, "table": table, "id": record_id, **extra}
        self._audit.record(kind, message, context, correlation_id=correlation_id)


def _refuse_write(schema: TableSchema) -> ValidationError | None:
    if not schema.append_only:
        return None
    return ValidationError(
        f"{schema.table} is append-only and cannot be modified", constraint="append_only"
    )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _missing_required(schema: TableSchema, fields: Mapping[str, Any]) -> list[str]:
    return [key for key in schema.required if _is_blank(fields.get(key))]


def _matches(record: Record, filters: Mapping[str, Any]) -> bool:
    return all(str(record.get(key)) == str(value) for key, value in filters.items())


__all__ = [
    "DataEngine",
    "DeleteOutcome",
    "PatchOutcome",
]
