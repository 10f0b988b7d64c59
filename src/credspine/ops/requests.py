"""
Typed request objects for operations.

Each dataclass is the *input* contract for a single operation function.
Requests carry only transport-agnostic data: no raw HTTP bodies, no Typer
params.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Record operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class CreateRecordRequest:
    """Request for :func:`credspine.ops.records.create_record`."""

    table: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CreateChildRecordRequest:
    """Request for :func:`credspine.ops.records.create_child_record`.

    Attributes:
        table: Child table name (``Licenses``, ``RequestTasks``, ...).
        parent_id: Id of the owning parent row; must exist.
        fields: Field values keyed by record key.
    """

    table: str = ""
    parent_id: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateRecordRequest:
    """Request for :func:`credspine.ops.records.update_record` (patch)."""

    table: str = ""
    record_id: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReplaceRecordRequest:
    """Request for :func:`credspine.ops.records.replace_record`.

    Every field not supplied is cleared.
    """

    table: str = ""
    record_id: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DeleteRecordRequest:
    """Request for :func:`credspine.ops.records.delete_record`."""

    table: str = ""
    record_id: str = ""


@dataclass(frozen=True, slots=True)
class ListRecordsRequest:
    """Request for :func:`credspine.ops.records.list_records`.

    Attributes:
        table: Table to scan.
        filters: Equality filters on record keys.
        limit: Page size.
        offset: Page offset.
    """

    table: str = ""
    filters: dict[str, Any] = field(default_factory=dict)
    limit: int = 50
    offset: int = 0


# ------------------------------------------------------------------ #
# Entity graph operations
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class GetEntityRequest:
    """Request for :func:`credspine.ops.records.get_entity_details`."""

    entity_type: str = ""
    record_id: str = ""


@dataclass(frozen=True, slots=True)
class DeleteEntityRequest:
    """Request for :func:`credspine.ops.records.delete_entity`."""

    entity_type: str = ""
    record_id: str = ""
