"""
Entity Graph Assembler - root records with their declared children.

Two operations work over a root entity and the child tables its schema
declares:

    get_entity_with_children   root record + one list per child table
    delete_entity_cascade      root row, then every linked child row

Assembly goes exactly one level deep: grandchildren are not attached, and
any enrichment (resolving a facility id to a name, say) belongs to the
caller. Cascade delete walks the whole schema tree so no grandchild row is
orphaned by a successful cascade.

Manifesto:
    Cascade delete is best-effort, not transactional. The root delete is the
    only step whose failure fails the operation; every child table is a
    separate step that may fail on its own without stopping the rest. The
    :class:`CascadeReport` records every step so a caller can see exactly
    what completed and retry what did not.

Architecture:
    ::

        delete_entity_cascade("CredentialingRequest", r1)
          1. CredentialingRequests  delete_by_id(r1)          → root step
          2. RequestNotes           delete rows Request ID=r1
          3. RequestTasks           collect task ids, delete rows Request ID=r1
          4. TaskAttachments        delete rows Task ID in collected ids

Examples:
    >>> graph = EntityGraph(engine)
    >>> graph.get_entity_with_children("Provider", pid).unwrap()["licenses"]
    [{'id': 'l-1', 'providerId': 'p-1', 'licenseNumber': 'A123', ...}]
    >>> graph.delete_entity_cascade("Provider", pid).unwrap().success
    True

Tags:
    graph, cascade, parent-child, assembly, cred-spine
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from credspine.core.errors import CredSpineError, NotFoundError
from credspine.core.logging import get_logger
from credspine.core.result import Err, Ok, Result
from credspine.engine.codec import Record
from credspine.engine.columns import ID_KEY
from credspine.engine.mutators import DataEngine
from credspine.engine.registry import TableSchema

logger = get_logger(__name__)


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CascadeStep:
    """One table's part of a cascade delete."""

    table: str
    status: StepStatus
    removed: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class CascadeReport:
    """Ordered record of a cascade delete, root step first.

    ``success`` reflects the root delete only; child failures show up in
    :attr:`failed_tables`.
    """

    entity_type: str
    root_id: str
    steps: list[CascadeStep] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.steps) and self.steps[0].status is StepStatus.COMPLETED

    @property
    def completed_tables(self) -> list[str]:
        return [s.table for s in self.steps if s.status is StepStatus.COMPLETED]

    @property
    def failed_tables(self) -> list[str]:
        return [s.table for s in self.steps if s.status is StepStatus.FAILED]

    @property
    def message(self) -> str:
        if not self.success:
            return f"{self.entity_type} {self.root_id} was not deleted"
        if self.failed_tables:
            return (
                f"{self.entity_type} deleted; cleanup failed for "
                f"{', '.join(self.failed_tables)}"
            )
        return f"{self.entity_type} and related records deleted"

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "root_id": self.root_id,
            "success": self.success,
            "message": self.message,
            "steps": [s.to_dict() for s in self.steps],
        }


class EntityGraph:
    """Assembles and cascades over registry-declared parent/child trees."""

    def __init__(self, engine: DataEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> DataEngine:
        return self._engine

    def get_entity_with_children(self, entity_type: str, record_id: str) -> Result[Record]:
        """Root record with one list per declared child table attached."""
        lookup = self._engine.registry.lookup_entity(entity_type)
        if isinstance(lookup, Err):
            return lookup
        schema = lookup.value

        root = self._engine.get_record(schema.table, record_id)
        if isinstance(root, Err):
            return root
        entity = dict(root.value)

        for child in schema.children:
            rows = self._engine.list_records(child.table, {child.parent_link_key: record_id})
            if isinstance(rows, Err):
                return rows
            entity[child.field_name] = rows.value

        logger.debug(
            "graph.assembled",
            entity_type=entity_type,
            record_id=record_id,
            children={c.field_name: len(entity[c.field_name]) for c in schema.children},
        )
        return Ok(entity)

    def delete_entity_cascade(
        self,
        entity_type: str,
        record_id: str,
        *,
        correlation_id: str | None = None,
    ) -> Result[CascadeReport]:
        """Delete the root row, then every row linked to it down the tree."""
        lookup = self._engine.registry.lookup_entity(entity_type)
        if isinstance(lookup, Err):
            return lookup
        schema = lookup.value

        deleted = self._engine.delete_by_id(schema.table, record_id, correlation_id=correlation_id)
        if isinstance(deleted, Err):
            return deleted
        if not deleted.value.deleted:
            return Err(
                NotFoundError(schema.table, record_id).with_context(
                    operation="delete_entity_cascade", correlation_id=correlation_id
                )
            )

        report = CascadeReport(entity_type=entity_type, root_id=record_id)
        report.steps.append(CascadeStep(schema.table, StepStatus.COMPLETED, removed=1))
        self._cascade(schema, [record_id], report, correlation_id)

        logger.info(
            "cascade.completed",
            entity_type=entity_type,
            record_id=record_id,
            completed=report.completed_tables,
            failed=report.failed_tables,
        )
        return Ok(report)

    def _cascade(
        self,
        parent: TableSchema,
        parent_ids: list[str],
        report: CascadeReport,
        correlation_id: str | None,
    ) -> None:
        for child in parent.children:
            removed = 0
            child_ids: list[str] = []
            try:
                for parent_id in parent_ids:
                    if child.children:
                        rows = self._engine.list_records(
                            child.table, {child.parent_link_key: parent_id}
                        )
                        child_ids.extend(str(r[ID_KEY]) for r in rows.unwrap() if r.get(ID_KEY))
                    count = self._engine.delete_all_by_column_value(
                        child.table, child.parent_link, parent_id, correlation_id=correlation_id
                    )
                    removed += count.unwrap()
            except Exception as exc:
                reason = exc.message if isinstance(exc, CredSpineError) else str(exc)
                logger.warning(
                    "cascade.child_failed",
                    table=child.table,
                    parent_table=parent.table,
                    removed=removed,
                    error=reason,
                    error_type=type(exc).__name__,
                )
                report.steps.append(
                    CascadeStep(child.table, StepStatus.FAILED, removed=removed, error=reason)
                )
            else:
                report.steps.append(CascadeStep(child.table, StepStatus.COMPLETED, removed=removed))

            if child.children:
                self._cascade(child, child_ids, report, correlation_id)


__all__ = [
    "CascadeReport",
    "CascadeStep",
    "EntityGraph",
    "StepStatus",
]
