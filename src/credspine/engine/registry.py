"""
Table Registry - static declaration of every entity's backing table.

Each logical entity type (Provider, Facility, CredentialingRequest, ...) is
declared once as an :class:`EntitySchema`: its table name, its ordered header
row, the fields required on create, and its :class:`ChildSchema` tree. The
registry is built at process start from a fixed list and never mutated.

Manifesto:
    The engine has no per-entity code. Everything it knows about providers or
    licenses comes from these declarations, so adding an entity is adding a
    schema, not adding a module.

    - **Header row is the contract:** column order and spelling live here
    - **Typed column mapping:** label→key is fixed at declaration time
    - **Tree-shaped relations:** children link to parents by a named column

Architecture:
    ::

        TableRegistry
        ├── by entity type  "Provider"  → EntitySchema(table="Providers")
        └── by table name   "Licenses"  → ChildSchema(parent_link="Provider ID")

        EntitySchema
        └── children: ChildSchema
                └── children: ChildSchema   (grandchildren, for cascade)

Examples:
    >>> from credspine.engine.schemas import PROVIDER
    >>> registry = TableRegistry([PROVIDER])
    >>> registry.lookup_entity("Provider").unwrap().table
    'Providers'
    >>> registry.lookup_entity("Nope").is_err()
    True

Tags:
    registry, schema, metadata, table, cred-spine
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import cached_property

from credspine.core.errors import SchemaNotFoundError
from credspine.core.result import Err, Ok, Result
from credspine.engine.columns import ID_LABEL, ColumnSpec, column_spec


@dataclass(frozen=True)
class TableSchema:
    """Headers and relations of one table.

    Attributes:
        table: Backing table name
        headers: Ordered header row
        required: Record keys that must be non-empty on create
        children: Child tables linked to this one
        key_overrides: ``(label, key)`` pairs replacing the derived key
        append_only: Rows are written by a dedicated writer and never
            created, changed or removed through the generic mutators
    """

    table: str
    headers: tuple[str, ...]
    required: tuple[str, ...] = ()
    children: tuple[ChildSchema, ...] = ()
    key_overrides: tuple[tuple[str, str], ...] = ()
    append_only: bool = False

    def __post_init__(self) -> None:
        if ID_LABEL not in self.headers:
            raise ValueError(f"Table {self.table} must declare an '{ID_LABEL}' column")

    @cached_property
    def columns(self) -> tuple[ColumnSpec, ...]:
        overrides = dict(self.key_overrides)
        return tuple(column_spec(label, overrides.get(label)) for label in self.headers)

    @cached_property
    def by_key(self) -> dict[str, ColumnSpec]:
        return {c.key: c for c in self.columns}

    @cached_property
    def by_label(self) -> dict[str, ColumnSpec]:
        return {c.label: c for c in self.columns}

    @property
    def keys(self) -> list[str]:
        return [c.key for c in self.columns]

    def spec_for(self, label: str) -> ColumnSpec:
        """Spec for a stored header label, declared or not."""
        return self.by_label.get(label) or column_spec(label)

    def walk(self) -> Iterator[TableSchema]:
        """Yield this schema and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class ChildSchema(TableSchema):
    """A table whose rows belong to a parent row.

    Attributes:
        parent_link: Header label of the column holding the parent's id
        field_name: Name the assembled child list is attached under
    """

    parent_link: str = ""
    field_name: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.parent_link not in self.headers:
            raise ValueError(
                f"Child table {self.table} does not declare its parent link '{self.parent_link}'"
            )

    @property
    def parent_link_key(self) -> str:
        return self.by_label[self.parent_link].key


@dataclass(frozen=True)
class EntitySchema(TableSchema):
    """A root entity type."""

    entity_type: str = ""


class TableRegistry:
    """Read-only lookup of entity and table schemas."""

    def __init__(self, entities: Iterable[EntitySchema]) -> None:
        self._entities: dict[str, EntitySchema] = {}
        self._tables: dict[str, TableSchema] = {}
        self._parents: dict[str, TableSchema] = {}

        for entity in entities:
            self._entities[entity.entity_type] = entity
            for schema in entity.walk():
                if schema.table in self._tables:
                    raise ValueError(f"Table declared twice: {schema.table}")
                self._tables[schema.table] = schema
                for child in schema.children:
                    self._parents[child.table] = schema

    def lookup_entity(self, entity_type: str) -> Result[EntitySchema]:
        schema = self._entities.get(entity_type)
        if schema is None:
            return Err(SchemaNotFoundError(entity_type))
        return Ok(schema)

    def lookup_table(self, table: str) -> Result[TableSchema]:
        schema = self._tables.get(table)
        if schema is None:
            return Err(SchemaNotFoundError(table).with_context(table=table))
        return Ok(schema)

    def parent_of(self, table: str) -> TableSchema | None:
        """Schema of the table that owns ``table``'s rows, if it is a child."""
        return self._parents.get(table)

    def entity_types(self) -> list[str]:
        return list(self._entities)

    def cascadable_types(self) -> list[str]:
        """Entity types whose rows may be cascade-deleted."""
        return [name for name, schema in self._entities.items() if not schema.append_only]

    def tables(self) -> list[TableSchema]:
        return list(self._tables.values())

    def __contains__(self, name: object) -> bool:
        return name in self._entities or name in self._tables

    def __repr__(self) -> str:
        return f"TableRegistry(entities={len(self._entities)}, tables={len(self._tables)})"


__all__ = [
    "TableSchema",
    "ChildSchema",
    "EntitySchema",
    "TableRegistry",
]
