"""
Data-access engine.

Schema-driven record operations over a tabular store. Every credentialing
entity (providers, facilities, licenses, webhooks, ...) goes through the
same small set of primitives, configured by registry metadata rather than
per-entity code.

Modules
-------
columns        Column label conventions and ColumnSpec
registry       TableSchema / ChildSchema / EntitySchema / TableRegistry
schemas        The credentialing entity declarations
codec          Row Codec: grid <-> records
index          Row Index Cache: id -> row number, with TTL
mutators       DataEngine: create / patch / replace / delete primitives
graph          EntityGraph: assemble children, cascade delete
audit          AuditHook: one audit row per mutation attempt
hooks          Post-commit observers (provider status notifier)
notifications  NotificationSink implementations
factory        build_engine from CredSpineSettings
"""

from credspine.engine.audit import AuditEvent, AuditHook, AuditKind
from credspine.engine.codec import Record, decode, encode
from credspine.engine.factory import build_engine
from credspine.engine.graph import CascadeReport, CascadeStep, EntityGraph
from credspine.engine.hooks import PatchCommitted, ProviderStatusNotifier
from credspine.engine.index import RowIndexCache
from credspine.engine.mutators import DataEngine, DeleteOutcome, PatchOutcome
from credspine.engine.notifications import EventBusSink, NotificationSink, NullSink
from credspine.engine.registry import ChildSchema, EntitySchema, TableRegistry, TableSchema
from credspine.engine.schemas import default_registry

__all__ = [
    "AuditEvent",
    "AuditHook",
    "AuditKind",
    "CascadeReport",
    "CascadeStep",
    "ChildSchema",
    "DataEngine",
    "DeleteOutcome",
    "EntityGraph",
    "EntitySchema",
    "EventBusSink",
    "NotificationSink",
    "NullSink",
    "PatchCommitted",
    "PatchOutcome",
    "ProviderStatusNotifier",
    "Record",
    "RowIndexCache",
    "TableRegistry",
    "TableSchema",
    "build_engine",
    "decode",
    "default_registry",
    "encode",
]
