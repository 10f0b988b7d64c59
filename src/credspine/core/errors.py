"""
Typed errors for the data-access engine.

Expected conditions (an unknown schema, a missing id, a record without its
required fields) are not raised by the engine. They are returned inside
:class:`~credspine.core.result.Err` so a request handler can render them
without try/except. Only store faults surface as raised exceptions.

Hierarchy::

    CredSpineError                 INTERNAL
    ├── SchemaNotFoundError        SCHEMA
    ├── NotFoundError              NOT_FOUND
    ├── ValidationError            VALIDATION
    ├── DecodeError                PARSE     (logged where it happens)
    ├── StorageError               STORAGE
    │   └── TableMissingError
    └── ConfigError                CONFIG
        └── InvalidConfigError

``retryable`` is informational. Nothing in the engine retries.

    >>> NotFoundError("Providers", "abc-123").to_dict()["context"]
    {'table': 'Providers', 'record_id': 'abc-123'}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    SCHEMA = "SCHEMA"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    PARSE = "PARSE"
    STORAGE = "STORAGE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


_CONTEXT_FIELDS = ("table", "record_id", "operation", "correlation_id")


@dataclass
class ErrorContext:
    """Where an error happened.

    Unknown keys passed to :meth:`CredSpineError.with_context` land in
    ``metadata`` and are flattened into :meth:`to_dict`.
    """

    table: str | None = None
    record_id: str | None = None
    operation: str | None = None
    correlation_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out = {name: getattr(self, name) for name in _CONTEXT_FIELDS}
        out = {k: v for k, v in out.items() if v is not None}
        out.update(self.metadata)
        return out


class CredSpineError(Exception):
    """Root of the hierarchy.

    Subclasses override ``default_category`` / ``default_retryable``; a
    call site passes ``category`` or ``retryable`` only to deviate.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category if category is not None else self.default_category
        self.retryable = self.default_retryable if retryable is None else retryable
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **values: Any) -> CredSpineError:
        """Fill context fields in place and return ``self`` for chaining."""
        for name, value in values.items():
            if name in _CONTEXT_FIELDS:
                setattr(self.context, name, value)
            else:
                self.context.metadata[name] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if context := self.context.to_dict():
            data["context"] = context
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class SchemaNotFoundError(CredSpineError):
    """Entity type or table name the registry does not declare."""

    default_category = ErrorCategory.SCHEMA

    def __init__(self, name: str, **kwargs: Any):
        self.name = name
        super().__init__(f"Schema not found: {name}", **kwargs)


class NotFoundError(CredSpineError):
    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, table: str, record_id: str, **kwargs: Any):
        super().__init__(f"Record '{record_id}' not found in {table}", **kwargs)
        self.context.table = table
        self.context.record_id = record_id


class ValidationError(CredSpineError):
    """Input the engine refuses to write.

    ``missing_fields`` lists the required keys absent from a create.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        constraint: str | None = None,
        missing_fields: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.constraint = constraint
        self.missing_fields = list(missing_fields or ())

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        extra = {"field": self.field, "constraint": self.constraint}
        data.update({k: v for k, v in extra.items() if v})
        if self.missing_fields:
            data["missing_fields"] = list(self.missing_fields)
        return data


class DecodeError(CredSpineError):
    """A cell that does not parse, e.g. malformed JSON."""

    default_category = ErrorCategory.PARSE

    def __init__(self, message: str, *, column: str | None = None, raw: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.column = column
        self.raw = raw


class StorageError(CredSpineError):
    default_category = ErrorCategory.STORAGE


class TableMissingError(StorageError):
    def __init__(self, table: str, **kwargs: Any):
        super().__init__(f"Table does not exist in store: {table}", **kwargs)
        self.context.table = table


class ConfigError(CredSpineError):
    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """A setting holds a value the factory cannot act on."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


__all__ = [
    "ConfigError",
    "CredSpineError",
    "DecodeError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "NotFoundError",
    "SchemaNotFoundError",
    "StorageError",
    "TableMissingError",
    "ValidationError",
]
