"""
Operation result envelope.

Every function in :mod:`credspine.ops` returns an :class:`OperationResult`:
``{success, message, data?, error?}`` plus warnings and timing. Engine code
composes with ``credspine.core.result`` (``Ok``/``Err``); this envelope is
what the CLI (and any other front end) renders, so a caller can decide
pass/fail from ``success`` and show ``message`` without knowing the engine's
error classes.

Error codes:

    SCHEMA_NOT_FOUND   unknown entity type or table
    NOT_FOUND          id absent from the table
    VALIDATION_FAILED  missing required field / parent id / blank value
    STORAGE_ERROR      the backing store refused the operation
    INTERNAL           anything else
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from credspine.core.errors import (
    CredSpineError,
    ErrorCategory,
    NotFoundError,
    SchemaNotFoundError,
    StorageError,
    ValidationError,
)

T = TypeVar("T")

_ERROR_CODES: tuple[tuple[type[CredSpineError], str], ...] = (
    (SchemaNotFoundError, "SCHEMA_NOT_FOUND"),
    (NotFoundError, "NOT_FOUND"),
    (ValidationError, "VALIDATION_FAILED"),
    (StorageError, "STORAGE_ERROR"),
)


def error_code(error: Exception) -> str:
    """Envelope code for an engine error."""
    return next((code for kind, code in _ERROR_CODES if isinstance(error, kind)), "INTERNAL")


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    Attributes:
        code: One of the codes listed in this module's docstring.
        message: Human-readable description.
        category: :class:`ErrorCategory` of the underlying engine error.
        details: Error context (table, record_id, operation, missing_fields).
        retryable: Whether repeating the same request could succeed.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            data["details"] = self.details
        return data


@dataclass
class OperationResult(Generic[T]):
    """Envelope returned by every operation function.

    Build it with :meth:`ok`, :meth:`fail` or :meth:`from_error`.
    """

    success: bool
    message: str = ""
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        message: str = "OK",
        warnings: list[str] | None = None,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        return cls(
            success=True,
            message=message,
            data=data,
            warnings=list(warnings or []),
            elapsed_ms=elapsed_ms,
            metadata=dict(metadata or {}),
        )

    @classmethod
    def fail(
        cls,
        code: str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        error = OperationError(
            code=code,
            message=message,
            category=category,
            details=dict(details or {}),
            retryable=retryable,
        )
        return cls(success=False, message=message, error=error, elapsed_ms=elapsed_ms)

    @classmethod
    def from_error(cls, error: Exception, *, elapsed_ms: float = 0.0) -> OperationResult[T]:
        """Failed envelope for an ``Err`` coming back from the engine."""
        if not isinstance(error, CredSpineError):
            return cls.fail("INTERNAL", str(error), elapsed_ms=elapsed_ms)
        details = error.context.to_dict()
        if isinstance(error, ValidationError) and error.missing_fields:
            details["missing_fields"] = list(error.missing_fields)
        return cls.fail(
            error_code(error),
            error.message,
            category=error.category,
            details=details,
            retryable=error.retryable,
            elapsed_ms=elapsed_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form, as printed by ``--json``."""
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error.to_dict()
        if self.warnings:
            out["warnings"] = list(self.warnings)
        if self.elapsed_ms:
            out["elapsed_ms"] = round(self.elapsed_ms, 2)
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out


@dataclass
class PagedResult(OperationResult[list[T]]):
    """One page of records plus the size of the full (filtered) table."""

    total: int = 0
    limit: int = 50
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    @classmethod
    def from_items(
        cls,
        items: list[T],
        total: int,
        *,
        limit: int = 50,
        offset: int = 0,
        message: str = "OK",
        elapsed_ms: float = 0.0,
    ) -> PagedResult[T]:
        return cls(
            success=True,
            message=message,
            data=items,
            total=total,
            limit=limit,
            offset=offset,
            elapsed_ms=elapsed_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out.update(total=self.total, limit=self.limit, offset=self.offset, has_more=self.has_more)
        return out


class _Timer:
    __slots__ = ("_started",)

    def __init__(self) -> None:
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000


def start_timer() -> _Timer:
    """Stopwatch for ``elapsed_ms``; read ``timer.elapsed_ms`` when done."""
    return _Timer()


__all__ = [
    "OperationError",
    "OperationResult",
    "PagedResult",
    "error_code",
    "start_timer",
]
