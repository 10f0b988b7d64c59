"""
Ok / Err values for engine operations.

An *expected* failure (unknown schema, missing id, missing required field,
blank delete value) comes back as ``Err`` holding a
:class:`~credspine.core.errors.CredSpineError`. Raised exceptions mean the
backing store itself broke.

    >>> from credspine.core.errors import NotFoundError
    >>> match Err(NotFoundError("Providers", "p-1")):
    ...     case Ok(record):
    ...         print(record["id"])
    ...     case Err(error):
    ...         print(error.message)
    Record 'p-1' not found in Providers
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeAlias, TypeVar, Union

from credspine.core.errors import CredSpineError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U]]) -> Result[U]:
        return fn(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the held error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    # map/flat_map short-circuit: the error passes through untouched.
    def map(self, fn: Callable[[T], Any]) -> Err[Any]:
        return self

    def flat_map(self, fn: Callable[[T], Any]) -> Err[Any]:
        return self

    def to_dict(self) -> dict[str, Any]:
        err = self.error
        if isinstance(err, CredSpineError):
            detail = err.to_dict()
        else:
            detail = {"error_type": type(err).__name__, "message": str(err)}
        return {"ok": False, "error": detail}


Result: TypeAlias = Union[Ok[T], Err[T]]


__all__ = ["Err", "Ok", "Result"]
