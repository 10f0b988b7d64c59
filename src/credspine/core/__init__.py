"""cred-spine core -- shared primitives for the data-access engine.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (CredSpineError, NotFoundError)
        result.py          Result[T] envelope (Ok / Err)
        timestamps.py      Record ids + UTC helpers

    Layer 2 -- Infrastructure
        cache.py           CacheBackend protocol, InMemoryCache, RedisCache, IndexKey
        events/            Event model, EventBus protocol, InMemoryEventBus
        logging.py         structlog configuration + get_logger
        settings.py        CredSpineSettings (pydantic-settings)
"""

from credspine.core.errors import (
    CredSpineError,
    DecodeError,
    ErrorCategory,
    NotFoundError,
    SchemaNotFoundError,
    StorageError,
    ValidationError,
)
from credspine.core.result import Err, Ok, Result

__all__ = [
    "CredSpineError",
    "DecodeError",
    "ErrorCategory",
    "NotFoundError",
    "SchemaNotFoundError",
    "StorageError",
    "ValidationError",
    "Err",
    "Ok",
    "Result",
]
