"""Settings for cred-spine.

Configuration is explicit, validated, and environment-driven. Every field can
be set through a ``CREDSPINE_``-prefixed environment variable or a ``.env``
file; unknown variables are ignored.

Examples:
    >>> from credspine.core.settings import CredSpineSettings
    >>> settings = CredSpineSettings(store_backend="memory", index_ttl_seconds=60)
    >>> settings.index_ttl_seconds
    60

Fields
──────
store_id           : Identity of the backing store (first half of the index cache key)
store_backend      : ``memory`` or ``sqlite``
database_path      : SQLite file for the ``sqlite`` backend
index_ttl_seconds  : Row index cache TTL (1 hour by default)
cache_backend      : ``memory`` or ``redis``
redis_url          : Redis URL for the ``redis`` cache backend
cache_max_size     : LRU bound for the in-memory cache
log_level          : Structlog log level
json_logs          : Force JSON (True), console (False) or auto (None)
service_name       : ``service.name`` stamped on every log line
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CredSpineSettings(BaseSettings):
    """Settings for the data-access engine and its collaborators."""

    model_config = SettingsConfigDict(
        env_prefix="CREDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Store ────────────────────────────────────────────────────
    store_id: str = "default"
    store_backend: Literal["memory", "sqlite"] = "sqlite"
    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".credspine" / "credspine.db",
        description="SQLite file backing the tabular store",
    )

    # ── Row index cache ──────────────────────────────────────────
    index_ttl_seconds: int = Field(default=3600, ge=0)
    cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cache_max_size: int = Field(default=10_000, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None
    service_name: str = "cred-spine"


__all__ = ["CredSpineSettings"]
