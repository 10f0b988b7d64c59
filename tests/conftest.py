"""
Shared pytest fixtures for cred-spine tests.

Every engine built here runs on its own InMemoryTabularStore and
InMemoryCache, so tests never share rows or cached indexes.
"""

from __future__ import annotations

from typing import Any

import pytest
import structlog

from credspine.core.cache import InMemoryCache
from credspine.core.settings import CredSpineSettings
from credspine.engine.factory import build_engine
from credspine.engine.graph import EntityGraph
from credspine.engine.mutators import DataEngine
from credspine.ops.context import OperationContext
from credspine.store.memory import InMemoryTabularStore


class RecordingSink:
    """NotificationSink that keeps every publish for assertions."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.correlation_ids: list[str | None] = []

    def publish(
        self,
        event_type: str,
        payload: dict[str, Any],
        *,
        correlation_id: str | None = None,
    ) -> None:
        self.published.append((event_type, payload))
        self.correlation_ids.append(correlation_id)


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any ``configure_logging`` a test (or the CLI) performed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture()
def settings() -> CredSpineSettings:
    return CredSpineSettings(store_backend="memory", store_id="test-store")


@pytest.fixture()
def store() -> InMemoryTabularStore:
    return InMemoryTabularStore(store_id="test-store")


@pytest.fixture()
def cache() -> InMemoryCache:
    return InMemoryCache(max_size=1000, default_ttl_seconds=3600)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def engine(settings, store, cache, sink) -> DataEngine:
    """Fully wired engine (audit + status notifier) with all tables created."""
    return build_engine(settings, store=store, cache=cache, sink=sink)


@pytest.fixture()
def graph(engine) -> EntityGraph:
    return EntityGraph(engine)


@pytest.fixture()
def provider_id(engine) -> str:
    """Id of a freshly created provider."""
    return engine.create_record(
        "Providers",
        {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "npi": "1234567890",
            "credentialingStatus": "Pending",
            "isActive": True,
            "address": {"city": "Austin", "state": "TX"},
        },
    ).unwrap()


@pytest.fixture()
def ctx(engine) -> OperationContext:
    """OperationContext over the test engine."""
    return OperationContext(engine=engine, caller="test")


@pytest.fixture()
def dry_ctx(engine) -> OperationContext:
    """OperationContext with dry_run=True."""
    return OperationContext(engine=engine, caller="test", dry_run=True)

