"""
Engine wiring from settings.

``build_engine`` is the one place that decides which store, cache and
notification sink a process uses. Everything it builds can be passed in
instead, which is how tests get an isolated in-memory engine::

    engine = build_engine(store=InMemoryTabularStore(), sink=RecordingSink())
"""

from __future__ import annotations

from credspine.core.cache import CacheBackend, InMemoryCache, RedisCache
from credspine.core.errors import InvalidConfigError
from credspine.core.events.memory import InMemoryEventBus
from credspine.core.logging import get_logger
from credspine.core.settings import CredSpineSettings
from credspine.engine.audit import AuditHook
from credspine.engine.hooks import ProviderStatusNotifier
from credspine.engine.index import RowIndexCache
from credspine.engine.mutators import DataEngine
from credspine.engine.notifications import EventBusSink, NotificationSink
from credspine.engine.registry import TableRegistry
from credspine.engine.schemas import default_registry
from credspine.store.memory import InMemoryTabularStore
from credspine.store.protocols import TabularStore
from credspine.store.sqlite import SqliteTabularStore

logger = get_logger(__name__)


def build_store(settings: CredSpineSettings) -> TabularStore:
    if settings.store_backend == "memory":
        return InMemoryTabularStore(store_id=settings.store_id)
    if settings.store_backend == "sqlite":
        return SqliteTabularStore(settings.database_path, store_id=settings.store_id)
    raise InvalidConfigError("store_backend", settings.store_backend)


def build_cache(settings: CredSpineSettings) -> CacheBackend:
    if settings.cache_backend == "memory":
        return InMemoryCache(
            max_size=settings.cache_max_size,
            default_ttl_seconds=settings.index_ttl_seconds,
        )
    if settings.cache_backend == "redis":
        try:
            return RedisCache(settings.redis_url, default_ttl_seconds=settings.index_ttl_seconds)
        except ImportError as exc:
            raise InvalidConfigError("cache_backend", "redis", str(exc)) from exc
    raise InvalidConfigError("cache_backend", settings.cache_backend)


def build_engine(
    settings: CredSpineSettings | None = None,
    *,
    store: TabularStore | None = None,
    cache: CacheBackend | None = None,
    sink: NotificationSink | None = None,
    registry: TableRegistry | None = None,
) -> DataEngine:
    """Build a ready-to-use engine with every registry table present.

    Raises:
        InvalidConfigError: If the settings name an unknown or unavailable backend
    """
    settings = settings or CredSpineSettings()
    store = store if store is not None else build_store(settings)
    cache = cache if cache is not None else build_cache(settings)
    sink = sink if sink is not None else EventBusSink(InMemoryEventBus())

    index = RowIndexCache(store, cache, ttl_seconds=settings.index_ttl_seconds)
    engine = DataEngine(
        store,
        registry or default_registry(),
        index,
        audit=AuditHook(store, index=index),
        observers=[ProviderStatusNotifier(sink)],
    )
    engine.ensure_tables()

    logger.debug(
        "engine.built",
        store=repr(store),
        store_id=store.store_id,
        cache=type(cache).__name__,
        index_ttl_seconds=settings.index_ttl_seconds,
    )
    return engine


__all__ = [
    "build_cache",
    "build_engine",
    "build_store",
]
