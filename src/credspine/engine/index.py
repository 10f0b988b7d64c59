"""
Row Index Cache - id → row-number maps with a TTL.

The store has no secondary indexes, so the engine builds its own: one full
scan of a table yields ``{id: row_number}`` (row numbers are 1-based and
count the header, so the first data row is 2). The map is cached under a
typed :class:`~credspine.core.cache.IndexKey` ``(store_id, table)``.

Consistency:
    - ``invalidate`` after every insert or delete made through the engine
    - in-place cell updates leave positions alone and need no invalidation
    - changes made outside this process are invisible until the TTL expires
    - concurrent rebuilds on a miss both scan and both write the same answer;
      the only cost is the wasted scan

Examples:
    >>> index = RowIndexCache(store, InMemoryCache(), ttl_seconds=3600)
    >>> index.get_or_build("Providers")
    {'p-1': 2, 'p-2': 3}
    >>> index.invalidate("Providers")

Tags:
    index, cache, ttl, row-position, cred-spine
"""

from __future__ import annotations

from credspine.core.cache import CacheBackend, IndexKey
from credspine.core.logging import get_logger
from credspine.engine.codec import header_specs
from credspine.engine.columns import ID_KEY
from credspine.engine.registry import TableSchema
from credspine.store.protocols import FIRST_DATA_ROW, TabularStore

logger = get_logger(__name__)

DEFAULT_INDEX_TTL_SECONDS = 3600

RowIndex = dict[str, int]


class RowIndexCache:
    """Builds and caches per-table row indexes for one store."""

    def __init__(
        self,
        store: TabularStore,
        cache: CacheBackend,
        *,
        ttl_seconds: int = DEFAULT_INDEX_TTL_SECONDS,
    ) -> None:
        self._store = store
        self._cache = cache
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def key(self, table: str) -> IndexKey:
        return IndexKey(store_id=self._store.store_id, table=table)

    def get_or_build(self, table: str, schema: TableSchema | None = None) -> RowIndex:
        """Return the cached index for ``table``, scanning the table on a miss."""
        key = self.key(table)
        cached = self._cache.get(key.render())
        if cached is not None:
            return cached

        index = self.build(table, schema)
        self._cache.set(key.render(), index, ttl_seconds=self._ttl)
        return index

    def build(self, table: str, schema: TableSchema | None = None) -> RowIndex:
        """Full scan of ``table`` into a fresh ``{id: row_number}`` map."""
        grid = self._store.get_grid(table)
        specs = header_specs(grid[0], schema) if grid else []
        id_position = next(
            (i for i, spec in enumerate(specs) if spec is not None and spec.key == ID_KEY),
            None,
        )
        rows = grid[1:]
        if id_position is None:
            logger.warning("row_index.identity_column_missing", table=table)
            return {}

        index: RowIndex = {}
        for offset, row in enumerate(rows):
            record_id = row[id_position] if id_position < len(row) else None
            if record_id in (None, ""):
                continue
            # First occurrence wins; ids are unique by construction.
            index.setdefault(str(record_id), offset + FIRST_DATA_ROW)

        logger.debug("row_index.rebuilt", table=table, rows=len(rows), indexed=len(index))
        return index

    def invalidate(self, table: str) -> None:
        """Drop the cached index for ``table`` unconditionally."""
        self._cache.delete(self.key(table).render())
        logger.debug("row_index.invalidated", table=table)


__all__ = [
    "DEFAULT_INDEX_TTL_SECONDS",
    "RowIndex",
    "RowIndexCache",
]
