"""Search service: index lifecycle plus the query surface used by the UI layer."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from projiki_search.errors import IndexRebuildError, MalformedRecordError
from projiki_search.history import SearchHistory
from projiki_search.index import (
    IndexStats,
    IndexStore,
    Indexer,
    Item,
    MemoryIndexStore,
    Project,
    QueryEngine,
    SearchFilters,
    SearchOptions,
    SearchResults,
    empty_results,
    get_facets,
    get_suggestions,
)
from projiki_search.index.models import ITEM_TYPES
from projiki_search.index.query import group_for
from projiki_search.records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_STALE_AFTER = 30
REBUILD_FAILED_WARNING = "Search index rebuild failed, showing possibly stale results"


class SearchService:
    """
    Owns the search index for one record store.

    The index is rebuilt into a fresh store and swapped in only once the
    rebuild succeeds, so queries always see either the previous index or the
    complete new one.

    Concurrency:
        Rebuilds and incremental upserts are serialized by an asyncio lock.
        Removals are synchronous; removals that land while a rebuild is
        running are re-applied to the new store before it is swapped in.
    """

    def __init__(
        self,
        records: RecordStore,
        stale_after: float = DEFAULT_STALE_AFTER,
        history: SearchHistory | None = None,
        store_factory: Callable[[], IndexStore] = MemoryIndexStore,
    ):
        """
        Initialize the service.

        Args:
            records: Record store the index is built from
            stale_after: Seconds after a rebuild before a query rebuilds first
            history: Search history; an in-memory one is used if omitted
            store_factory: Creates empty index stores
        """
        if stale_after <= 0:
            raise ValueError(f"Stale threshold must be positive, got {stale_after}")

        self.records = records
        self.stale_after = stale_after
        self.history = history if history is not None else SearchHistory()
        self._store_factory = store_factory
        self._store: IndexStore = store_factory()
        self._rebuild_lock = asyncio.Lock()
        self._rebuilding = False
        self._pending_removals: set[str] = set()

    @property
    def index(self) -> IndexStore:
        """The store currently answering queries."""
        return self._store

    @property
    def last_rebuild(self) -> datetime | None:
        return self._store.built_at

    async def open(self) -> None:
        """Build the initial index."""
        await self.rebuild_index()

    async def close(self) -> None:
        """Drop the index."""
        async with self._rebuild_lock:
            self._store = self._store_factory()
        logger.debug("Search service closed")

    async def __aenter__(self) -> "SearchService":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # Index maintenance

    def is_stale(self, now: datetime | None = None) -> bool:
        """Whether the index is missing or older than the stale threshold."""
        built_at = self._store.built_at
        if built_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return (now - built_at).total_seconds() > self.stale_after

    async def rebuild_index(self) -> int:
        """
        Rebuild the whole index from the record store.

        Returns:
            Number of documents indexed.

        Raises:
            RecordReadError: If the record store fails. The previous index
                stays in place.
        """
        async with self._rebuild_lock:
            logger.debug("Starting search index rebuild")
            self._rebuilding = True
            self._pending_removals.clear()
            new_store = self._store_factory()
            try:
                count = await Indexer(new_store).build(self.records)
            except Exception:
                logger.exception("Failed to rebuild search index")
                raise
            finally:
                self._rebuilding = False

            for document_id in self._pending_removals:
                new_store.remove(document_id)
            self._pending_removals.clear()

            self._store = new_store
            logger.info("Search index rebuilt: %d items indexed", new_store.size())
            return count

    async def _refresh_if_stale(self) -> None:
        if not self.is_stale():
            return
        if self._rebuild_lock.locked():
            # Another rebuild is running; wait for it instead of starting a second
            async with self._rebuild_lock:
                pass
            if not self.is_stale():
                return
        await self.rebuild_index()

    async def update_index(self, record_type: str, record: dict) -> None:
        """
        Re-index one changed record.

        Failures are logged and swallowed; the record stays stale until the
        next full rebuild.

        Args:
            record_type: "project", or the item type (task, note, snippet, idea)
            record: The raw record
        """
        try:
            if record_type == "project":
                project = Project.from_record(record)
                async with self._rebuild_lock:
                    Indexer(self._store).index_project(project)
            else:
                item = Item.from_record(record)
                if "type" not in record and record_type in ITEM_TYPES:
                    item.type = record_type
                if not item.project_id:
                    raise MalformedRecordError("Item has no projectId", item.id)
                raw_project = await self.records.load_project(item.project_id)
                project = Project.from_record(raw_project)
                async with self._rebuild_lock:
                    Indexer(self._store).index_item(item, project)
        except Exception:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.exception("Failed to update search index for %s %s", record_type, record_id)
            return

        logger.debug("Search index updated for %s: %s", record_type, record.get("id"))

    def remove_from_index(self, document_id: str) -> bool:
        """Remove a document. Removing an unknown id is a no-op.

        Returns:
            True if a document was removed.
        """
        removed = self._store.remove(document_id)
        if self._rebuilding:
            self._pending_removals.add(document_id)
        if removed:
            logger.debug("Removed from search index: %s", document_id)
        return removed

    # Queries

    async def search(
        self,
        query: str,
        filters: SearchFilters | dict | None = None,
        options: SearchOptions | dict | None = None,
    ) -> SearchResults:
        """
        Search the index, rebuilding it first if it is stale.

        Args:
            query: Raw query string
            filters: SearchFilters, or the equivalent camelCase dict
            options: SearchOptions, or the equivalent camelCase dict

        Returns:
            Grouped SearchResults. If a stale rebuild fails but an earlier
            index exists, results come from that index with ``stale`` set.

        Raises:
            IndexRebuildError: If a rebuild fails and no earlier index exists.
        """
        if not isinstance(filters, SearchFilters):
            filters = SearchFilters.from_dict(filters)
        if not isinstance(options, SearchOptions):
            options = SearchOptions.from_dict(options)

        if not query or not query.strip():
            return empty_results(filters)

        stale = False
        try:
            await self._refresh_if_stale()
        except Exception as e:
            if self._store.built_at is None:
                raise IndexRebuildError(f"Search index rebuild failed: {e}") from e
            logger.warning("%s: %s", REBUILD_FAILED_WARNING, e)
            stale = True

        results = QueryEngine(self._store).search(query, filters, options)
        if stale:
            results.stale = True
            results.warning = REBUILD_FAILED_WARNING

        self.history.add(query)
        logger.info("Search completed: %r found %d results", query, results.total)
        return results

    def get_suggestions(self, query: str, limit: int = 5) -> list[str]:
        return get_suggestions(self._store, query, limit)

    def get_facets(self) -> dict:
        """Distinct filter values in the current index."""
        return get_facets(self._store)

    def get_index_stats(self) -> IndexStats:
        stats = IndexStats(total_items=self._store.size(), last_update=self._store.built_at)
        for _, document in self._store.all():
            group = group_for(document.type)
            # Only the known types are counted per group
            if document.type not in ("project", *ITEM_TYPES):
                continue
            setattr(stats, group, getattr(stats, group) + 1)
        return stats
