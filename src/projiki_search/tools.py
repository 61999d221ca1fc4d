"""MCP tools for the projiki-search server.

This module defines the tools exposed by the MCP server:
- search: Ranked, filtered search across projects, tasks, notes and snippets
- suggest: Autocomplete suggestions from titles and tags
- list_facets: Filter values available in the index
- index_stats: Document counts per type and last rebuild time
- rebuild_index / update_record / remove_record: Index maintenance
- search_history / remove_search_history / clear_search_history: Recent queries
"""

import logging

from fastmcp import FastMCP

from projiki_search.errors import SearchIndexError
from projiki_search.index import empty_results
from projiki_search.refresh import RefreshManager
from projiki_search.service import SearchService

logger = logging.getLogger(__name__)


def register_tools(
    mcp: FastMCP,
    service: SearchService,
    refresher: RefreshManager | None = None,
) -> None:
    """Register all search tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        service: Search service answering the tools
        refresher: Optional background refresher, started on first tool use
    """

    def ensure_refresher() -> None:
        if refresher is not None and not refresher.running:
            refresher.start()

    @mcp.tool()
    async def search(
        query: str,
        filters: dict | None = None,
        options: dict | None = None,
    ) -> dict:
        """Search projects, tasks, notes and snippets.

        Ranking considers title (+10), content (+5), tag (+8 per tag) and
        exact-token (+1) matches per query term, boosted for items updated in
        the last week and weighted by priority.

        Args:
            query: Search query
            filters: Optional filters: dateRange {start, end}, tags, status,
                priority (lists) and projectId
            options: Optional options: includeProjects, includeTasks,
                includeNotes, includeSnippets, caseSensitive, wholeWords,
                useRegex, searchInContent, searchInTags, maxResults

        Returns:
            Results grouped into projects/tasks/notes/snippets with:
            - total: Number of matches before the maxResults cut
            - stale: True if the index could not be refreshed
            - warning / error: Messages for the user, when any (invalid
              filters or options are reported in error)
        """
        ensure_refresher()
        try:
            results = await service.search(query, filters, options)
        except (SearchIndexError, ValueError) as e:
            data = empty_results().to_dict()
            data["error"] = str(e)
            return data
        return results.to_dict()

    @mcp.tool()
    async def suggest(query: str, limit: int = 5) -> list[str]:
        """Suggest titles and tags containing the query (at least 2 characters).

        Args:
            query: Partial query
            limit: Maximum number of suggestions (default: 5)
        """
        ensure_refresher()
        return service.get_suggestions(query, limit)

    @mcp.tool()
    async def list_facets() -> dict:
        """List filter values present in the index.

        Returns:
            tags, status, priority and types (sorted lists) and projects
            ({id, name} entries).
        """
        ensure_refresher()
        return service.get_facets()

    @mcp.tool()
    async def index_stats() -> dict:
        """Get document counts per type and the time of the last rebuild."""
        ensure_refresher()
        return service.get_index_stats().to_dict()

    @mcp.tool()
    async def rebuild_index() -> dict:
        """Rebuild the search index from the project files.

        Returns:
            - indexed: Number of documents indexed
            - error: Error message if the rebuild failed (old index is kept)
        """
        ensure_refresher()
        try:
            count = await service.rebuild_index()
        except SearchIndexError as e:
            return {"indexed": 0, "error": f"Search index rebuild failed: {e}"}
        return {"indexed": count, "error": None}

    @mcp.tool()
    async def update_record(record_type: str, record: dict) -> dict:
        """Re-index a single changed record.

        Args:
            record_type: "project", "task", "note", "snippet" or "idea"
            record: The full record as stored
        """
        await service.update_index(record_type, record)
        return {"id": record.get("id"), "indexed": service.index.get(record.get("id", "")) is not None}

    @mcp.tool()
    async def remove_record(record_id: str) -> dict:
        """Remove a record from the search index.

        Args:
            record_id: Id of the project or item
        """
        return {"id": record_id, "removed": service.remove_from_index(record_id)}

    @mcp.tool()
    async def search_history() -> list[str]:
        """List recent search queries, most recent first."""
        return service.history.entries()

    @mcp.tool()
    async def remove_search_history(query: str) -> dict:
        """Forget one recent search query.

        Args:
            query: The query exactly as listed by search_history
        """
        return {"query": query, "removed": service.history.remove(query)}

    @mcp.tool()
    async def clear_search_history() -> dict:
        """Forget all recent search queries."""
        service.history.clear()
        logger.info("Search history cleared")
        return {"cleared": True}
