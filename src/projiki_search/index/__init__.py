"""
Index module for projiki-search.

Builds an in-memory index over projects and their tasks, notes, snippets and
ideas, and answers ranked, filtered queries against it.
"""

from projiki_search.index.facets import get_facets, get_suggestions
from projiki_search.index.indexer import (
    Indexer,
    build_item_document,
    build_project_document,
)
from projiki_search.index.models import (
    DateRange,
    Document,
    Highlight,
    IndexStats,
    Item,
    Project,
    SearchFilters,
    SearchHit,
    SearchOptions,
    SearchResults,
)
from projiki_search.index.query import QueryEngine, empty_results
from projiki_search.index.store import IndexStore, MemoryIndexStore
from projiki_search.index.tokenizer import STOP_WORDS, tokenize

__all__ = [
    "STOP_WORDS",
    "DateRange",
    "Document",
    "Highlight",
    "IndexStats",
    "IndexStore",
    "Indexer",
    "Item",
    "MemoryIndexStore",
    "Project",
    "QueryEngine",
    "SearchFilters",
    "SearchHit",
    "SearchOptions",
    "SearchResults",
    "build_item_document",
    "build_project_document",
    "empty_results",
    "get_facets",
    "get_suggestions",
    "tokenize",
]
