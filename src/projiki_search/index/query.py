"""Query engine: filtering, relevance scoring and grouping."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from projiki_search.index.models import (
    Document,
    Highlight,
    SearchFilters,
    SearchHit,
    SearchOptions,
    SearchResults,
    parse_timestamp,
)
from projiki_search.index.store import IndexStore
from projiki_search.index.tokenizer import tokenize

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 10
CONTENT_WEIGHT = 5
TAG_WEIGHT = 8
TOKEN_WEIGHT = 1

RECENCY_WINDOW = timedelta(days=7)
RECENCY_BOOST = 1.2
PRIORITY_BOOST = {"high": 1.3, "medium": 1.0, "low": 0.8}

HIGHLIGHT_CONTENT_CHARS = 200

# Result group for each document type; anything else is grouped with tasks
GROUP_BY_TYPE = {
    "project": "projects",
    "task": "tasks",
    "note": "notes",
    "snippet": "snippets",
    "idea": "snippets",
}


def group_for(doc_type: str) -> str:
    """Return the result group a document type belongs to."""
    return GROUP_BY_TYPE.get(doc_type, "tasks")


def empty_results(filters: SearchFilters | None = None) -> SearchResults:
    """The canonical result for a query with nothing to search for."""
    return SearchResults(
        filters=filters or SearchFilters(),
        search_time=datetime.now(timezone.utc),
    )


def compile_matcher(
    term: str,
    case_sensitive: bool = False,
    whole_words: bool = False,
    use_regex: bool = False,
) -> Callable[[str | None], bool]:
    """
    Build a predicate testing whether a piece of text contains ``term``.

    Regex mode takes precedence over whole-word mode. An invalid regex falls
    back to plain substring matching.
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    needle = term if case_sensitive else term.lower()
    pattern: re.Pattern | None = None

    if use_regex:
        try:
            pattern = re.compile(needle, flags)
        except re.error as e:
            logger.info("Invalid regex %r (%s), using substring match", term, e)
    elif whole_words:
        pattern = re.compile(rf"\b{re.escape(needle)}\b", flags)

    def matches(text: str | None) -> bool:
        if not text:
            return False
        if pattern is not None:
            return pattern.search(text) is not None
        haystack = text if case_sensitive else text.lower()
        return needle in haystack

    return matches


@dataclass
class _QueryTerm:
    term: str
    matches: Callable[[str | None], bool]


class QueryEngine:
    """
    Answers queries against an IndexStore.

    Scoring, per query term:
    - title match: +10
    - content match: +5 (when searching content)
    - +8 for every matching tag (when searching tags)
    - exact token match: +1
    The sum is boosted by 1.2 for documents updated within the last week and
    then weighted by priority (high 1.3, medium 1.0, low 0.8).
    """

    def __init__(self, store: IndexStore):
        self.store = store

    def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        options: SearchOptions | None = None,
        now: datetime | None = None,
    ) -> SearchResults:
        """
        Search the store.

        Args:
            query: Raw query string
            filters: Optional filters, AND-combined
            options: Matching options; defaults apply when omitted
            now: Reference time for the recency boost (defaults to now)

        Returns:
            SearchResults grouped by type. ``total`` counts all matches
            before truncation to ``options.max_results``.
        """
        filters = filters or SearchFilters()
        options = options or SearchOptions()
        now = now or datetime.now(timezone.utc)

        normalized = query.strip() if options.case_sensitive else query.lower().strip()
        if not normalized:
            return empty_results(filters)

        terms = [normalized] if options.use_regex else tokenize(normalized)
        if not terms:
            return empty_results(filters)

        query_terms = [
            _QueryTerm(
                term=term,
                matches=compile_matcher(
                    term,
                    case_sensitive=options.case_sensitive,
                    whole_words=options.whole_words,
                    use_regex=options.use_regex,
                ),
            )
            for term in terms
        ]

        hits: list[SearchHit] = []
        for _, document in self.store.all():
            if not self.include_type(document.type, options):
                continue
            if not self.passes_filters(document, filters):
                continue

            score = self.score(document, query_terms, options, now)
            if score > 0:
                hits.append(
                    SearchHit(
                        document=document,
                        score=score,
                        highlights=self.highlights(document, terms),
                    )
                )

        # sort is stable: ties keep index order
        hits.sort(key=lambda hit: hit.score, reverse=True)
        limited = hits[: max(options.max_results, 0)]

        results = SearchResults(
            query=normalized,
            total=len(hits),
            filters=filters,
            search_time=datetime.now(timezone.utc),
        )
        for hit in limited:
            getattr(results, group_for(hit.type)).append(hit)

        logger.debug(
            "Search %r: %d matches, %d returned", query, len(hits), len(limited)
        )
        return results

    @staticmethod
    def include_type(doc_type: str, options: SearchOptions) -> bool:
        """Check the include flags for a document type."""
        group = group_for(doc_type)
        if group == "projects":
            return options.include_projects
        if group == "notes":
            return options.include_notes
        if group == "snippets":
            return options.include_snippets
        return options.include_tasks

    @staticmethod
    def passes_filters(document: Document, filters: SearchFilters) -> bool:
        """Check a document against every active filter."""
        start = parse_timestamp(filters.date_range.start)
        end = parse_timestamp(filters.date_range.end)
        if start or end:
            # Undated documents are not excluded by a date range
            updated = parse_timestamp(document.updated_at)
            if updated is not None:
                if start and updated < start:
                    return False
                if end and updated > end:
                    return False

        if filters.tags:
            wanted = [tag.lower() for tag in filters.tags]
            doc_tags = [tag.lower() for tag in document.tags]
            if not any(w in tag for w in wanted for tag in doc_tags):
                return False

        if filters.status and document.status not in filters.status:
            return False

        if filters.priority and document.priority not in filters.priority:
            return False

        if (
            filters.project_id
            and document.type != "project"
            and document.project_id != filters.project_id
        ):
            return False

        return True

    def score(
        self,
        document: Document,
        query_terms: list[_QueryTerm],
        options: SearchOptions,
        now: datetime,
    ) -> float:
        """Compute the relevance score of a document for the given terms."""
        score: float = 0
        for query_term in query_terms:
            if query_term.matches(document.title):
                score += TITLE_WEIGHT

            if options.search_in_content and query_term.matches(document.content):
                score += CONTENT_WEIGHT

            if options.search_in_tags:
                for tag in document.tags:
                    if query_term.matches(tag):
                        score += TAG_WEIGHT

            if query_term.term in document.token_set:
                score += TOKEN_WEIGHT

        updated = parse_timestamp(document.updated_at)
        if updated is not None and now - updated < RECENCY_WINDOW:
            score *= RECENCY_BOOST

        score *= PRIORITY_BOOST.get(document.priority, 1.0)
        return score

    @staticmethod
    def highlights(document: Document, terms: list[str]) -> list[Highlight]:
        """Title and leading-content highlights for each term."""
        highlights: list[Highlight] = []
        title = document.title or ""
        content = document.content or ""
        preview = content[:HIGHLIGHT_CONTENT_CHARS]
        if len(content) > HIGHLIGHT_CONTENT_CHARS:
            preview_text = preview + "..."
        else:
            preview_text = preview

        for term in terms:
            needle = term.lower()
            if title and needle in title.lower():
                highlights.append(Highlight(field="title", text=title, term=term))
            if preview and needle in preview.lower():
                highlights.append(Highlight(field="content", text=preview_text, term=term))

        return highlights
