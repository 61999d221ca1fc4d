"""Autocomplete suggestions and filter facets derived from the index."""

from projiki_search.index.store import IndexStore

MIN_SUGGESTION_QUERY = 2


def get_suggestions(store: IndexStore, query: str, limit: int = 5) -> list[str]:
    """
    Suggest titles and tags containing the query.

    Suggestions come back in index order, deduplicated, and the scan stops
    once ``limit`` distinct suggestions have been collected.

    Args:
        store: Index to scan
        query: Partial query; fewer than two characters yields nothing
        limit: Maximum number of suggestions

    Returns:
        At most ``limit`` suggestion strings.
    """
    if not query or len(query) < MIN_SUGGESTION_QUERY or limit <= 0:
        return []

    needle = query.lower()
    suggestions: dict[str, None] = {}

    for _, document in store.all():
        if document.title and needle in document.title.lower():
            suggestions[document.title] = None

        for tag in document.tags:
            if needle in tag.lower():
                suggestions[tag] = None

        if len(suggestions) >= limit:
            break

    return list(suggestions)[:limit]


def get_facets(store: IndexStore) -> dict:
    """
    Collect the distinct filter values present in the index.

    Returns:
        Dict with sorted ``tags``, ``status``, ``priority`` and ``types``
        lists, plus ``projects`` as ``{"id", "name"}`` dicts sorted by name.
        Missing status or priority values are left out.
    """
    tags: set[str] = set()
    statuses: set[str] = set()
    priorities: set[str] = set()
    types: set[str] = set()
    projects: dict[str, str] = {}

    for _, document in store.all():
        tags.update(document.tags)
        if document.status:
            statuses.add(document.status)
        if document.priority:
            priorities.add(document.priority)
        types.add(document.type)
        if document.type == "project":
            projects[document.id] = document.title

    return {
        "tags": sorted(tags),
        "status": sorted(statuses),
        "priority": sorted(priorities),
        "projects": [
            {"id": project_id, "name": name}
            for project_id, name in sorted(projects.items(), key=lambda p: (p[1], p[0]))
        ],
        "types": sorted(types),
    }
