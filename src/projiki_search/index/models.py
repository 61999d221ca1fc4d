"""Data models for the search index."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from projiki_search.errors import MalformedRecordError

DOCUMENT_TYPES = ("project", "task", "note", "snippet", "idea")
ITEM_TYPES = ("task", "note", "snippet", "idea")
DEFAULT_PRIORITY = "medium"
UNKNOWN_PROJECT_NAME = "Unknown Project"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None when absent or invalid.

    Naive timestamps are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require_id(record: dict, kind: str) -> str:
    record_id = record.get("id")
    if not isinstance(record_id, str) or not record_id.strip():
        raise MalformedRecordError(f"{kind} record has no id")
    return record_id


def _optional_str(record: dict, key: str, record_id: str) -> str | None:
    value = record.get(key)
    if value is None or isinstance(value, str):
        return value
    raise MalformedRecordError(f"Field '{key}' must be a string", record_id)


def _metadata(record: dict, record_id: str) -> tuple[list[str], str]:
    metadata = record.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise MalformedRecordError("Field 'metadata' must be an object", record_id)

    tags = metadata.get("tags") or []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise MalformedRecordError("Field 'metadata.tags' must be a list of strings", record_id)

    priority = metadata.get("priority") or DEFAULT_PRIORITY
    if not isinstance(priority, str):
        raise MalformedRecordError("Field 'metadata.priority' must be a string", record_id)

    return list(tags), priority


@dataclass
class Project:
    """A project record as supplied by the record store."""

    id: str
    name: str
    description: str = ""
    status: str | None = None
    tags: list[str] = field(default_factory=list)
    priority: str = DEFAULT_PRIORITY
    created_at: str | None = None
    updated_at: str | None = None
    data: dict = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Any) -> "Project":
        """Validate a raw project record.

        Raises:
            MalformedRecordError: If the record lacks an id or a name.
        """
        if not isinstance(record, dict):
            raise MalformedRecordError("Project record must be an object")
        project_id = _require_id(record, "Project")
        name = record.get("name")
        if not isinstance(name, str):
            raise MalformedRecordError("Project record has no name", project_id)
        tags, priority = _metadata(record, project_id)

        return cls(
            id=project_id,
            name=name,
            description=_optional_str(record, "description", project_id) or "",
            status=_optional_str(record, "status", project_id),
            tags=tags,
            priority=priority,
            created_at=_optional_str(record, "createdAt", project_id),
            updated_at=_optional_str(record, "updatedAt", project_id),
            data=record,
        )


@dataclass
class Item:
    """A task, note, snippet or idea belonging to a project.

    All four share one record shape; ``type`` is the discriminant.
    """

    id: str
    title: str
    type: str = "task"
    project_id: str | None = None
    content: str = ""
    status: str | None = None
    tags: list[str] = field(default_factory=list)
    priority: str = DEFAULT_PRIORITY
    created_at: str | None = None
    updated_at: str | None = None
    data: dict = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Any) -> "Item":
        """Validate a raw item record.

        Raises:
            MalformedRecordError: If the record lacks an id or a title.
        """
        if not isinstance(record, dict):
            raise MalformedRecordError("Item record must be an object")
        item_id = _require_id(record, "Item")
        title = record.get("title")
        if not isinstance(title, str):
            raise MalformedRecordError("Item record has no title", item_id)
        tags, priority = _metadata(record, item_id)

        return cls(
            id=item_id,
            title=title,
            type=_optional_str(record, "type", item_id) or "task",
            project_id=_optional_str(record, "projectId", item_id),
            content=_optional_str(record, "content", item_id) or "",
            status=_optional_str(record, "status", item_id),
            tags=tags,
            priority=priority,
            created_at=_optional_str(record, "createdAt", item_id),
            updated_at=_optional_str(record, "updatedAt", item_id),
            data=record,
        )


@dataclass
class Document:
    """Represents a record in the search index."""

    id: str
    type: str
    title: str
    content: str = ""
    tags: list[str] = field(default_factory=list)
    searchable_text: str = ""
    tokens: tuple[str, ...] = ()
    status: str | None = None
    priority: str = DEFAULT_PRIORITY
    project_id: str | None = None
    project_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    data: dict = field(default_factory=dict)
    token_set: frozenset[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self):
        self.token_set = frozenset(self.tokens)

    def to_dict(self) -> dict:
        """Serialize for callers, without the tokens."""
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "status": self.status,
            "priority": self.priority,
            "projectId": self.project_id,
            "projectName": self.project_name,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "data": self.data,
        }


def _str_or_none(value: Any, name: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ValueError(f"Filter '{name}' must be a string")


def _str_list(value: Any, name: str) -> list[str]:
    if not value:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"Filter '{name}' must be a list of strings")
    return list(value)


def _int_option(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Option '{name}' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValueError(f"Option '{name}' must be an integer")


@dataclass
class DateRange:
    start: str | None = None
    end: str | None = None


@dataclass
class SearchFilters:
    """Filters applied to a search. All active filters must pass."""

    date_range: DateRange = field(default_factory=DateRange)
    tags: list[str] = field(default_factory=list)
    status: list[str] = field(default_factory=list)
    priority: list[str] = field(default_factory=list)
    project_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "SearchFilters":
        """Build filters from a camelCase mapping as sent by the UI layer.

        Raises:
            ValueError: If a filter value has the wrong type.
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Filters must be an object")

        date_range = data.get("dateRange") or {}
        if not isinstance(date_range, dict):
            raise ValueError("Filter 'dateRange' must be an object")
        return cls(
            date_range=DateRange(
                start=_str_or_none(date_range.get("start"), "dateRange.start"),
                end=_str_or_none(date_range.get("end"), "dateRange.end"),
            ),
            tags=_str_list(data.get("tags"), "tags"),
            status=_str_list(data.get("status"), "status"),
            priority=_str_list(data.get("priority"), "priority"),
            project_id=_str_or_none(data.get("projectId"), "projectId"),
        )

    def to_dict(self) -> dict:
        return {
            "dateRange": {"start": self.date_range.start, "end": self.date_range.end},
            "tags": list(self.tags),
            "status": list(self.status),
            "priority": list(self.priority),
            "projectId": self.project_id,
        }


@dataclass
class SearchOptions:
    """Options controlling matching and result shape."""

    include_projects: bool = True
    include_tasks: bool = True
    include_notes: bool = True
    include_snippets: bool = True
    case_sensitive: bool = False
    whole_words: bool = False
    use_regex: bool = False
    search_in_content: bool = True
    search_in_tags: bool = True
    max_results: int = 100

    _KEYS = {
        "includeProjects": "include_projects",
        "includeTasks": "include_tasks",
        "includeNotes": "include_notes",
        "includeSnippets": "include_snippets",
        "caseSensitive": "case_sensitive",
        "wholeWords": "whole_words",
        "useRegex": "use_regex",
        "searchInContent": "search_in_content",
        "searchInTags": "search_in_tags",
        "maxResults": "max_results",
    }

    @classmethod
    def from_dict(cls, data: dict | None) -> "SearchOptions":
        """Build options from a camelCase mapping; unknown keys and nulls are ignored.

        Raises:
            ValueError: If an option value has the wrong type.
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Options must be an object")

        kwargs: dict[str, Any] = {}
        for key, attr in cls._KEYS.items():
            value = data.get(key)
            if value is None:
                continue
            if attr == "max_results":
                kwargs[attr] = _int_option(value, key)
            elif isinstance(value, bool):
                kwargs[attr] = value
            else:
                raise ValueError(f"Option '{key}' must be a boolean")
        return cls(**kwargs)


@dataclass
class Highlight:
    field: str
    text: str
    term: str

    def to_dict(self) -> dict:
        return {"field": self.field, "text": self.text, "term": self.term}


@dataclass
class SearchHit:
    """A scored document with its highlights."""

    document: Document
    score: float
    highlights: list[Highlight] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def type(self) -> str:
        return self.document.type

    def to_dict(self) -> dict:
        data = self.document.to_dict()
        data["score"] = self.score
        data["highlights"] = [h.to_dict() for h in self.highlights]
        return data


@dataclass
class SearchResults:
    """Grouped search results.

    ``total`` counts every scoring match before ``max_results`` truncation,
    while the groups only hold the truncated set.
    """

    query: str = ""
    projects: list[SearchHit] = field(default_factory=list)
    tasks: list[SearchHit] = field(default_factory=list)
    notes: list[SearchHit] = field(default_factory=list)
    snippets: list[SearchHit] = field(default_factory=list)
    total: int = 0
    filters: SearchFilters = field(default_factory=SearchFilters)
    search_time: datetime | None = None
    stale: bool = False
    warning: str | None = None

    @property
    def hits(self) -> list[SearchHit]:
        """All grouped hits, groups concatenated in display order."""
        return [*self.projects, *self.tasks, *self.notes, *self.snippets]

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "projects": [h.to_dict() for h in self.projects],
            "tasks": [h.to_dict() for h in self.tasks],
            "notes": [h.to_dict() for h in self.notes],
            "snippets": [h.to_dict() for h in self.snippets],
            "total": self.total,
            "filters": self.filters.to_dict(),
            "searchTime": self.search_time.isoformat() if self.search_time else None,
            "stale": self.stale,
            "warning": self.warning,
        }


@dataclass
class IndexStats:
    total_items: int = 0
    projects: int = 0
    tasks: int = 0
    notes: int = 0
    snippets: int = 0
    last_update: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "totalItems": self.total_items,
            "projects": self.projects,
            "tasks": self.tasks,
            "notes": self.notes,
            "snippets": self.snippets,
            "lastUpdate": self.last_update.isoformat() if self.last_update else None,
        }
