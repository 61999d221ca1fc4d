"""Indexer that turns project records into searchable documents."""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from projiki_search.errors import MalformedRecordError
from projiki_search.index.models import (
    UNKNOWN_PROJECT_NAME,
    Document,
    Item,
    Project,
)
from projiki_search.index.store import IndexStore
from projiki_search.index.tokenizer import tokenize

if TYPE_CHECKING:
    from projiki_search.records import RecordStore

logger = logging.getLogger(__name__)


def extract_searchable_text(values: list[str | None]) -> str:
    """Join the non-blank values with single spaces."""
    return " ".join(value for value in values if value and value.strip())


def build_project_document(project: Project) -> Document:
    """Build the index document for a project."""
    base_text = extract_searchable_text([project.name, project.description])
    searchable_text = " ".join([base_text, *project.tags]).lower()

    return Document(
        id=project.id,
        type="project",
        title=project.name,
        content=project.description,
        tags=list(project.tags),
        searchable_text=searchable_text,
        tokens=tuple(tokenize(searchable_text)),
        status=project.status,
        priority=project.priority,
        created_at=project.created_at,
        updated_at=project.updated_at,
        data=project.data,
    )


def build_item_document(item: Item, project: Project | None) -> Document:
    """Build the index document for an item.

    The owning project may be None; the item is then indexed under a
    placeholder project name.
    """
    project_name = project.name if project is not None else ""
    base_text = extract_searchable_text([item.title, item.content])
    searchable_text = " ".join([base_text, *item.tags, project_name]).lower()

    return Document(
        id=item.id,
        type=item.type,
        title=item.title,
        content=item.content,
        tags=list(item.tags),
        searchable_text=searchable_text,
        tokens=tuple(tokenize(searchable_text)),
        status=item.status,
        priority=item.priority,
        project_id=item.project_id,
        project_name=project_name or UNKNOWN_PROJECT_NAME,
        created_at=item.created_at,
        updated_at=item.updated_at,
        data=item.data,
    )


class Indexer:
    """
    Writes documents for projects and items into an IndexStore.

    The record store is the source of truth; the index is derived from it
    and can be regenerated at any time.
    """

    def __init__(self, store: IndexStore):
        self.store = store

    def index_project(self, project: Project | dict) -> Document:
        """Index a single project, replacing any existing document."""
        if not isinstance(project, Project):
            project = Project.from_record(project)
        document = build_project_document(project)
        self.store.upsert(document)
        return document

    def index_item(self, item: Item | dict, project: Project | dict | None) -> Document:
        """Index a single task, note, snippet or idea."""
        if not isinstance(item, Item):
            item = Item.from_record(item)
        if project is not None and not isinstance(project, Project):
            project = _project_or_none(project)
        document = build_item_document(item, project)
        self.store.upsert(document)
        return document

    async def build(self, records: "RecordStore") -> int:
        """
        Populate the store from every project and item in the record store.

        Malformed records are skipped with a warning. Read failures from the
        record store propagate, leaving this store partially filled; callers
        build into a fresh store and discard it on failure.

        Returns:
            Number of documents indexed.
        """
        count = 0
        for raw_project in await records.load_all_projects():
            project: Project | None
            try:
                project = Project.from_record(raw_project)
            except MalformedRecordError as e:
                logger.warning("Skipping malformed project record: %s", e)
                # Its items are still indexed, under the placeholder project name
                project = None
                project_id = raw_project.get("id") if isinstance(raw_project, dict) else None
                if not isinstance(project_id, str) or not project_id:
                    continue
            else:
                self.index_project(project)
                count += 1
                project_id = project.id

            try:
                raw_items = await records.load_tasks(project_id)
            except MalformedRecordError as e:
                logger.warning("Skipping items of project %s: %s", project_id, e)
                continue

            for raw_item in raw_items:
                try:
                    self.index_item(raw_item, project)
                except MalformedRecordError as e:
                    logger.warning(
                        "Skipping malformed item in project %s: %s", project_id, e
                    )
                    continue
                count += 1

        self.store.built_at = datetime.now(timezone.utc)
        return count


def _project_or_none(record: Any) -> Project | None:
    try:
        return Project.from_record(record)
    except MalformedRecordError:
        return None
