"""Record store access for the search index.

The record store owns projects and their items; the index only reads from it.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from pathvalidate import ValidationError, sanitize_filename

from projiki_search.errors import MalformedRecordError, RecordNotFoundError, RecordReadError

logger = logging.getLogger(__name__)

PROJECT_FILE = "project.json"
TASKS_FILE = "tasks.json"


class RecordStore(Protocol):
    """Asynchronous source of project and item records."""

    async def load_all_projects(self) -> list[dict]: ...

    async def load_tasks(self, project_id: str) -> list[dict]: ...

    async def load_project(self, project_id: str) -> dict: ...


def _read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


class JsonRecordStore:
    """
    Reads the Projiki on-disk layout.

    Structure expected:
    <root>/
    └── projects/
        ├── <project-id>/
        │   ├── project.json
        │   └── tasks.json      {"projectId": ..., "tasks": [...]}
        └── ...
    """

    def __init__(self, root: Path):
        self.root = root
        self.projects_path = root / "projects"

    def _project_dir(self, project_id: str) -> Path:
        """Directory of a project, named after its id with path characters removed."""
        try:
            dir_name = sanitize_filename(project_id) if isinstance(project_id, str) else ""
        except ValidationError:
            dir_name = ""
        if not dir_name or dir_name in (".", ".."):
            raise MalformedRecordError(
                f"Project id cannot be used as a directory name: {project_id!r}", project_id
            )
        return self.projects_path / dir_name

    def _load_all_projects(self) -> list[dict]:
        if not self.projects_path.exists():
            return []

        try:
            project_dirs = sorted(self.projects_path.iterdir())
        except OSError as e:
            raise RecordReadError(f"Failed to list projects in {self.projects_path}: {e}") from e

        projects: list[dict] = []
        for project_dir in project_dirs:
            if not project_dir.is_dir() or project_dir.name.startswith("."):
                continue
            project_file = project_dir / PROJECT_FILE
            if not project_file.exists():
                continue
            try:
                projects.append(_read_json(project_file))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning("Skipping corrupted project %s: %s", project_dir.name, e)

        # Most recently updated first; records without a timestamp go last
        projects.sort(
            key=lambda p: str(p.get("updatedAt") or "") if isinstance(p, dict) else "",
            reverse=True,
        )
        logger.debug("Loaded %d projects from %s", len(projects), self.projects_path)
        return projects

    def _load_tasks(self, project_id: str) -> list[dict]:
        tasks_file = self._project_dir(project_id) / TASKS_FILE
        if not tasks_file.exists():
            return []

        try:
            data = _read_json(tasks_file)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RecordReadError(f"Failed to load tasks for project {project_id}: {e}") from e

        tasks = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(tasks, list):
            raise RecordReadError(f"Tasks file for project {project_id} has no task list")
        return tasks

    def _load_project(self, project_id: str) -> dict:
        try:
            project_file = self._project_dir(project_id) / PROJECT_FILE
        except MalformedRecordError as e:
            raise RecordNotFoundError("Project", project_id) from e
        if not project_file.exists():
            raise RecordNotFoundError("Project", project_id)

        try:
            return _read_json(project_file)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RecordReadError(f"Failed to load project {project_id}: {e}") from e

    async def load_all_projects(self) -> list[dict]:
        """Load every project record, skipping corrupted project files."""
        return await asyncio.to_thread(self._load_all_projects)

    async def load_tasks(self, project_id: str) -> list[dict]:
        """Load the item records of one project (empty if it has none).

        Raises:
            MalformedRecordError: If the id does not map to a directory name.
            RecordReadError: If the tasks file cannot be read.
        """
        return await asyncio.to_thread(self._load_tasks, project_id)

    async def load_project(self, project_id: str) -> dict:
        """Load one project record.

        Raises:
            RecordNotFoundError: If the project does not exist.
        """
        return await asyncio.to_thread(self._load_project, project_id)
