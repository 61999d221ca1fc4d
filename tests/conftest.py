"""Shared fixtures for tests."""

import pytest

from projiki_search.errors import MalformedRecordError, RecordNotFoundError, RecordReadError


class FakeRecordStore:
    """In-memory RecordStore double."""

    def __init__(self, projects: list[dict] | None = None, tasks: dict | None = None):
        self.projects = projects or []
        self.tasks = tasks or {}
        self.fail_projects = False
        self.fail_tasks_for: set[str] = set()
        self.malformed_tasks_for: set[str] = set()
        self.project_loads = 0

    async def load_all_projects(self) -> list[dict]:
        self.project_loads += 1
        if self.fail_projects:
            raise RecordReadError("projects directory unavailable")
        return list(self.projects)

    async def load_tasks(self, project_id: str) -> list[dict]:
        if project_id in self.fail_tasks_for:
            raise RecordReadError(f"tasks for {project_id} unavailable")
        if project_id in self.malformed_tasks_for:
            raise MalformedRecordError(f"no tasks location for {project_id}", project_id)
        return list(self.tasks.get(project_id, []))

    async def load_project(self, project_id: str) -> dict:
        for project in self.projects:
            if project.get("id") == project_id:
                return project
        raise RecordNotFoundError("Project", project_id)


@pytest.fixture
def website_project() -> dict:
    return {
        "id": "p1",
        "name": "Website Revamp",
        "description": "redo the homepage",
        "status": "active",
        "metadata": {"tags": ["web"]},
    }


@pytest.fixture
def homepage_task() -> dict:
    return {
        "id": "t1",
        "projectId": "p1",
        "title": "Fix homepage bug",
        "content": "",
        "type": "task",
        "status": "todo",
        "metadata": {"tags": ["bug", "urgent"], "priority": "high"},
    }


@pytest.fixture
def records(website_project, homepage_task) -> FakeRecordStore:
    """Record store with one project and a few items."""
    return FakeRecordStore(
        projects=[website_project],
        tasks={
            "p1": [
                homepage_task,
                {
                    "id": "n1",
                    "projectId": "p1",
                    "title": "Meeting notes",
                    "content": "Discussed the landing page copy",
                    "type": "note",
                    "status": "active",
                    "metadata": {"tags": ["meeting"]},
                },
                {
                    "id": "s1",
                    "projectId": "p1",
                    "title": "Fetch helper",
                    "content": "async function fetchJson(url) {}",
                    "type": "snippet",
                    "metadata": {"tags": ["javascript"], "priority": "low"},
                },
                {
                    "id": "i1",
                    "projectId": "p1",
                    "title": "Dark mode idea",
                    "content": "Offer a dark theme",
                    "type": "idea",
                    "metadata": {},
                },
            ]
        },
    )


@pytest.fixture
def make_records():
    """Factory for FakeRecordStore instances."""
    return FakeRecordStore
