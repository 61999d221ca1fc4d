"""Tests for the search service."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from projiki_search.errors import IndexRebuildError, RecordReadError
from projiki_search.history import SearchHistory
from projiki_search.index import SearchFilters, SearchOptions
from projiki_search.service import REBUILD_FAILED_WARNING, SearchService


def recent() -> str:
    return (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()


@pytest_asyncio.fixture
async def service(records):
    svc = SearchService(records)
    await svc.open()
    yield svc
    await svc.close()


def age_index(svc: SearchService, seconds: int) -> None:
    svc.index.built_at = datetime.now(timezone.utc) - timedelta(seconds=seconds)


@pytest.mark.asyncio
class TestLifecycle:
    async def test_open_builds_index(self, service, records):
        assert service.index.size() == 5
        assert service.last_rebuild is not None
        assert records.project_loads == 1

    async def test_close_drops_index(self, records):
        svc = SearchService(records)
        await svc.open()
        await svc.close()

        assert svc.index.size() == 0
        assert svc.is_stale()

    async def test_async_context_manager(self, records):
        async with SearchService(records) as svc:
            assert svc.index.size() == 5
        assert svc.index.size() == 0

    async def test_invalid_stale_threshold(self, records):
        with pytest.raises(ValueError, match="Stale threshold must be positive"):
            SearchService(records, stale_after=0)


@pytest.mark.asyncio
class TestRebuild:
    async def test_rebuild_returns_count(self, service):
        assert await service.rebuild_index() == 5

    async def test_rebuild_replaces_index(self, service, records):
        records.tasks["p1"] = records.tasks["p1"][:1]

        await service.rebuild_index()

        assert service.index.size() == 2
        assert service.index.get("n1") is None

    async def test_failed_rebuild_keeps_previous_index(self, service, records):
        old_index = service.index
        records.fail_projects = True

        with pytest.raises(RecordReadError):
            await service.rebuild_index()

        assert service.index is old_index
        assert service.index.size() == 5

    async def test_failed_task_load_aborts_rebuild(self, service, records):
        records.tasks["p1"].append({"id": "new", "title": "New task", "projectId": "p1"})
        records.fail_tasks_for.add("p1")

        with pytest.raises(RecordReadError):
            await service.rebuild_index()

        assert service.index.get("new") is None
        assert service.index.size() == 5

    async def test_malformed_records_do_not_abort(self, service, records):
        records.tasks["p1"].append({"id": "bad", "metadata": {"tags": "nope"}})

        assert await service.rebuild_index() == 5

    async def test_rebuild_logs_count(self, service, caplog):
        with caplog.at_level(logging.INFO):
            await service.rebuild_index()
        assert any("5 items indexed" in r.message for r in caplog.records)


@pytest.mark.asyncio
class TestSearch:
    async def test_empty_query_does_not_touch_index(self, records):
        svc = SearchService(records)

        results = await svc.search("", {}, {})

        assert results.total == 0
        assert results.projects == results.tasks == results.notes == results.snippets == []
        assert records.project_loads == 0

    async def test_whitespace_query(self, service):
        results = await service.search("   ")
        assert results.total == 0

    async def test_first_search_builds_index(self, records):
        svc = SearchService(records)

        results = await svc.search("homepage")

        assert records.project_loads == 1
        assert results.total == 2
        assert results.tasks[0].id == "t1"

    async def test_concrete_scenario(self, service):
        results = await service.search("homepage")

        assert results.total == 2
        assert [h.id for h in results.projects] == ["p1"]
        assert [h.id for h in results.tasks] == ["t1"]
        assert results.tasks[0].score > results.projects[0].score

    async def test_fresh_index_is_not_rebuilt(self, service, records):
        await service.search("homepage")
        assert records.project_loads == 1

    async def test_stale_index_is_rebuilt(self, service, records):
        age_index(service, 31)

        await service.search("homepage")

        assert records.project_loads == 2
        assert not service.is_stale()

    async def test_failed_stale_rebuild_serves_previous_index(self, service, records):
        age_index(service, 31)
        records.fail_projects = True

        results = await service.search("homepage")

        assert results.stale is True
        assert results.warning == REBUILD_FAILED_WARNING
        assert results.total == 2

    async def test_failed_first_build_raises(self, records):
        records.fail_projects = True
        svc = SearchService(records)

        with pytest.raises(IndexRebuildError, match="rebuild failed"):
            await svc.search("homepage")

    async def test_accepts_dict_filters_and_options(self, service):
        results = await service.search(
            "homepage",
            {"status": ["todo"]},
            {"includeProjects": False, "maxResults": 10},
        )

        assert results.projects == []
        assert [h.id for h in results.tasks] == ["t1"]

    async def test_status_filter_excludes(self, service):
        results = await service.search("homepage", SearchFilters(status=["done"]))
        assert results.total == 0

    async def test_type_exclusion(self, service):
        results = await service.search("homepage", options=SearchOptions(include_tasks=False))

        assert results.tasks == []
        assert results.total == 1

    async def test_regex_fallback_does_not_raise(self, service):
        results = await service.search("((", options=SearchOptions(use_regex=True))
        assert results.total == 0

    async def test_records_history(self, records):
        svc = SearchService(records, history=SearchHistory(limit=2))
        await svc.open()

        for query in ("homepage", "notes", "dark", "homepage"):
            await svc.search(query)

        assert svc.history.entries() == ["homepage", "dark"]

    async def test_open_keeps_loaded_history(self, records, tmp_path):
        path = tmp_path / "history.json"
        path.write_text('["earlier"]')
        history = SearchHistory(path)
        history.load()
        path.write_text('["changed on disk"]')

        svc = SearchService(records, history=history)
        await svc.open()

        assert svc.history.entries() == ["earlier"]

    async def test_empty_query_is_not_recorded(self, service):
        await service.search("  ")
        assert service.history.entries() == []


@pytest.mark.asyncio
class TestIncrementalUpdates:
    async def test_update_project(self, service):
        await service.update_index(
            "project", {"id": "p1", "name": "Website Relaunch", "description": "new site"}
        )

        assert service.index.get("p1").title == "Website Relaunch"
        assert service.index.size() == 5

    async def test_update_new_item_resolves_project(self, service):
        await service.update_index(
            "task",
            {"id": "t2", "projectId": "p1", "title": "Audit SEO", "updatedAt": recent()},
        )

        doc = service.index.get("t2")
        assert doc.project_name == "Website Revamp"
        assert doc.type == "task"

    async def test_item_type_falls_back_to_record_type(self, service):
        await service.update_index("note", {"id": "n2", "projectId": "p1", "title": "Retro"})
        assert service.index.get("n2").type == "note"

    async def test_record_type_field_wins(self, service):
        await service.update_index(
            "task", {"id": "s2", "projectId": "p1", "title": "Regex", "type": "snippet"}
        )
        assert service.index.get("s2").type == "snippet"

    async def test_unknown_project_is_logged_and_swallowed(self, service, caplog):
        with caplog.at_level(logging.ERROR):
            await service.update_index(
                "task", {"id": "t9", "projectId": "missing", "title": "Lost"}
            )

        assert service.index.get("t9") is None
        assert any("Failed to update search index" in r.message for r in caplog.records)

    async def test_malformed_record_is_swallowed(self, service):
        await service.update_index("project", {"name": "No id"})
        await service.update_index("task", "not a record")
        assert service.index.size() == 5

    async def test_remove_from_index(self, service):
        assert service.remove_from_index("t1") is True
        assert service.index.get("t1") is None

    async def test_remove_unknown_is_noop(self, service):
        assert service.remove_from_index("nope") is False
        assert service.index.size() == 5

    async def test_removal_during_rebuild_survives_swap(self, service, records):
        original = records.load_tasks

        async def load_tasks_and_remove(project_id):
            service.remove_from_index("n1")
            return await original(project_id)

        records.load_tasks = load_tasks_and_remove

        await service.rebuild_index()

        assert service.index.get("n1") is None
        assert service.index.size() == 4


@pytest.mark.asyncio
class TestQueriesAndStats:
    async def test_suggestions(self, service):
        assert service.get_suggestions("dark") == ["Dark mode idea"]
        assert service.get_suggestions("d") == []

    async def test_facets(self, service):
        facets = service.get_facets()

        assert facets["types"] == ["idea", "note", "project", "snippet", "task"]
        assert facets["projects"] == [{"id": "p1", "name": "Website Revamp"}]
        assert "javascript" in facets["tags"]

    async def test_index_stats(self, service):
        stats = service.get_index_stats()

        assert stats.total_items == 5
        assert stats.projects == 1
        assert stats.tasks == 1
        assert stats.notes == 1
        # snippets include ideas
        assert stats.snippets == 2
        assert stats.last_update == service.last_rebuild
        assert stats.to_dict()["totalItems"] == 5
