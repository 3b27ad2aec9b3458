from __future__ import annotations

import asyncio

import httpx
import pytest

from sitedash.errors import ErrorKind, NetworkFailure
from sitedash.notifications import NotificationRelay, Severity
from sitedash.services.mock import DemoProjectsClient, DemoResourcesClient, DemoTasksClient
from sitedash.store import CacheStore, LoadStatus
from sitedash.sync import ProjectSync
from sitedash.views import ProjectFilters, derive_view

pytestmark = pytest.mark.anyio


async def test_fetch_projects_loads_collection(sync):
    seen = []
    sync.store.subscribe(seen.append)
    result = await sync.fetch_projects()
    assert result.ok
    assert sync.store.projects.ids == ["1", "2"]
    assert sync.store.projects.status is LoadStatus.LOADED
    assert seen == ["projects", "projects"]


async def test_fetch_failure_records_message_only(sync, backend):
    await sync.fetch_projects()
    backend.fail[("GET", "/projects")] = httpx.ConnectError("down")
    result = await sync.fetch_projects()
    assert not result.ok
    assert result.error.kind is ErrorKind.NETWORK
    coll = sync.store.projects
    assert coll.loading is False
    assert coll.status is LoadStatus.FAILED
    assert "Network error" in coll.error
    assert coll.ids == ["1", "2"]


async def test_create_inserts_server_entity_and_notifies(sync, relay):
    await sync.fetch_projects()
    result = await sync.create_project(
        {"name": "Harbor", "startDate": "2024-01-01", "endDate": "2024-06-01", "budget": 10}
    )
    assert result.ok
    created = result.value
    assert created.id == "101"
    assert sync.store.projects.ids == ["1", "2", "101"]
    assert sync.store.projects.get("101") == created
    assert relay.state.visible
    assert relay.state.severity is Severity.SUCCESS
    assert relay.state.message == "Project created successfully"


async def test_failed_create_leaves_cache_unchanged(sync, backend, relay):
    await sync.fetch_projects()
    before = list(sync.store.projects.items)
    backend.fail[("POST", "/projects")] = 500
    payload = {"name": "Harbor", "startDate": "2024-01-01", "endDate": "2024-06-01"}
    result = await sync.create_project(payload)
    assert not result.ok
    assert sync.store.projects.items == before
    assert sync.store.projects.mutation_error == result.message
    assert sync.store.projects.error is None
    assert relay.state.severity is Severity.ERROR
    assert relay.state.message.startswith("Failed to create project:")

    # retry with the same payload once the server recovers
    del backend.fail[("POST", "/projects")]
    retry = await sync.create_project(payload)
    assert retry.ok
    assert sync.store.projects.mutation_error is None


async def test_local_validation_failure_surfaces_as_result(sync, backend):
    await sync.fetch_projects()
    sent = len(backend.requests)
    result = await sync.create_project({"name": "Bad", "startDate": "2024-06-01", "endDate": "2024-01-01"})
    assert not result.ok
    assert result.error.kind is ErrorKind.VALIDATION
    assert len(backend.requests) == sent


async def test_update_replaces_and_selected_follows(sync):
    await sync.fetch_projects()
    assert sync.select_project("1").name == "Zeta"
    result = await sync.update_project("1", {"name": "Zeta Prime"})
    assert result.ok
    assert sync.store.projects.selected.name == "Zeta Prime"
    assert [p.name for p in sync.store.projects] == ["Zeta Prime", "Alpha"]


async def test_update_not_found(sync, relay):
    await sync.fetch_projects()
    result = await sync.update_project("999", {"name": "x"})
    assert not result.ok
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert sync.store.projects.ids == ["1", "2"]
    assert relay.state.message == "Failed to update project: Project 999 not found"


async def test_delete_removes_and_clears_selection(sync):
    await sync.fetch_projects()
    sync.select_project("2")
    result = await sync.delete_project("2")
    assert result.ok
    assert result.value == "2"
    assert sync.store.projects.ids == ["1"]
    assert sync.store.projects.selected is None


async def test_refresh_project_never_inserts(sync, backend):
    await sync.fetch_projects()
    backend.projects["50"] = dict(backend.projects["1"], id="50")
    result = await sync.refresh_project("50")
    assert result.ok
    assert "50" not in sync.store.projects


async def test_concurrent_mutations_on_different_ids():
    store = CacheStore()
    projects = DemoProjectsClient(latency=0.01)
    sync = ProjectSync(store, projects, notifier=NotificationRelay(duration=None))
    await sync.fetch_projects()

    results = await asyncio.gather(
        sync.update_project("1", {"progress": 99}),
        sync.delete_project("2"),
        sync.update_project("3", {"name": "Ryfast Tunnel Phase 2"}),
        sync.create_project({"name": "New Pier", "startDate": "2025-01-01", "endDate": "2025-12-31"}),
    )
    assert all(r.ok for r in results)
    coll = store.projects
    assert coll.get("1").progress == 99
    assert "2" not in coll
    assert coll.get("3").name == "Ryfast Tunnel Phase 2"
    assert coll.ids[-1] == results[3].value.id
    assert len(coll) == 8


async def test_late_completion_after_close_is_discarded():
    store = CacheStore()
    relay = NotificationRelay(duration=None)
    sync = ProjectSync(store, DemoProjectsClient(latency=0.05), notifier=relay)
    await sync.fetch_projects()

    pending = asyncio.ensure_future(sync.update_project("1", {"progress": 1}))
    await asyncio.sleep(0)
    sync.close()
    result = await pending

    assert result.discarded
    assert store.projects.get("1").progress == 68
    assert relay.visible is False


async def test_open_project_loads_details(sync):
    result = await sync.open_project("1")
    assert result.ok
    assert result.value.name == "Zeta"
    assert sync.store.projects.selected_id == "1"
    tasks = sync.store.tasks_for("1")
    resources = sync.store.resources_for("1")
    assert [t.title for t in tasks] == ["Pour foundation"]
    assert [r.name for r in resources] == ["Excavator"]
    assert tasks.status is LoadStatus.LOADED
    assert resources.status is LoadStatus.LOADED


async def test_open_project_unknown_id(sync, relay):
    result = await sync.open_project("nope")
    assert not result.ok
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert relay.state.severity is Severity.WARNING
    assert relay.state.message == "Project not found."


async def test_open_project_when_list_fails(sync, backend):
    backend.fail[("GET", "/projects")] = httpx.ConnectError("down")
    result = await sync.open_project("1")
    assert not result.ok
    assert isinstance(result.error, NetworkFailure)
    assert sync.store.projects.error


async def test_resource_failure_does_not_affect_tasks(sync, backend):
    backend.fail[("GET", r"/projects/1/resources")] = 500
    result = await sync.open_project("1")
    assert result.ok
    assert sync.store.tasks_for("1").status is LoadStatus.LOADED
    assert sync.store.resources_for("1").status is LoadStatus.FAILED
    assert "HTTP 500" in sync.store.resources_for("1").error


async def test_task_lifecycle(sync, relay):
    await sync.open_project("1")
    created = await sync.create_task(
        {"projectId": "1", "title": "Frame walls", "startDate": "2024-03-01", "dueDate": "2024-04-01"}
    )
    assert created.ok
    tasks = sync.store.tasks_for("1")
    assert tasks.ids == ["t1", created.value.id]
    assert relay.state.message == "Task created successfully"

    updated = await sync.update_task(created.value.id, {"status": "completed", "progress": 100})
    assert updated.ok
    assert tasks.get(created.value.id).progress == 100

    deleted = await sync.delete_task("t1")
    assert deleted.ok
    assert tasks.ids == [created.value.id]


async def test_task_moved_to_another_project(sync):
    await sync.open_project("1")
    await sync.open_project("2")
    result = await sync.update_task("t1", {"projectId": "2"})
    assert result.ok
    assert "t1" not in sync.store.tasks_for("1")
    assert "t1" in sync.store.tasks_for("2")


async def test_failed_task_delete_keeps_task(sync, backend):
    await sync.open_project("1")
    backend.fail[("DELETE", r"/tasks/t1")] = httpx.ReadTimeout("slow")
    result = await sync.delete_task("t1")
    assert not result.ok
    tasks = sync.store.tasks_for("1")
    assert tasks.ids == ["t1"]
    assert tasks.mutation_error == result.message


async def test_view_recomputes_after_transitions():
    store = CacheStore()
    sync = ProjectSync(
        store,
        DemoProjectsClient(),
        DemoTasksClient(),
        DemoResourcesClient(),
        notifier=NotificationRelay(duration=None),
    )
    views = []
    filters = ProjectFilters(search="tunnel")
    store.subscribe(lambda name: views.append([p.id for p in derive_view(store.projects, filters)]))

    await sync.fetch_projects()
    await sync.delete_project("3")
    assert views[-2] == ["3"]
    assert views[-1] == []


async def test_fetch_finishing_after_close_leaves_store_usable():
    store = CacheStore()
    first = ProjectSync(store, DemoProjectsClient(latency=0.05), notifier=NotificationRelay(duration=None))
    pending = asyncio.ensure_future(first.fetch_projects())
    await asyncio.sleep(0.01)
    assert store.projects.status is LoadStatus.LOADING
    first.close()
    result = await pending

    assert result.discarded
    assert store.projects.status is LoadStatus.IDLE
    assert store.projects.loading is False
    assert len(store.projects) == 0

    second = ProjectSync(store, DemoProjectsClient(), notifier=NotificationRelay(duration=None))
    opened = await second.open_project("3")
    assert opened.ok
    assert opened.value.name == "Ryfast Tunnel Maintenance"


async def test_abandoned_refetch_keeps_loaded_items():
    store = CacheStore()
    first = ProjectSync(store, DemoProjectsClient(latency=0.05), notifier=NotificationRelay(duration=None))
    await first.fetch_projects()
    pending = asyncio.ensure_future(first.fetch_projects())
    await asyncio.sleep(0.01)
    first.close()
    await pending
    assert store.projects.status is LoadStatus.LOADED
    assert len(store.projects) == 8


async def test_open_project_waits_for_running_list_fetch():
    relay = NotificationRelay(duration=None)
    sync = ProjectSync(
        CacheStore(),
        DemoProjectsClient(latency=0.02),
        DemoTasksClient(),
        DemoResourcesClient(),
        notifier=relay,
    )
    fetched, opened = await asyncio.gather(sync.fetch_projects(), sync.open_project("3"))
    assert fetched.ok
    assert opened.ok
    assert opened.value.id == "3"
    assert sync.store.projects.selected_id == "3"
    assert relay.visible is False


async def test_concurrent_list_fetches_share_one_request(sync, backend):
    first, second = await asyncio.gather(sync.fetch_projects(), sync.fetch_projects())
    assert first.ok and second.ok
    gets = [r for r in backend.requests if r.method == "GET" and r.url.path == "/api/projects"]
    assert len(gets) == 1


async def test_update_with_null_for_required_field_never_reaches_server(sync, backend, relay):
    await sync.fetch_projects()
    result = await sync.update_project("1", {"name": None})
    assert not result.ok
    assert result.error.kind is ErrorKind.VALIDATION
    assert "name must not be null" in result.message
    assert backend.projects["1"]["name"] == "Zeta"
    assert not [r for r in backend.requests if r.method == "PUT"]
    assert sync.store.projects.get("1").name == "Zeta"
    assert relay.state.severity is Severity.ERROR


async def test_delete_project_drops_its_detail_collections(sync):
    await sync.open_project("1")
    assert sync.store.tasks_for("1").status is LoadStatus.LOADED
    result = await sync.delete_project("1")
    assert result.ok
    assert "1" not in dict(sync.store.task_collections())
    assert "1" not in dict(sync.store.resource_collections())


async def test_create_task_skips_unloaded_collection(sync, backend):
    result = await sync.create_task(
        {"projectId": "2", "title": "Survey", "startDate": "2024-03-01", "dueDate": "2024-04-01"}
    )
    assert result.ok
    tasks = sync.store.tasks_for("2")
    assert tasks.status is LoadStatus.IDLE
    assert len(tasks) == 0

    await sync.load_tasks("2")
    assert tasks.ids == [result.value.id]
