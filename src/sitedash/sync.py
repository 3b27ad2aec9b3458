# src/sitedash/sync.py
"""
Data synchronization between the Remote Access Layer and the Cache Store.

Each operation awaits exactly one remote call (two for `open_project`),
then applies the matching cache transition and emits a notification.
The cache is only touched after the call has resolved, so a failed call
leaves the collection as it was. Results are returned as
`OperationResult` so callers can keep a form open and retry.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Generic, List, Optional, TypeVar, Union

from sitedash.app_logger import get_logger
from sitedash.errors import NotFound, SiteDashError
from sitedash.notifications import NotificationRelay
from sitedash.schemas.base import APIModel
from sitedash.schemas.project import Project
from sitedash.schemas.resource import Resource
from sitedash.schemas.task import Task
from sitedash.store.cache import CacheStore, EntityCollection, LoadStatus

log = get_logger("sync")

T = TypeVar("T")

Payload = Union[APIModel, Dict[str, Any]]


@dataclass
class OperationResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[SiteDashError] = None
    # True when the call completed after close(); nothing was applied
    discarded: bool = False

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


class ProjectSync:
    """
    Orchestrates dashboard actions: remote call -> cache transition -> notification.

    The clients are duck-typed: the HTTP clients in `sitedash.services` and
    the demo clients in `sitedash.services.mock` are interchangeable.
    """

    def __init__(
        self,
        store: CacheStore,
        projects,
        tasks=None,
        resources=None,
        notifier: Optional[NotificationRelay] = None,
    ) -> None:
        self.store = store
        self.projects_client = projects
        self.tasks_client = tasks
        self.resources_client = resources
        self.notifier = notifier or NotificationRelay()
        self._closed = False
        self._projects_fetch: Optional[asyncio.Future] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop applying results; in-flight calls finish but are discarded."""
        self._closed = True
        self.notifier.close()

    async def _call(self, what: str, awaitable: Awaitable[T]) -> OperationResult[T]:
        try:
            value = await awaitable
        except SiteDashError as e:
            if self._closed:
                log.debug("discarding late failure of %s: %s", what, e.message)
                return OperationResult(ok=False, error=e, discarded=True)
            return OperationResult(ok=False, error=e)
        if self._closed:
            log.debug("discarding late result of %s", what)
            return OperationResult(ok=True, value=value, discarded=True)
        return OperationResult(ok=True, value=value)

    async def _load(
        self,
        coll: EntityCollection,
        what: str,
        awaitable: Awaitable[List[T]],
    ) -> OperationResult[List[T]]:
        """Run one fetch cycle on `coll`: loading, then loaded, failed or back where it was."""
        coll.fetch_started()
        try:
            result = await self._call(what, awaitable)
        except BaseException:
            coll.fetch_abandoned()
            raise
        if result.discarded:
            # The store outlives this sync; never leave it stuck in LOADING
            coll.fetch_abandoned()
        elif result.ok:
            coll.fetch_succeeded(result.value)
        else:
            coll.fetch_failed(result.message or f"Failed to {what}")
        return result

    # ---- projects ----------------------------------------------------
    async def fetch_projects(self) -> OperationResult[List[Project]]:
        """Load the project list; callers arriving while a load is running share it."""
        if self._projects_fetch is None or self._projects_fetch.done():
            self._projects_fetch = asyncio.ensure_future(
                self._load(self.store.projects, "fetch projects", self.projects_client.list())
            )
        return await asyncio.shield(self._projects_fetch)

    async def refresh_project(self, project_id: str) -> OperationResult[Project]:
        """Re-read one project; only replaces an already cached member."""
        result = await self._call("get project", self.projects_client.get(project_id))
        if result.discarded:
            return result
        if result.ok:
            self.store.projects.update_succeeded(result.value)
        return result

    async def create_project(self, payload: Payload) -> OperationResult[Project]:
        result = await self._call("create project", self.projects_client.create(payload))
        if result.discarded:
            return result
        if result.ok:
            self.store.projects.create_succeeded(result.value)
            self.notifier.show_success("Project created successfully")
        else:
            self._mutation_failed(self.store.projects, "create project", result)
        return result

    async def update_project(self, project_id: str, partial: Payload) -> OperationResult[Project]:
        result = await self._call("update project", self.projects_client.update(project_id, partial))
        if result.discarded:
            return result
        if result.ok:
            self.store.projects.update_succeeded(result.value)
            self.notifier.show_success("Project updated successfully")
        else:
            self._mutation_failed(self.store.projects, "update project", result)
        return result

    async def delete_project(self, project_id: str) -> OperationResult[str]:
        result = await self._call("delete project", self.projects_client.delete(project_id))
        if result.discarded:
            return result
        if result.ok:
            self.store.projects.delete_succeeded(project_id)
            self.store.drop_project(project_id)
            self.notifier.show_success("Project deleted successfully")
            return OperationResult(ok=True, value=project_id)
        self._mutation_failed(self.store.projects, "delete project", result)
        return result

    def select_project(self, project_id: Optional[str]) -> Optional[Project]:
        self.store.projects.select(project_id)
        return self.store.projects.selected

    async def open_project(self, project_id: str) -> OperationResult[Project]:
        """
        Select a project and load its tasks and resources.

        Loads the project list first unless it is already loaded; a load
        that is still running is awaited rather than read half-way.
        """
        coll = self.store.projects
        if coll.status is not LoadStatus.LOADED or self._fetch_running():
            fetched = await self.fetch_projects()
            if not fetched.ok or fetched.discarded:
                return OperationResult(ok=False, error=fetched.error, discarded=fetched.discarded)

        project = coll.get(project_id)
        if project is None:
            err = NotFound(f"Project {project_id} not found", entity="project", entity_id=project_id)
            self.notifier.show_warning("Project not found.")
            return OperationResult(ok=False, error=err)

        coll.select(project_id)
        loaders = []
        if self.tasks_client is not None:
            loaders.append(self.load_tasks(project_id))
        if self.resources_client is not None:
            loaders.append(self.load_resources(project_id))
        await asyncio.gather(*loaders)
        return OperationResult(ok=True, value=coll.selected)

    # ---- tasks -------------------------------------------------------
    async def load_tasks(self, project_id: str) -> OperationResult[List[Task]]:
        return await self._load(
            self.store.tasks_for(project_id),
            "fetch tasks",
            self.tasks_client.list_by_project(project_id),
        )

    async def create_task(self, payload: Payload) -> OperationResult[Task]:
        result = await self._call("create task", self.tasks_client.create(payload))
        if result.discarded:
            return result
        if result.ok:
            target = self.store.tasks_for(result.value.project_id)
            # An unloaded collection gets the task with its first fetch
            if target.status is LoadStatus.LOADED:
                target.create_succeeded(result.value)
            self.notifier.show_success("Task created successfully")
        else:
            holder = self._task_holder_for_payload(payload)
            self._mutation_failed(holder, "create task", result)
        return result

    async def update_task(self, task_id: str, partial: Payload) -> OperationResult[Task]:
        result = await self._call("update task", self.tasks_client.update(task_id, partial))
        if result.discarded:
            return result
        if result.ok:
            task = result.value
            # A task may have moved to another project
            for project_id, coll in self.store.task_collections():
                if project_id != task.project_id:
                    coll.delete_succeeded(task.id)
            target = self.store.tasks_for(task.project_id)
            if not target.update_succeeded(task) and target.status is LoadStatus.LOADED:
                target.create_succeeded(task)
            self.notifier.show_success("Task updated successfully")
        else:
            self._mutation_failed(self._task_holder(task_id), "update task", result)
        return result

    async def delete_task(self, task_id: str) -> OperationResult[str]:
        result = await self._call("delete task", self.tasks_client.delete(task_id))
        if result.discarded:
            return result
        if result.ok:
            for _, coll in self.store.task_collections():
                coll.delete_succeeded(task_id)
            self.notifier.show_success("Task deleted successfully")
            return OperationResult(ok=True, value=task_id)
        self._mutation_failed(self._task_holder(task_id), "delete task", result)
        return result

    # ---- resources ---------------------------------------------------
    async def load_resources(self, project_id: str) -> OperationResult[List[Resource]]:
        return await self._load(
            self.store.resources_for(project_id),
            "fetch resources",
            self.resources_client.list_by_project(project_id),
        )

    # ---- helpers -----------------------------------------------------
    def _fetch_running(self) -> bool:
        return self._projects_fetch is not None and not self._projects_fetch.done()

    def _mutation_failed(
        self,
        coll: Optional[EntityCollection],
        what: str,
        result: OperationResult,
    ) -> None:
        message = result.message or "Unknown error"
        log.warning("%s failed: %s", what, message)
        if coll is not None:
            coll.mutation_failed(message)
        self.notifier.show_error(f"Failed to {what}: {message}")

    def _task_holder(self, task_id: str) -> Optional[EntityCollection[Task]]:
        for _, coll in self.store.task_collections():
            if task_id in coll:
                return coll
        return None

    def _task_holder_for_payload(self, payload: Payload) -> Optional[EntityCollection[Task]]:
        if isinstance(payload, APIModel):
            project_id = getattr(payload, "project_id", None)
        else:
            project_id = payload.get("projectId") or payload.get("project_id")
        return self.store.tasks_for(project_id) if project_id else None
