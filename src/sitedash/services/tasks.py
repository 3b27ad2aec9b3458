# src/sitedash/services/tasks.py
from __future__ import annotations

from typing import List

from sitedash.errors import NotFound
from sitedash.schemas.task import Task, TaskCreate, TaskUpdate

from .api_client import EntityClient


class TasksClient(EntityClient[Task]):
    """Tasks are listed per project and mutated through /tasks/{id}."""

    path = "/tasks"
    entity_name = "task"
    model = Task
    create_model = TaskCreate
    update_model = TaskUpdate

    async def list_by_project(self, project_id: str) -> List[Task]:
        try:
            data = await self.api.get(f"/projects/{project_id}/tasks")
        except NotFound as e:
            raise NotFound(
                f"Project {project_id} not found",
                entity="project",
                entity_id=project_id,
                status_code=e.status_code,
                cause=e,
            ) from e
        return self._decode_many(data)
