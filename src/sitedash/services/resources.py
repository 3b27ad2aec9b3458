# src/sitedash/services/resources.py
from __future__ import annotations

from typing import List

from sitedash.errors import NotFound
from sitedash.schemas.resource import Resource, ResourceCreate, ResourceUpdate

from .api_client import EntityClient


class ResourcesClient(EntityClient[Resource]):
    """
    Only the per-project listing is relied on by the dashboard. The generic
    create/update/delete inherited from EntityClient target /resources and
    depend on the backend actually exposing them.
    """

    path = "/resources"
    entity_name = "resource"
    model = Resource
    create_model = ResourceCreate
    update_model = ResourceUpdate

    async def list_by_project(self, project_id: str) -> List[Resource]:
        try:
            data = await self.api.get(f"/projects/{project_id}/resources")
        except NotFound as e:
            raise NotFound(
                f"Project {project_id} not found",
                entity="project",
                entity_id=project_id,
                status_code=e.status_code,
                cause=e,
            ) from e
        return self._decode_many(data)
