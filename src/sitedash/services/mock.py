# src/sitedash/services/mock.py
"""
In-memory stand-in for the REST backend.

The demo clients expose the same operations as the HTTP clients and play the
server's role: they assign identifiers and timestamps on create, merge
partial updates and raise NotFound for unknown ids. Used by the CLI's
--demo mode and by tests that want realistic data without HTTP.
"""
from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sitedash.app_logger import get_logger
from sitedash.errors import NotFound
from sitedash.schemas.base import APIModel
from sitedash.schemas.project import Project
from sitedash.schemas.resource import Resource
from sitedash.schemas.task import Task

from .api_client import E, EntityClient
from .projects import ProjectsClient
from .resources import ResourcesClient
from .tasks import TasksClient

log = get_logger("services.mock")

# Stavanger-area construction projects, budgets in NOK
SEED_PROJECTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Stavanger Sentrum Office Complex",
        "description": "Modern 8-story sustainable office building in downtown Stavanger with green energy systems",
        "startDate": "2024-03-15",
        "endDate": "2025-11-30",
        "status": "in-progress",
        "budget": 185000000,
        "location": "Stavanger Sentrum",
        "manager": "Lars Andersen",
        "progress": 68,
    },
    {
        "id": "2",
        "name": "Forus Business Park Expansion",
        "description": "Expansion of Forus industrial area with new logistics and tech facilities",
        "startDate": "2024-05-01",
        "endDate": "2026-08-31",
        "status": "in-progress",
        "budget": 320000000,
        "location": "Forus, Sandnes",
        "manager": "Ingrid Olsen",
        "progress": 42,
    },
    {
        "id": "3",
        "name": "Ryfast Tunnel Maintenance",
        "description": "Major maintenance and safety upgrades to the Ryfast undersea tunnel system",
        "startDate": "2024-01-10",
        "endDate": "2024-12-20",
        "status": "in-progress",
        "budget": 95000000,
        "location": "Ryfast Tunnel Network",
        "manager": "Bjørn Hansen",
        "progress": 75,
    },
    {
        "id": "4",
        "name": "Hillevåg Residential Development",
        "description": "Sustainable residential complex with 180 apartments and community facilities",
        "startDate": "2023-09-01",
        "endDate": "2024-10-15",
        "status": "completed",
        "budget": 425000000,
        "location": "Hillevåg, Stavanger",
        "manager": "Kari Johansen",
        "progress": 100,
    },
    {
        "id": "5",
        "name": "Stavanger University Hospital Extension",
        "description": "New medical wing with advanced treatment facilities and research center",
        "startDate": "2024-02-01",
        "endDate": "2026-06-30",
        "status": "planning",
        "budget": 580000000,
        "location": "Stavanger Universitetssykehus",
        "manager": "Erik Sørensen",
        "progress": 18,
    },
    {
        "id": "6",
        "name": "Sandnes Town Square Renovation",
        "description": "Complete renovation of historic town square with modern public spaces",
        "startDate": "2024-04-01",
        "endDate": "2025-05-31",
        "status": "on-hold",
        "budget": 78000000,
        "location": "Sandnes Sentrum",
        "manager": "Maria Berg",
        "progress": 28,
    },
    {
        "id": "7",
        "name": "Offshore Wind Port Facility",
        "description": "New port infrastructure for offshore wind turbine assembly and maintenance",
        "startDate": "2024-06-01",
        "endDate": "2026-12-31",
        "status": "planning",
        "budget": 890000000,
        "location": "Tananger Harbor",
        "manager": "Ole Kristiansen",
        "progress": 12,
    },
    {
        "id": "8",
        "name": "Eiganes School Modernization",
        "description": "Complete modernization of Eiganes school with sustainable design",
        "startDate": "2024-01-15",
        "endDate": "2025-08-20",
        "status": "in-progress",
        "budget": 125000000,
        "location": "Eiganes, Stavanger",
        "manager": "Anna Pedersen",
        "progress": 55,
    },
]

SEED_TASKS: List[Dict[str, Any]] = [
    {
        "id": "t1",
        "projectId": "3",
        "title": "Inspect tunnel lining",
        "description": "Survey concrete lining for cracks and water ingress",
        "status": "completed",
        "priority": "high",
        "assignedTo": ["r1"],
        "startDate": "2024-01-10",
        "dueDate": "2024-03-01",
        "completedDate": "2024-02-26",
        "dependencies": [],
        "progress": 100,
    },
    {
        "id": "t2",
        "projectId": "3",
        "title": "Upgrade emergency lighting",
        "description": "Replace lighting in evacuation niches",
        "status": "in-progress",
        "priority": "high",
        "assignedTo": ["r1"],
        "startDate": "2024-03-01",
        "dueDate": "2024-09-30",
        "dependencies": ["t1"],
        "progress": 60,
    },
    {
        "id": "t3",
        "projectId": "1",
        "title": "Install solar facade",
        "description": "",
        "status": "todo",
        "priority": "medium",
        "assignedTo": [],
        "startDate": "2025-02-01",
        "dueDate": "2025-06-30",
        "dependencies": [],
        "progress": 0,
    },
]

SEED_RESOURCES: List[Dict[str, Any]] = [
    {
        "id": "r1",
        "name": "Tunnel maintenance crew",
        "type": "labor",
        "category": "Civil",
        "availability": "in-use",
        "cost": 1450,
        "unit": "hour",
        "quantity": 12,
        "location": "Ryfast Tunnel Network",
        "assignedProjects": ["3"],
        "specifications": {"certification": "Tunnel safety level 2"},
    },
    {
        "id": "r2",
        "name": "Mobile crane 60t",
        "type": "equipment",
        "category": "Lifting",
        "availability": "available",
        "cost": 18000,
        "unit": "day",
        "quantity": 1,
        "location": "Forus, Sandnes",
        "assignedProjects": ["1", "2"],
        "specifications": {"capacity": "60t", "boom": "48m"},
    },
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DemoEntityClient(EntityClient[E]):
    """Dict-backed version of EntityClient; no HTTP involved."""

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None, latency: float = 0.0) -> None:
        super().__init__(api=None)  # type: ignore[arg-type]
        self.latency = latency
        stamp = _now()
        self._rows: Dict[str, E] = {}
        for raw in seed or []:
            row = {"createdAt": stamp, "updatedAt": stamp, **raw}
            entity = self.model.model_validate(row)
            self._rows[entity.id] = entity  # type: ignore[assignment]
        self._ids = itertools.count(len(self._rows) + 1)

    async def _pause(self) -> None:
        # Always yield, so concurrent callers interleave like real I/O
        await asyncio.sleep(self.latency)

    def _next_id(self) -> str:
        new_id = str(next(self._ids))
        while new_id in self._rows:
            new_id = str(next(self._ids))
        return new_id

    def _missing(self, entity_id: str) -> NotFound:
        return NotFound(
            f"{self.entity_name.capitalize()} {entity_id} not found",
            entity=self.entity_name,
            entity_id=entity_id,
            status_code=404,
        )

    async def list(self) -> List[E]:
        await self._pause()
        return list(self._rows.values())

    async def get(self, entity_id: str) -> E:
        await self._pause()
        try:
            return self._rows[entity_id]
        except KeyError:
            raise self._missing(entity_id) from None

    async def create(self, payload: Union[APIModel, Dict[str, Any]]) -> E:
        data = self._coerce(self.create_model, payload).model_dump()
        await self._pause()
        stamp = _now()
        entity = self.model.model_validate(
            {**data, "id": self._next_id(), "created_at": stamp, "updated_at": stamp}
        )
        self._rows[entity.id] = entity  # type: ignore[assignment]
        log.debug("[demo] created %s %s", self.entity_name, entity.id)
        return entity  # type: ignore[return-value]

    async def update(self, entity_id: str, partial: Union[APIModel, Dict[str, Any]]) -> E:
        if isinstance(partial, dict):
            partial = {**partial, "id": entity_id}
        changes = self._coerce(self.update_model, partial).model_dump(exclude_unset=True)
        changes.pop("id", None)
        await self._pause()
        current = self._rows.get(entity_id)
        if current is None:
            raise self._missing(entity_id)
        merged = {**current.model_dump(), **changes, "updated_at": _now()}
        entity = self.model.model_validate(merged)
        self._rows[entity_id] = entity  # type: ignore[assignment]
        return entity  # type: ignore[return-value]

    async def delete(self, entity_id: str) -> None:
        await self._pause()
        self._rows.pop(entity_id, None)


class DemoProjectsClient(DemoEntityClient[Project]):
    entity_name = ProjectsClient.entity_name
    model = ProjectsClient.model
    create_model = ProjectsClient.create_model
    update_model = ProjectsClient.update_model

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None, latency: float = 0.0) -> None:
        super().__init__(SEED_PROJECTS if seed is None else seed, latency)


class DemoTasksClient(DemoEntityClient[Task]):
    entity_name = TasksClient.entity_name
    model = TasksClient.model
    create_model = TasksClient.create_model
    update_model = TasksClient.update_model

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None, latency: float = 0.0) -> None:
        super().__init__(SEED_TASKS if seed is None else seed, latency)

    async def list_by_project(self, project_id: str) -> List[Task]:
        await self._pause()
        return [t for t in self._rows.values() if t.project_id == project_id]


class DemoResourcesClient(DemoEntityClient[Resource]):
    entity_name = ResourcesClient.entity_name
    model = ResourcesClient.model
    create_model = ResourcesClient.create_model
    update_model = ResourcesClient.update_model

    def __init__(self, seed: Optional[List[Dict[str, Any]]] = None, latency: float = 0.0) -> None:
        super().__init__(SEED_RESOURCES if seed is None else seed, latency)

    async def list_by_project(self, project_id: str) -> List[Resource]:
        await self._pause()
        return [r for r in self._rows.values() if project_id in r.assigned_projects]
