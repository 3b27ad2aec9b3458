# tests/conftest.py
from __future__ import annotations

import json
import logging
import os
import re
import sys
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from sitedash.notifications import NotificationRelay
from sitedash.schemas.project import Project
from sitedash.services import ApiClient, ProjectsClient, ResourcesClient, TasksClient
from sitedash.settings import Settings
from sitedash.store import CacheStore
from sitedash.sync import ProjectSync

BASE_URL = "http://api.test/api"


# =========================
# Logging -> stdout
# =========================
@pytest.fixture(scope="session", autouse=True)
def _tests_log_to_stdout():
    """
    Ensure test logs go to stdout so they show up under pytest -s or log_cli=true.
    Avoid duplicates if handler is already present.
    """
    root = logging.getLogger()
    want = None
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout:
            want = h
            break
    if want is None:
        want = logging.StreamHandler(sys.stdout)
        want.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(want)

    root.setLevel(os.getenv("TEST_LOG_LEVEL", "INFO").upper())


# Make anyio run on asyncio
@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ==============================================================
# Sample data
# ==============================================================

def project_row(pid: str, name: str, **overrides: Any) -> Dict[str, Any]:
    row = {
        "id": pid,
        "name": name,
        "description": f"{name} description",
        "startDate": "2024-01-01",
        "endDate": "2024-12-31",
        "status": "planning",
        "budget": 1000,
        "location": "Stavanger",
        "manager": "Kari",
        "progress": 0,
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    row.update(overrides)
    return row


def task_row(tid: str, project_id: str, title: str, **overrides: Any) -> Dict[str, Any]:
    row = {
        "id": tid,
        "projectId": project_id,
        "title": title,
        "description": "",
        "status": "todo",
        "priority": "medium",
        "assignedTo": [],
        "startDate": "2024-02-01",
        "dueDate": "2024-03-01",
        "dependencies": [],
        "progress": 0,
    }
    row.update(overrides)
    return row


def make_project(pid: str, name: str, **overrides: Any) -> Project:
    return Project.model_validate(project_row(pid, name, **overrides))


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url=BASE_URL, request_timeout=2.0, max_retries=0, notification_duration=6.0)


# ==============================================================
# Fake REST backend behind httpx.MockTransport
# ==============================================================

class FakeBackend:
    """
    Minimal in-process REST server for the endpoints the clients use.
    `fail` maps (method, path) to a status code or an exception to raise.
    """

    def __init__(self) -> None:
        self.projects: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.fail: Dict[tuple, Any] = {}
        self._next = 100

    def _new_id(self) -> str:
        self._next += 1
        return str(self._next)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        assert path.startswith("/api"), path
        path = path[len("/api"):]
        method = request.method

        for (m, pattern), outcome in self.fail.items():
            if m == method and re.fullmatch(pattern, path):
                if isinstance(outcome, Exception):
                    raise outcome
                if isinstance(outcome, httpx.Response):
                    return outcome
                return httpx.Response(outcome, json={"detail": f"forced {outcome}"})

        body = json.loads(request.content) if request.content else None

        if path == "/projects":
            if method == "GET":
                return httpx.Response(200, json=list(self.projects.values()))
            if method == "POST":
                pid = self._new_id()
                row = {**body, "id": pid, "createdAt": "2024-06-01T10:00:00Z", "updatedAt": "2024-06-01T10:00:00Z"}
                self.projects[pid] = row
                return httpx.Response(201, json=row)

        m = re.fullmatch(r"/projects/([^/]+)", path)
        if m:
            pid = m.group(1)
            if pid not in self.projects:
                return httpx.Response(404, json={"detail": "Project not found"})
            if method == "GET":
                return httpx.Response(200, json=self.projects[pid])
            if method == "PUT":
                self.projects[pid] = {**self.projects[pid], **body, "updatedAt": "2024-06-02T10:00:00Z"}
                return httpx.Response(200, json=self.projects[pid])
            if method == "DELETE":
                del self.projects[pid]
                return httpx.Response(204)

        m = re.fullmatch(r"/projects/([^/]+)/tasks", path)
        if m and method == "GET":
            pid = m.group(1)
            if pid not in self.projects:
                return httpx.Response(404, json={"detail": "Project not found"})
            return httpx.Response(200, json=[t for t in self.tasks.values() if t["projectId"] == pid])

        m = re.fullmatch(r"/projects/([^/]+)/resources", path)
        if m and method == "GET":
            pid = m.group(1)
            return httpx.Response(
                200, json=[r for r in self.resources.values() if pid in r.get("assignedProjects", [])]
            )

        if path == "/tasks" and method == "POST":
            tid = self._new_id()
            row = {**body, "id": tid}
            self.tasks[tid] = row
            return httpx.Response(201, json=row)

        m = re.fullmatch(r"/tasks/([^/]+)", path)
        if m:
            tid = m.group(1)
            if tid not in self.tasks:
                return httpx.Response(404, json={"detail": "Task not found"})
            if method == "PUT":
                self.tasks[tid] = {**self.tasks[tid], **body}
                return httpx.Response(200, json=self.tasks[tid])
            if method == "DELETE":
                del self.tasks[tid]
                return httpx.Response(204)

        return httpx.Response(405, json={"detail": f"{method} {path} not handled"})


@pytest.fixture
def backend() -> FakeBackend:
    b = FakeBackend()
    b.projects["1"] = project_row("1", "Zeta", budget=100, progress=20)
    b.projects["2"] = project_row("2", "Alpha", budget=500, progress=90, status="in-progress")
    b.tasks["t1"] = task_row("t1", "1", "Pour foundation")
    b.resources["r1"] = {
        "id": "r1",
        "name": "Excavator",
        "type": "equipment",
        "category": "Earthworks",
        "availability": "available",
        "cost": 9000,
        "unit": "day",
        "quantity": 2,
        "location": "Forus",
        "assignedProjects": ["1"],
        "specifications": {"weight": "20t"},
    }
    return b


@pytest.fixture
def api(backend: FakeBackend, settings: Settings) -> ApiClient:
    return ApiClient(settings=settings, transport=httpx.MockTransport(backend.handler))


@pytest.fixture
def relay() -> NotificationRelay:
    return NotificationRelay(duration=None)


@pytest.fixture
def sync(api: ApiClient, relay: NotificationRelay) -> ProjectSync:
    return ProjectSync(
        CacheStore(),
        ProjectsClient(api),
        TasksClient(api),
        ResourcesClient(api),
        notifier=relay,
    )
