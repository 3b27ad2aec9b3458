# src/sitedash/services/projects.py
from __future__ import annotations

from sitedash.schemas.project import Project, ProjectCreate, ProjectUpdate

from .api_client import EntityClient


class ProjectsClient(EntityClient[Project]):
    """
    Projects endpoints:
      GET /projects, GET /projects/{id}, POST /projects,
      PUT /projects/{id}, DELETE /projects/{id}
    """

    path = "/projects"
    entity_name = "project"
    model = Project
    create_model = ProjectCreate
    update_model = ProjectUpdate
