from .base import APIModel, EntityModel, UpdateModel
from .project import Project, ProjectCreate, ProjectStatus, ProjectUpdate
from .resource import (
    Resource,
    ResourceAvailability,
    ResourceCreate,
    ResourceType,
    ResourceUpdate,
)
from .task import Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate

__all__ = [
    "APIModel",
    "EntityModel",
    "Project",
    "ProjectCreate",
    "ProjectStatus",
    "ProjectUpdate",
    "Resource",
    "ResourceAvailability",
    "ResourceCreate",
    "ResourceType",
    "ResourceUpdate",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "UpdateModel",
]
