# src/sitedash/schemas/task.py

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, model_validator

from .base import APIModel, EntityModel, UpdateModel


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Task(EntityModel):
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: List[str] = Field(default_factory=list)
    start_date: date
    due_date: date
    completed_date: Optional[date] = None
    dependencies: List[str] = Field(default_factory=list)
    progress: int = Field(0, ge=0, le=100)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskCreate(APIModel):
    project_id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: List[str] = Field(default_factory=list)
    start_date: date
    due_date: date
    completed_date: Optional[date] = None
    dependencies: List[str] = Field(default_factory=list)
    progress: int = Field(0, ge=0, le=100)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.due_date < self.start_date:
            raise ValueError("dueDate must not precede startDate")
        return self


class TaskUpdate(UpdateModel):
    nullable = frozenset({"completed_date"})

    id: str
    project_id: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[List[str]] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    completed_date: Optional[date] = None
    dependencies: Optional[List[str]] = None
    progress: Optional[int] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.due_date and self.due_date < self.start_date:
            raise ValueError("dueDate must not precede startDate")
        return self
