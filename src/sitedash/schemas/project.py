# src/sitedash/schemas/project.py

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from .base import APIModel, EntityModel, UpdateModel


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"


class Project(EntityModel):
    name: str
    description: str = ""
    start_date: date
    end_date: date
    status: ProjectStatus
    budget: float = Field(..., ge=0)
    location: str = ""
    manager: str = ""
    progress: int = Field(0, ge=0, le=100)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectCreate(APIModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    start_date: date
    end_date: date
    status: ProjectStatus = ProjectStatus.PLANNING
    budget: float = Field(0, ge=0)
    location: str = ""
    manager: str = ""
    progress: int = Field(0, ge=0, le=100)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not precede startDate")
        return self


class ProjectUpdate(UpdateModel):
    id: str
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None
    budget: Optional[float] = Field(None, ge=0)
    location: Optional[str] = None
    manager: Optional[str] = None
    progress: Optional[int] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def _check_dates(self):
        # Only checkable when both ends are part of the update
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not precede startDate")
        return self
