# src/sitedash/views.py
"""
Derived views over cached projects.

Everything here is a pure function of its inputs: the cache is read,
never mutated, and a new list is returned on every call.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Callable, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from sitedash.schemas.project import Project, ProjectStatus

ALL_STATUSES = "all"


class SortKey(str, Enum):
    NAME = "name"
    START_DATE = "startDate"
    END_DATE = "endDate"
    BUDGET = "budget"
    PROGRESS = "progress"
    STATUS = "status"


class ProjectFilters(BaseModel):
    search: str = ""
    status: Union[ProjectStatus, Literal["all"]] = ALL_STATUSES


class ProjectStats(BaseModel):
    total: int = 0
    by_status: Dict[ProjectStatus, int] = Field(default_factory=dict)
    total_budget: float = 0.0
    avg_progress: int = 0


# Numeric keys are negated so every sort is ascending, which keeps
# Python's stable ordering for ties.
_SORT_KEYS: Dict[SortKey, Callable[[Project], object]] = {
    SortKey.NAME: lambda p: p.name,
    SortKey.START_DATE: lambda p: p.start_date,
    SortKey.END_DATE: lambda p: p.end_date,
    SortKey.BUDGET: lambda p: -p.budget,
    SortKey.PROGRESS: lambda p: -p.progress,
    SortKey.STATUS: lambda p: p.status.value,
}


def matches(project: Project, filters: ProjectFilters) -> bool:
    needle = filters.search.strip().casefold()
    if needle and needle not in project.name.casefold() and needle not in project.description.casefold():
        return False
    if filters.status != ALL_STATUSES and project.status != filters.status:
        return False
    return True


def derive_view(
    projects: Iterable[Project],
    filters: Optional[ProjectFilters] = None,
    sort: Optional[Union[SortKey, str]] = None,
) -> List[Project]:
    """
    Filter then sort.

    Name and status sort ascending, dates chronologically ascending,
    budget and progress highest first. Ties keep their input order.
    `sort=None` keeps cache order.
    """
    filters = filters or ProjectFilters()
    result = [p for p in projects if matches(p, filters)]
    if sort is not None:
        result.sort(key=_SORT_KEYS[SortKey(sort)])
    return result


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_stats(projects: Iterable[Project]) -> ProjectStats:
    items = list(projects)
    by_status = {status: 0 for status in ProjectStatus}
    for p in items:
        by_status[p.status] += 1

    total = len(items)
    avg = _round_half_up(sum(p.progress for p in items) / total) if total else 0
    return ProjectStats(
        total=total,
        by_status=by_status,
        total_budget=sum(p.budget for p in items),
        avg_progress=avg,
    )


def progress_level(progress: int) -> str:
    """Colour bucket for a progress bar."""
    if progress >= 75:
        return "success"
    if progress >= 50:
        return "primary"
    if progress >= 25:
        return "warning"
    return "error"
