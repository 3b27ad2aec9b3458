"""SiteDash: client-side data synchronization for a construction project dashboard."""

from .errors import (
    ErrorKind,
    NetworkFailure,
    NotFound,
    SiteDashError,
    UnknownFailure,
    ValidationFailure,
)
from .notifications import Notification, NotificationRelay, Severity
from .store import CacheStore, EntityCollection, LoadStatus
from .sync import OperationResult, ProjectSync
from .views import ProjectFilters, ProjectStats, SortKey, compute_stats, derive_view, progress_level

__version__ = "0.1.0"

__all__ = [
    "CacheStore",
    "EntityCollection",
    "ErrorKind",
    "LoadStatus",
    "NetworkFailure",
    "NotFound",
    "Notification",
    "NotificationRelay",
    "OperationResult",
    "ProjectFilters",
    "ProjectStats",
    "ProjectSync",
    "Severity",
    "SiteDashError",
    "SortKey",
    "UnknownFailure",
    "ValidationFailure",
    "compute_stats",
    "derive_view",
    "progress_level",
]
