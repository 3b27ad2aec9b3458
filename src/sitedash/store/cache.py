# src/sitedash/store/cache.py
"""
Normalized in-memory cache of fetched entities.

One `EntityCollection` per entity type (tasks and resources get one per
project). Collections only change through the transition methods below,
which are driven by completed Remote Access calls. Every transition that
touches a member is keyed by identifier, so completions of independent
operations commute regardless of the order they arrive in.
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from sitedash.app_logger import get_logger
from sitedash.schemas.base import EntityModel
from sitedash.schemas.project import Project
from sitedash.schemas.resource import Resource
from sitedash.schemas.task import Task

log = get_logger("store")

E = TypeVar("E", bound=EntityModel)

Listener = Callable[[str], None]


class LoadStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class EntityCollection(Generic[E]):
    """
    Ordered collection of one entity type plus its fetch state.

    `error` is the blocking fetch error (the list could not be loaded).
    `mutation_error` is the message of the last failed create/update/delete;
    it never touches `items`.
    """

    def __init__(self, name: str, on_change: Optional[Listener] = None) -> None:
        self.name = name
        self.items: List[E] = []
        self.loading: bool = False
        self.error: Optional[str] = None
        self.mutation_error: Optional[str] = None
        self.status: LoadStatus = LoadStatus.IDLE
        self._status_before_fetch: LoadStatus = LoadStatus.IDLE
        self._error_before_fetch: Optional[str] = None
        self._selected_id: Optional[str] = None
        self._on_change = on_change

    # ---- read access -------------------------------------------------
    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[E]:
        return iter(self.items)

    def __contains__(self, entity_id: object) -> bool:
        return self._index_of(entity_id) is not None  # type: ignore[arg-type]

    def _index_of(self, entity_id: str) -> Optional[int]:
        for i, item in enumerate(self.items):
            if item.id == entity_id:
                return i
        return None

    def get(self, entity_id: str) -> Optional[E]:
        idx = self._index_of(entity_id)
        return None if idx is None else self.items[idx]

    @property
    def ids(self) -> List[str]:
        return [item.id for item in self.items]

    # ---- selection ---------------------------------------------------
    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def selected(self) -> Optional[E]:
        """Current cached version of the selected member, resolved by id."""
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def select(self, entity_id: Optional[str]) -> None:
        self._selected_id = entity_id
        self._changed()

    # ---- transitions -------------------------------------------------
    def fetch_started(self) -> None:
        if self.status is not LoadStatus.LOADING:
            self._status_before_fetch = self.status
            self._error_before_fetch = self.error
        self.loading = True
        self.error = None
        self.status = LoadStatus.LOADING
        self._changed()

    def fetch_succeeded(self, items: Sequence[E]) -> None:
        self.loading = False
        self.items = list(items)
        self.status = LoadStatus.LOADED
        log.debug("[%s] loaded %d items", self.name, len(self.items))
        self._changed()

    def fetch_failed(self, message: str) -> None:
        self.loading = False
        self.error = message
        self.status = LoadStatus.FAILED
        log.debug("[%s] fetch failed: %s", self.name, message)
        self._changed()

    def fetch_abandoned(self) -> None:
        """End a fetch whose result will never be applied; items are kept."""
        if self.status is not LoadStatus.LOADING:
            return
        self.loading = False
        self.status = self._status_before_fetch
        self.error = self._error_before_fetch
        log.debug("[%s] fetch abandoned, back to %s", self.name, self.status.value)
        self._changed()

    def create_succeeded(self, entity: E) -> None:
        # Replace rather than duplicate if the id is somehow already present
        idx = self._index_of(entity.id)
        if idx is None:
            self.items.append(entity)
        else:
            self.items[idx] = entity
        self.mutation_error = None
        self._changed()

    def update_succeeded(self, entity: E) -> bool:
        idx = self._index_of(entity.id)
        if idx is None:
            log.debug("[%s] update for unknown id %s ignored", self.name, entity.id)
            return False
        self.items[idx] = entity
        self.mutation_error = None
        self._changed()
        return True

    def delete_succeeded(self, entity_id: str) -> bool:
        idx = self._index_of(entity_id)
        if idx is None:
            return False
        del self.items[idx]
        if self._selected_id == entity_id:
            self._selected_id = None
        self.mutation_error = None
        self._changed()
        return True

    def mutation_failed(self, message: str) -> None:
        self.mutation_error = message
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.name)


class CacheStore:
    """
    Application-owned cache, constructed once by the application root and
    passed around explicitly.
    """

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self.projects: EntityCollection[Project] = EntityCollection("projects", self._notify)
        self._tasks: Dict[str, EntityCollection[Task]] = {}
        self._resources: Dict[str, EntityCollection[Resource]] = {}

    def tasks_for(self, project_id: str) -> EntityCollection[Task]:
        if project_id not in self._tasks:
            self._tasks[project_id] = EntityCollection(f"tasks:{project_id}", self._notify)
        return self._tasks[project_id]

    def resources_for(self, project_id: str) -> EntityCollection[Resource]:
        if project_id not in self._resources:
            self._resources[project_id] = EntityCollection(f"resources:{project_id}", self._notify)
        return self._resources[project_id]

    def task_collections(self) -> List[Tuple[str, EntityCollection[Task]]]:
        return list(self._tasks.items())

    def resource_collections(self) -> List[Tuple[str, EntityCollection[Resource]]]:
        return list(self._resources.items())

    def drop_project(self, project_id: str) -> None:
        """Forget the per-project task and resource collections of a deleted project."""
        dropped = [
            coll.name
            for coll in (self._tasks.pop(project_id, None), self._resources.pop(project_id, None))
            if coll is not None
        ]
        for name in dropped:
            self._notify(name)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener(collection_name)` after every transition."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(name)
            except Exception:
                log.exception("store listener failed for %s", name)
