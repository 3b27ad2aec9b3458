from .cache import CacheStore, EntityCollection, LoadStatus

__all__ = ["CacheStore", "EntityCollection", "LoadStatus"]
