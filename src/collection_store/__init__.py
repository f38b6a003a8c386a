"""Paginated collection state kept consistent with the backend."""

from .errors import StoreInvariantError
from .models import Page, QueryState, StoreSnapshot, entity_id
from .store import CollectionStore, EntitySnapshot

__all__ = [
    "CollectionStore",
    "EntitySnapshot",
    "Page",
    "QueryState",
    "StoreSnapshot",
    "StoreInvariantError",
    "entity_id",
]
