"""Data models for paginated collection state.

Entities themselves are opaque: the store only ever reads their ``id``,
either as a mapping key or as an attribute.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Hashable, Mapping, Optional, Tuple

DEFAULT_PAGE_SIZE = 20


def entity_id(entity: Any) -> Hashable:
    """Return the stable identifier of an entity.

    Args:
        entity: A mapping with an ``id`` key or an object with an ``id`` attribute

    Raises:
        KeyError: If the entity carries no id
    """
    if isinstance(entity, Mapping):
        return entity['id']
    try:
        return entity.id
    except AttributeError:
        raise KeyError(f"Entity of type {type(entity).__name__} has no 'id'") from None


@dataclass(frozen=True)
class Page:
    """One window of a larger server-held collection.

    Attributes:
        items: Entities on this page, in server-defined order
        total: Server's authoritative count of the whole collection
        page: 1-based page number
        size: Page size (maximum number of items on a page)

    Example:
        >>> Page(items=({'id': 1}, {'id': 2}), total=5, page=1, size=2)
    """
    items: Tuple[Any, ...] = ()
    total: int = 0
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")
        object.__setattr__(self, 'items', tuple(self.items))


@dataclass(frozen=True)
class QueryState:
    """Parameters of the request that populated a store.

    Kept so refresh and navigation know which page to re-request.

    Attributes:
        page: 1-based page number
        size: Page size
        filters: Feature-specific filters and sort options
    """
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE
    filters: Dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> Dict[str, Any]:
        """Flatten into request query parameters (filters first, then paging)."""
        params = dict(self.filters)
        params['page'] = self.page
        params['size'] = self.size
        return params

    def with_page(self, page: int) -> 'QueryState':
        return replace(self, page=page)

    def with_size(self, size: int) -> 'QueryState':
        """Change the page size; goes back to the first page."""
        return replace(self, page=1, size=size)

    def merged(self, **params: Any) -> 'QueryState':
        """Return a query with ``params`` laid over this one.

        ``page`` and ``size`` update the paging fields; everything else is a
        filter. A filter passed as None is removed.
        """
        page = params.pop('page', None) or self.page
        size = params.pop('size', None) or self.size
        filters = dict(self.filters)
        for key, value in params.items():
            if value is None:
                filters.pop(key, None)
            else:
                filters[key] = value
        return QueryState(page=page, size=size, filters=filters)


@dataclass(frozen=True)
class StoreSnapshot:
    """Opaque capture of a store's full state, consumed by restore()."""
    items: Tuple[Any, ...]
    total: int
    page: int
    size: int
    query: Optional[QueryState]
