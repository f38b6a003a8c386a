"""Paginated collection store.

A CollectionStore holds one page of entities for one query context together
with the pagination metadata the server reported. It is created explicitly
by the feature that owns it and mutated only by that feature.

All operations are synchronous in-memory mutations and cannot fail. The
store performs no request sequencing: callers discard stale responses
before calling replace_page().
"""

import copy
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterator, List, Optional

from .errors import StoreInvariantError
from .models import DEFAULT_PAGE_SIZE, Page, QueryState, StoreSnapshot, entity_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntitySnapshot:
    """Opaque capture of one entity and its position, consumed by restore_entity()."""
    entity_id: Hashable
    entity: Any
    index: int
    generation: int = 0


class CollectionStore:
    """One page of entities plus pagination metadata.

    Invariants:
        - ``items`` never holds two entities with the same id
        - ``len(items) <= size``
        - ``total`` moves by exactly +1 on prepend(), -1 on remove() and 0
          on upsert()

    Attributes:
        name: Label used in log messages and invariant errors
        default_size: Page size restored by reset()

    Example:
        >>> store = CollectionStore("notifications")
        >>> store.replace_page(Page(items=[{'id': 1}, {'id': 2}], total=5, page=1, size=2), QueryState(size=2))
        >>> store.remove(2)
        True
        >>> store.total
        4
    """

    def __init__(self, name: str = "collection", default_size: int = DEFAULT_PAGE_SIZE):
        if default_size < 1:
            raise ValueError(f"default_size must be >= 1, got {default_size}")
        self.name = name
        self.default_size = default_size
        self._items: List[Any] = []
        self._total = 0
        self._page = 1
        self._size = default_size
        self._query = QueryState(page=1, size=default_size)
        self._generation = 0

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[Any]:
        """Entities of the current page (a copy of the list, same entity objects)."""
        return list(self._items)

    @property
    def total(self) -> int:
        return self._total

    @property
    def page(self) -> int:
        return self._page

    @property
    def size(self) -> int:
        return self._size

    @property
    def query(self) -> QueryState:
        """Parameters of the last fetch that populated this store."""
        return self._query

    @property
    def generation(self) -> int:
        """Counter bumped whenever the whole state is replaced."""
        return self._generation

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __contains__(self, item_id: object) -> bool:
        return self._index_of(item_id) is not None  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return (
            f"CollectionStore(name={self.name!r}, items={len(self._items)}, "
            f"total={self._total}, page={self._page}, size={self._size})"
        )

    def ids(self) -> List[Hashable]:
        return [entity_id(item) for item in self._items]

    def find(self, item_id: Hashable) -> Optional[Any]:
        """Return the entity with this id, or None if it is not on the page."""
        index = self._index_of(item_id)
        return None if index is None else self._items[index]

    def _index_of(self, item_id: Hashable) -> Optional[int]:
        for index, item in enumerate(self._items):
            if entity_id(item) == item_id:
                return index
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def replace_page(self, page: Page, query: Optional[QueryState] = None) -> None:
        """Replace the whole state with a freshly fetched page.

        Last call wins. Duplicate ids in the server page keep their first
        occurrence; items beyond ``size`` are dropped.

        Args:
            page: Page returned by the server
            query: Query that produced the page (defaults to page/size of the page,
                keeping the current filters)
        """
        seen = set()
        items = []
        for item in page.items:
            item_id = entity_id(item)
            if item_id in seen:
                logger.warning(f"{self.name}: server page repeats id {item_id!r}, keeping first")
                continue
            seen.add(item_id)
            items.append(item)

        if len(items) > page.size:
            logger.warning(
                f"{self.name}: server returned {len(items)} items for page size "
                f"{page.size}, truncating"
            )
            items = items[:page.size]

        self._items = items
        self._total = page.total
        self._page = page.page
        self._size = page.size
        if query is None:
            query = QueryState(page=page.page, size=page.size, filters=dict(self._query.filters))
        self._query = query
        self._generation += 1
        logger.debug(f"{self.name}: replaced page {page.page} ({len(items)}/{page.total})")

    def upsert(self, entity: Any) -> bool:
        """Replace the entity with the same id in place.

        Insertion at an unknown page position is undefined, so an entity
        that is not on the page is ignored; use prepend() to insert.

        Returns:
            True if an entity was replaced
        """
        index = self._index_of(entity_id(entity))
        if index is None:
            return False
        self._items[index] = entity
        return True

    def update(self, item_id: Hashable, modifier: Callable[[Any], Any]) -> Optional[Any]:
        """Apply ``modifier`` to the entity with this id.

        The modifier may mutate the entity in place (returning None) or
        return a replacement entity with the same id.

        Returns:
            The resulting entity, or None if the id is not on the page
        """
        index = self._index_of(item_id)
        if index is None:
            return None
        result = modifier(self._items[index])
        if result is not None:
            if entity_id(result) != item_id:
                raise ValueError(
                    f"modifier changed entity id from {item_id!r} to {entity_id(result)!r}"
                )
            self._items[index] = result
        return self._items[index]

    def prepend(self, entity: Any) -> bool:
        """Insert a new entity at the head of the current page.

        The caller has decided that the entity belongs on the displayed
        page. ``total`` grows by one and the tail is trimmed to keep the page
        within ``size``. An entity whose id is already present is upserted
        instead and ``total`` is left alone.

        Returns:
            True if a new entity was inserted
        """
        if self.upsert(entity):
            return False
        self._items.insert(0, entity)
        self._total += 1
        del self._items[self._size:]
        return True

    def remove(self, item_id: Hashable) -> bool:
        """Remove the entity with this id and decrement ``total``.

        The gap is not refilled; the page holds fewer than ``size`` items
        until the next fetch.

        Returns:
            True if an entity was removed
        """
        index = self._index_of(item_id)
        if index is None:
            return False
        del self._items[index]
        self._total = max(self._total - 1, 0)
        return True

    def reset(self) -> None:
        """Clear to an empty first page with the default size and query."""
        self._items = []
        self._total = 0
        self._page = 1
        self._size = self.default_size
        self._query = QueryState(page=1, size=self.default_size)
        self._generation += 1

    # ------------------------------------------------------------------
    # Snapshot and restore
    # ------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """Capture the whole store (entities are deep-copied)."""
        return StoreSnapshot(
            items=tuple(copy.deepcopy(self._items)),
            total=self._total,
            page=self._page,
            size=self._size,
            query=self._query,
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Put the store back exactly as it was when ``snapshot`` was taken."""
        self._items = list(copy.deepcopy(snapshot.items))
        self._total = snapshot.total
        self._page = snapshot.page
        self._size = snapshot.size
        if snapshot.query is not None:
            self._query = snapshot.query
        self._generation += 1

    def snapshot_entity(self, item_id: Hashable) -> Optional[EntitySnapshot]:
        """Capture one entity (deep copy) and its position.

        Returns:
            EntitySnapshot, or None if the id is not on the page
        """
        index = self._index_of(item_id)
        if index is None:
            return None
        return EntitySnapshot(
            entity_id=item_id,
            entity=copy.deepcopy(self._items[index]),
            index=index,
            generation=self._generation,
        )

    def restore_entity(self, snapshot: Optional[EntitySnapshot]) -> None:
        """Undo changes to one entity captured by snapshot_entity().

        If the entity is still on the page it is replaced in place. If it
        was removed meanwhile it is reinserted at its old position and
        ``total`` grows back by one. Other entities are left untouched.

        Nothing happens when the whole state was replaced since the capture
        (replace_page(), reset() or restore()): the snapshot belongs to a
        page or session that is no longer displayed.
        """
        if snapshot is None:
            return
        if snapshot.generation != self._generation:
            logger.debug(
                f"{self.name}: dropping stale restore of {snapshot.entity_id!r} "
                f"(generation {snapshot.generation}, now {self._generation})"
            )
            return
        restored = copy.deepcopy(snapshot.entity)
        index = self._index_of(snapshot.entity_id)
        if index is not None:
            self._items[index] = restored
            return
        self._items.insert(min(snapshot.index, len(self._items)), restored)
        self._total += 1
        del self._items[self._size:]

    # ------------------------------------------------------------------
    # Derived pagination state
    # ------------------------------------------------------------------

    def has_more(self) -> bool:
        return self._page * self._size < self._total

    def total_pages(self) -> int:
        return max(math.ceil(self._total / self._size), 1)

    def is_first_page(self) -> bool:
        return self._page == 1

    def is_last_page(self) -> bool:
        return self._page >= self.total_pages()

    def query_for_page(self, page: int) -> Optional[QueryState]:
        """Query to fetch ``page``, or None when it is out of range."""
        if page < 1 or page > self.total_pages():
            return None
        return self._query.with_page(page)

    def next_query(self) -> Optional[QueryState]:
        if self.is_last_page():
            return None
        return self._query.with_page(self._page + 1)

    def prev_query(self) -> Optional[QueryState]:
        if self.is_first_page():
            return None
        return self._query.with_page(self._page - 1)

    def change_page_size(self, size: int) -> QueryState:
        """Query for the first page at a new page size."""
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")
        return self._query.with_size(size)

    # ------------------------------------------------------------------
    # Invariant check
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise StoreInvariantError if the store is inconsistent."""
        ids = self.ids()
        if len(ids) != len(set(ids)):
            duplicates = sorted({str(i) for i in ids if ids.count(i) > 1})
            raise StoreInvariantError(f"duplicate ids {duplicates}", self.name)
        if len(self._items) > self._size:
            raise StoreInvariantError(
                f"{len(self._items)} items exceed page size {self._size}", self.name
            )
        if self._total < 0:
            raise StoreInvariantError(f"negative total {self._total}", self.name)
        if self._page < 1:
            raise StoreInvariantError(f"page {self._page} < 1", self.name)
