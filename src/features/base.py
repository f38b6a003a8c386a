"""Shared plumbing for paginated features.

Every feature that shows a list owns one CollectionStore and fills it from
one list endpoint. PagedFeature keeps the query state, normalizes the list
response and discards responses of superseded fetches before they reach
the store, since the store itself applies whatever it is given.
"""

import logging
from typing import Any, Dict, Optional

from src.collection_store.models import Page, QueryState
from src.collection_store.store import CollectionStore
from src.mutation.notifier import LoggingNotifier, Notifier
from src.platform_client.api_wrapper import APIWrapper
from src.platform_client.models import PagedPayload

logger = logging.getLogger(__name__)


class PagedFeature:
    """Base class for a feature backed by one paginated list endpoint.

    Subclasses set ``list_path`` and add their own actions.

    Attributes:
        store: The feature's collection store
        notifier: Receives user-visible messages for this feature's actions
    """

    list_path: str = ''
    store_name: str = 'collection'

    def __init__(
        self,
        api: APIWrapper,
        notifier: Optional[Notifier] = None,
        page_size: int = 20,
    ):
        self._api = api
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.store = CollectionStore(self.store_name, default_size=page_size)
        self._latest_fetch = 0
        self._in_flight = 0

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    def _request_params(self, query: QueryState) -> Dict[str, Any]:
        """Map a query to the endpoint's parameter names."""
        return query.to_params()

    async def fetch(self, **params: Any) -> Optional[Page]:
        """Fetch a page and install it in the store.

        ``params`` are laid over the last query (``page``, ``size`` and
        filters; a filter set to None is dropped).

        Returns:
            The installed Page, or None when a newer fetch or a reset
            superseded this one while it was in flight
        """
        query = self.store.query.merged(**params)
        self._latest_fetch += 1
        ticket = self._latest_fetch

        self._in_flight += 1
        try:
            data = await self._api.aget(self.list_path, params=self._request_params(query))
        finally:
            self._in_flight -= 1

        if ticket != self._latest_fetch:
            logger.debug(f"{self.store_name}: discarding stale response for {query}")
            return None

        payload = PagedPayload.from_response(data, default_size=query.size)
        page = Page(
            items=tuple(payload.items),
            total=payload.total,
            page=payload.page,
            size=payload.size,
        )
        self.store.replace_page(
            page,
            QueryState(page=payload.page, size=payload.size, filters=dict(query.filters)),
        )
        return page

    async def refresh(self) -> Optional[Page]:
        """Re-request the current page with the current query."""
        return await self.fetch()

    async def next_page(self) -> Optional[Page]:
        query = self.store.next_query()
        if query is None:
            return None
        return await self.fetch(page=query.page)

    async def prev_page(self) -> Optional[Page]:
        query = self.store.prev_query()
        if query is None:
            return None
        return await self.fetch(page=query.page)

    async def go_to_page(self, page: int) -> Optional[Page]:
        query = self.store.query_for_page(page)
        if query is None:
            return None
        return await self.fetch(page=query.page)

    async def change_page_size(self, size: int) -> Optional[Page]:
        query = self.store.change_page_size(size)
        return await self.fetch(page=query.page, size=query.size)

    def reset(self) -> None:
        """Empty the store; responses of fetches still in flight are dropped."""
        self._latest_fetch += 1
        self.store.reset()
