"""Material search results with favoriting."""

from typing import Any, Dict, Optional

from src.collection_store.models import Page, QueryState
from src.mutation.notifier import Notifier
from src.platform_client.api_wrapper import APIWrapper

from .base import PagedFeature
from .favorites import FavoriteChange, favorite_mutation


class SearchFeature(PagedFeature):
    """Paged search over materials.

    Typing quickly fires several searches; only the newest response is
    shown, older ones are dropped by PagedFeature.fetch().

    Example:
        >>> search = SearchFeature(api)
        >>> await search.search("linear algebra", category="exam")
        >>> await search.toggle_favorite(7)
    """

    list_path = '/search'
    store_name = 'search_results'

    def __init__(self, api: APIWrapper, notifier: Optional[Notifier] = None, page_size: int = 20):
        super().__init__(api, notifier, page_size)
        self.favorite_mutation = favorite_mutation(api, self.store, self.notifier)

    @property
    def keyword(self) -> str:
        return self.store.query.filters.get('keyword', '')

    def _request_params(self, query: QueryState) -> Dict[str, Any]:
        # The search endpoint names its size parameter page_size
        params = query.to_params()
        params['page_size'] = params.pop('size')
        return params

    async def search(self, keyword: Optional[str] = None, **filters: Any) -> Optional[Page]:
        """Run a search from the first page.

        Filters not mentioned keep their previous value; pass None to drop one.
        """
        return await self.fetch(page=1, keyword=keyword or None, **filters)

    def clear(self) -> None:
        self.reset()

    async def toggle_favorite(self, material_id: Any) -> Any:
        """Flip the favorite state of a listed material.

        Raises:
            KeyError: If the material is not on the current page
        """
        material = self.store.find(material_id)
        if material is None:
            raise KeyError(f"Material {material_id} is not in the search results")
        change = FavoriteChange(material_id, not bool(material.get('is_favorited')))
        return await self.favorite_mutation.mutate(change)
