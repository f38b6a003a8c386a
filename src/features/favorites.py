"""Favoriting materials.

Toggling a favorite flips ``is_favorited`` and moves ``favorite_count`` on
the displayed material immediately, then confirms with the backend. The
toggle works on whichever store shows the material; the store's owning
feature builds the coordinator with favorite_mutation().
"""

from dataclasses import dataclass
from typing import Any, Optional

from src.collection_store.store import CollectionStore, EntitySnapshot
from src.mutation.coordinator import MutationCoordinator
from src.mutation.models import MutationDescriptor
from src.mutation.notifier import Notifier
from src.platform_client.api_wrapper import APIWrapper

from .base import PagedFeature


@dataclass(frozen=True)
class FavoriteChange:
    """Requested favorite state of one material."""
    material_id: Any
    favorite: bool


def _set_favorite(material: Any, favorite: bool) -> None:
    if bool(material.get('is_favorited')) == favorite:
        return
    material['is_favorited'] = favorite
    count = material.get('favorite_count') or 0
    material['favorite_count'] = count + 1 if favorite else max(count - 1, 0)


def favorite_mutation(
    api: APIWrapper,
    store: CollectionStore,
    notifier: Optional[Notifier] = None,
) -> MutationCoordinator[FavoriteChange, Any]:
    """Build the optimistic favorite/unfavorite coordinator for ``store``.

    Example:
        >>> toggle = favorite_mutation(api, search.store)
        >>> await toggle.mutate(FavoriteChange(material_id=7, favorite=True))
    """

    async def _call(change: FavoriteChange) -> Any:
        path = f'/materials/{change.material_id}/favorite'
        if change.favorite:
            return await api.apost(path)
        return await api.adelete(path)

    def _apply(change: FavoriteChange) -> Optional[EntitySnapshot]:
        snapshot = store.snapshot_entity(change.material_id)
        store.update(change.material_id, lambda m: _set_favorite(m, change.favorite))
        return snapshot

    def _rollback(change: FavoriteChange, snapshot: Optional[EntitySnapshot]) -> None:
        store.restore_entity(snapshot)

    return MutationCoordinator(
        MutationDescriptor(
            call=_call,
            apply=_apply,
            rollback=_rollback,
            error_message="Favorite update failed, changes rolled back",
            show_success_message=False,
        ),
        notifier,
        name='toggle_favorite',
    )


class FavoritesFeature(PagedFeature):
    """The signed-in user's favorite materials."""

    list_path = '/favorites'
    store_name = 'favorites'

    def __init__(self, api: APIWrapper, notifier: Optional[Notifier] = None, page_size: int = 20):
        super().__init__(api, notifier, page_size)
        self.unfavorite_mutation: MutationCoordinator[Any, Any] = MutationCoordinator(
            MutationDescriptor(
                call=lambda material_id: self._api.adelete(f'/materials/{material_id}/favorite'),
                apply=self._apply_unfavorite,
                rollback=lambda material_id, snapshot: self.store.restore_entity(snapshot),
                success_message="Removed from favorites",
                error_message="Could not remove favorite, restored",
            ),
            self.notifier,
            name='unfavorite',
        )

    def _apply_unfavorite(self, material_id: Any) -> Optional[EntitySnapshot]:
        snapshot = self.store.snapshot_entity(material_id)
        self.store.remove(material_id)
        return snapshot

    async def unfavorite(self, material_id: Any) -> Any:
        return await self.unfavorite_mutation.mutate(material_id)
