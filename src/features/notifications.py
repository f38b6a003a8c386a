"""Notification inbox: paged list, unread counter, optimistic read/delete."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from src.collection_store.models import entity_id
from src.collection_store.store import EntitySnapshot
from src.mutation.coordinator import MutationCoordinator
from src.mutation.models import MutationDescriptor
from src.mutation.notifier import Notifier
from src.platform_client.api_wrapper import APIWrapper

from .base import PagedFeature

logger = logging.getLogger(__name__)

STATUS_READ = 'read'


@dataclass(frozen=True)
class _EntityChange:
    """Rollback token: the entity as it was and how much the unread counter moved."""
    entity: Optional[EntitySnapshot]
    unread_delta: int
    epoch: int


@dataclass(frozen=True)
class _BulkChange:
    entities: Tuple[EntitySnapshot, ...]
    unread_delta: int
    epoch: int


class NotificationFeature(PagedFeature):
    """Notifications of the signed-in user.

    ``unread_count`` is adjusted optimistically only for notifications on
    the displayed page; anything else is left to fetch_unread_count().

    Example:
        >>> inbox = NotificationFeature(api)
        >>> await inbox.fetch(page=1)
        >>> await inbox.mark_as_read(12)
    """

    list_path = '/notifications'
    store_name = 'notifications'

    def __init__(self, api: APIWrapper, notifier: Optional[Notifier] = None, page_size: int = 20):
        super().__init__(api, notifier, page_size)
        self.unread_count = 0
        self._epoch = 0

        self.mark_read_mutation: MutationCoordinator[Any, Any] = MutationCoordinator(
            MutationDescriptor(
                call=lambda notification_id: self._api.apost(
                    f'/notifications/{notification_id}/read'
                ),
                apply=self._apply_mark_read,
                rollback=self._rollback_entity_change,
                error_message="Could not mark notification as read",
                show_success_message=False,
            ),
            self.notifier,
            name='mark_notification_read',
        )
        self.mark_all_read_mutation: MutationCoordinator[None, Any] = MutationCoordinator(
            MutationDescriptor(
                call=lambda _: self._api.apost('/notifications/read-all'),
                apply=self._apply_mark_all_read,
                rollback=self._rollback_bulk_change,
                success_message="All notifications marked as read",
                error_message="Could not mark all notifications as read",
            ),
            self.notifier,
            name='mark_all_notifications_read',
        )
        self.delete_mutation: MutationCoordinator[Any, Any] = MutationCoordinator(
            MutationDescriptor(
                call=lambda notification_id: self._api.adelete(
                    f'/notifications/{notification_id}'
                ),
                apply=self._apply_delete,
                rollback=self._rollback_entity_change,
                success_message="Notification deleted",
                error_message="Could not delete notification",
            ),
            self.notifier,
            name='delete_notification',
        )

    # ------------------------------------------------------------------
    # Counter
    # ------------------------------------------------------------------

    async def fetch_unread_count(self) -> int:
        data = await self._api.aget('/notifications/unread/count')
        if isinstance(data, int):
            self.unread_count = max(data, 0)
        return self.unread_count

    def _take_unread(self, was_unread: bool) -> int:
        """Decrement the counter if the notification counted; returns the applied delta."""
        if was_unread and self.unread_count > 0:
            self.unread_count -= 1
            return -1
        return 0

    def _give_back_unread(self, delta: int, epoch: int) -> None:
        # A counter adjusted before reset() belongs to the previous session
        if epoch == self._epoch:
            self.unread_count -= delta

    @staticmethod
    def _is_unread(notification: Optional[Any]) -> bool:
        return notification is not None and notification.get('status') != STATUS_READ

    # ------------------------------------------------------------------
    # Optimistic apply / rollback
    # ------------------------------------------------------------------

    def _apply_mark_read(self, notification_id: Any) -> _EntityChange:
        snapshot = self.store.snapshot_entity(notification_id)
        was_unread = self._is_unread(self.store.find(notification_id))
        self.store.update(notification_id, lambda n: n.__setitem__('status', STATUS_READ))
        return _EntityChange(snapshot, self._take_unread(was_unread), self._epoch)

    def _apply_delete(self, notification_id: Any) -> _EntityChange:
        snapshot = self.store.snapshot_entity(notification_id)
        was_unread = self._is_unread(self.store.find(notification_id))
        self.store.remove(notification_id)
        return _EntityChange(snapshot, self._take_unread(was_unread), self._epoch)

    def _rollback_entity_change(self, notification_id: Any, change: _EntityChange) -> None:
        self.store.restore_entity(change.entity)
        self._give_back_unread(change.unread_delta, change.epoch)

    def _apply_mark_all_read(self, _: None) -> _BulkChange:
        changed = []
        for notification in self.store:
            if self._is_unread(notification):
                notification_id = entity_id(notification)
                changed.append(self.store.snapshot_entity(notification_id))
                self.store.update(notification_id, lambda n: n.__setitem__('status', STATUS_READ))
        delta = -self.unread_count
        self.unread_count = 0
        return _BulkChange(tuple(changed), delta, self._epoch)

    def _rollback_bulk_change(self, _: None, change: _BulkChange) -> None:
        for snapshot in change.entities:
            self.store.restore_entity(snapshot)
        self._give_back_unread(change.unread_delta, change.epoch)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def mark_as_read(self, notification_id: Any) -> Any:
        return await self.mark_read_mutation.mutate(notification_id)

    async def mark_all_as_read(self) -> Any:
        return await self.mark_all_read_mutation.mutate(None)

    async def delete(self, notification_id: Any) -> Any:
        return await self.delete_mutation.mutate(notification_id)

    def reset(self) -> None:
        super().reset()
        self.unread_count = 0
        self._epoch += 1
