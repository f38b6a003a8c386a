"""Study-committee applications: applicant and administrator views."""

from typing import Any, Dict, Optional

from src.collection_store.store import EntitySnapshot
from src.mutation.coordinator import MutationCoordinator
from src.mutation.models import MutationDescriptor
from src.mutation.notifier import Notifier
from src.platform_client.api_wrapper import APIWrapper

from .base import PagedFeature


class CommitteeFeature(PagedFeature):
    """Committee applications.

    An applicant sees their own applications and may cancel them; an
    administrator (``admin=True``) sees every application and reviews them.

    Example:
        >>> applications = CommitteeFeature(api, admin=True)
        >>> await applications.fetch(status='pending')
        >>> await applications.review(3, approved=True)
    """

    store_name = 'committee_applications'

    def __init__(
        self,
        api: APIWrapper,
        notifier: Optional[Notifier] = None,
        page_size: int = 20,
        admin: bool = False,
    ):
        super().__init__(api, notifier, page_size)
        self.admin = admin
        self.list_path = '/admin/applications' if admin else '/user/applications'
        self.pending_count = 0

        self.cancel_mutation: MutationCoordinator[Any, Any] = MutationCoordinator(
            MutationDescriptor(
                call=lambda application_id: self._api.apost(
                    f'/user/applications/{application_id}/cancel'
                ),
                apply=self._apply_cancel,
                rollback=self._rollback_cancel,
                success_message="Application cancelled",
                error_message="Could not cancel the application",
            ),
            self.notifier,
            name='cancel_application',
        )

    def _apply_cancel(self, application_id: Any) -> Optional[EntitySnapshot]:
        snapshot = self.store.snapshot_entity(application_id)
        self.store.remove(application_id)
        return snapshot

    def _rollback_cancel(self, application_id: Any, snapshot: Optional[EntitySnapshot]) -> None:
        self.store.restore_entity(snapshot)

    async def cancel(self, application_id: Any) -> Any:
        return await self.cancel_mutation.mutate(application_id)

    async def submit_application(self, reason: str, **extra: Any) -> Any:
        """Submit a new application and reload the list.

        The new application's position is decided by the server, so the
        list is refetched instead of inserting locally.
        """
        payload: Dict[str, Any] = {'reason': reason, **extra}
        application = await self._api.apost('/user/apply-committee', json=payload)
        self.notifier.success("Application submitted")
        await self.refresh()
        return application

    async def review(self, application_id: Any, approved: bool, comment: Optional[str] = None) -> Any:
        """Review an application (administrators).

        Not optimistic: the backend returns the updated application, which
        replaces the listed one in place.
        """
        payload: Dict[str, Any] = {'status': 'approved' if approved else 'rejected'}
        if comment:
            payload['comment'] = comment
        application = await self._api.apost(
            f'/admin/applications/{application_id}/review',
            json=payload,
        )
        if application:
            self.store.upsert(application)
        await self.fetch_pending_count()
        return application

    async def fetch_pending_count(self) -> int:
        data = await self._api.aget('/admin/applications/pending/count')
        if isinstance(data, dict) and 'count' in data:
            self.pending_count = int(data['count'])
        return self.pending_count

    def reset(self) -> None:
        super().reset()
        self.pending_count = 0
