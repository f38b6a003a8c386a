"""Moderation queue of materials awaiting review."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.collection_store.store import EntitySnapshot
from src.mutation.coordinator import MutationCoordinator
from src.mutation.models import MutationDescriptor
from src.mutation.notifier import Notifier
from src.platform_client.api_wrapper import APIWrapper

from .base import PagedFeature


@dataclass(frozen=True)
class ReviewDecision:
    """A moderator's verdict on one material.

    Attributes:
        material_id: Material under review
        approved: True to approve, False to reject
        comment: Rejection reason (sent only with a rejection)
    """
    material_id: Any
    approved: bool
    comment: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'status': 'approved' if self.approved else 'rejected'}
        if not self.approved and self.comment:
            payload['rejection_reason'] = self.comment
        return payload


class ReviewQueueFeature(PagedFeature):
    """Pending materials; a review takes the material off the queue at once.

    If the backend refuses the review the material goes back to its old
    position and the total is restored.
    """

    list_path = '/admin/materials/pending'
    store_name = 'review_queue'

    def __init__(self, api: APIWrapper, notifier: Optional[Notifier] = None, page_size: int = 20):
        super().__init__(api, notifier, page_size)
        self.review_mutation: MutationCoordinator[ReviewDecision, Any] = MutationCoordinator(
            MutationDescriptor(
                call=self._submit,
                apply=self._apply_review,
                rollback=self._rollback_review,
                success_message="Review submitted",
                error_message="Review failed, material returned to the queue",
            ),
            self.notifier,
            name='review_material',
        )

    async def _submit(self, decision: ReviewDecision) -> Any:
        return await self._api.apost(
            f'/admin/materials/{decision.material_id}/review',
            json=decision.to_payload(),
        )

    def _apply_review(self, decision: ReviewDecision) -> Optional[EntitySnapshot]:
        snapshot = self.store.snapshot_entity(decision.material_id)
        self.store.remove(decision.material_id)
        return snapshot

    def _rollback_review(self, decision: ReviewDecision, snapshot: Optional[EntitySnapshot]) -> None:
        self.store.restore_entity(snapshot)

    async def review(self, material_id: Any, approved: bool, comment: Optional[str] = None) -> Any:
        """Approve or reject a material.

        Returns:
            The reviewed material as returned by the backend
        """
        return await self.review_mutation.mutate(ReviewDecision(material_id, approved, comment))

    async def approve(self, material_id: Any) -> Any:
        return await self.review(material_id, True)

    async def reject(self, material_id: Any, reason: Optional[str] = None) -> Any:
        return await self.review(material_id, False, reason)
