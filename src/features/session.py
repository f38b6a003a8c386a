"""Signed-in session: owns every feature and their stores.

Stores are created when the session is built and emptied on logout; nothing
lives in module globals.
"""

import logging
from typing import List, Optional

from src.mutation.background import BackgroundTasks
from src.mutation.notifier import LoggingNotifier, Notifier
from src.platform_client.api_wrapper import APIWrapper
from src.upload.pipeline import UploadPipeline
from src.upload.transport import StorageTransport
from src.upload.upload_config import UploadConfigCache

from .base import PagedFeature
from .committee import CommitteeFeature
from .favorites import FavoritesFeature
from .notifications import NotificationFeature
from .review import ReviewQueueFeature
from .search import SearchFeature

logger = logging.getLogger(__name__)


class Session:
    """Composition root for one signed-in user.

    Example:
        >>> session = Session(APIWrapper(Authenticator()), admin=True)
        >>> await session.notifications.fetch()
        >>> session.logout()
        >>> await session.background.drain()
    """

    def __init__(
        self,
        api: APIWrapper,
        notifier: Optional[Notifier] = None,
        page_size: int = 20,
        admin: bool = False,
        transport: Optional[StorageTransport] = None,
    ):
        self.api = api
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.background = BackgroundTasks()

        self.notifications = NotificationFeature(api, self.notifier, page_size)
        self.search = SearchFeature(api, self.notifier, page_size)
        self.favorites = FavoritesFeature(api, self.notifier, page_size)
        self.committee = CommitteeFeature(api, self.notifier, page_size, admin=admin)
        self.review_queue = ReviewQueueFeature(api, self.notifier, page_size)

        self.upload_config = UploadConfigCache(api)
        self.uploads = UploadPipeline(api, transport, self.notifier, self.upload_config)

    @property
    def features(self) -> List[PagedFeature]:
        return [
            self.notifications,
            self.search,
            self.favorites,
            self.committee,
            self.review_queue,
        ]

    def reset(self) -> None:
        """Empty every feature store."""
        for feature in self.features:
            feature.reset()

    def logout(self) -> None:
        """Clear local state and tell the backend, without waiting for it.

        The logout call is a best-effort background task: it never delays
        the caller and its failure is only logged. Must be called from a
        running event loop.
        """
        self.reset()
        self.background.spawn(self.api.apost('/auth/logout'), 'logout')
        logger.info("Session cleared")
