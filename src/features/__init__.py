"""Feature modules wiring collection stores to optimistic mutations."""

from .base import PagedFeature
from .committee import CommitteeFeature
from .favorites import FavoriteChange, FavoritesFeature, favorite_mutation
from .notifications import NotificationFeature
from .review import ReviewDecision, ReviewQueueFeature
from .search import SearchFeature
from .session import Session

__all__ = [
    "CommitteeFeature",
    "FavoriteChange",
    "FavoritesFeature",
    "NotificationFeature",
    "PagedFeature",
    "ReviewDecision",
    "ReviewQueueFeature",
    "SearchFeature",
    "Session",
    "favorite_mutation",
]
