"""Optimistic mutations, user notifications and best-effort background calls."""

from .background import BackgroundTasks
from .coordinator import MutationCoordinator
from .models import MutationDescriptor, MutationState
from .notifier import LoggingNotifier, Notifier, NullNotifier

__all__ = [
    "BackgroundTasks",
    "LoggingNotifier",
    "MutationCoordinator",
    "MutationDescriptor",
    "MutationState",
    "Notifier",
    "NullNotifier",
]
