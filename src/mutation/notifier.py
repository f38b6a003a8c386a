"""Transient user notifications.

Coordinators and the upload pipeline report outcomes through a Notifier.
Notifications are fire-and-forget: implementations must return quickly and
must not raise.
"""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Sink for short, non-blocking user-visible messages."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that writes messages to the ``src.mutation.notifier`` logger."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)

    def info(self, message: str) -> None:
        logger.info(message)


class NullNotifier:
    """Notifier that drops every message."""

    def success(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass
