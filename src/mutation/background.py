"""Best-effort background tasks.

Some remote calls are side notifications whose outcome nobody waits for
(telling the backend about a logout, for instance). They are scheduled
here: the caller is never blocked, failures are logged and never
propagated.
"""

import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Registry of fire-and-forget tasks on the running event loop.

    Strong references are kept until each task finishes so the loop
    cannot garbage-collect a pending task.

    Example:
        >>> tasks = BackgroundTasks()
        >>> tasks.spawn(api.apost("/auth/logout"), "logout")
        >>> await tasks.drain()  # at shutdown
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[object], label: str) -> asyncio.Task:
        """Schedule ``coro`` without awaiting it.

        Args:
            coro: Coroutine to run
            label: Name used when logging a failure

        Returns:
            The scheduled task (callers normally ignore it)
        """
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _log_task_result(t: asyncio.Task) -> None:
            self._tasks.discard(t)
            if t.cancelled():
                logger.debug(f"Background task '{label}' cancelled")
                return
            exc = t.exception()
            if exc is not None:
                logger.warning(f"Background task '{label}' failed: {exc}")

        task.add_done_callback(_log_task_result)
        return task

    async def drain(self) -> None:
        """Wait for every outstanding task; failures stay logged only."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
