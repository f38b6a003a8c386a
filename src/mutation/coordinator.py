"""Optimistic mutation coordinator.

Applies a local state change immediately, awaits the remote call, and
deterministically rolls the change back when the call fails. Each mutate()
follows a fixed order:

    1. busy = True, error cleared
    2. token = apply(variables)                (synchronous)
    3. optional "accepted" notification       (fire-and-forget)
    4. data = await call(variables)           (only suspension point)
    5a. success: on_success, return data
    5b. failure: rollback, on_error, failure notification, re-raise
    busy = False on every settlement

Concurrent mutate() calls are not serialized. When several share one
coordinator the busy flag reflects the last settlement. Two in-flight
mutations on the same entity are not isolated from each other: the later
rollback restores what its own apply() captured, which may overwrite the
other mutation's effect. Callers avoid firing conflicting mutations on one
entity at the same time.
"""

import asyncio
import logging
from typing import Callable, Generic, List, Optional, TypeVar

from .models import DEFAULT_ERROR_MESSAGE, MutationDescriptor, MutationState
from .notifier import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

T = TypeVar('T')
V = TypeVar('V')

StateListener = Callable[[MutationState], None]


class MutationCoordinator(Generic[V, T]):
    """Apply-then-confirm-or-rollback engine for one kind of mutation.

    Example:
        >>> coordinator = MutationCoordinator(MutationDescriptor(
        ...     call=lambda mid: api.apost(f"/materials/{mid}/favorite"),
        ...     apply=lambda mid: mark_favorited(store, mid),
        ...     rollback=lambda mid, token: store.restore_entity(token),
        ...     success_message="Added to favorites",
        ... ))
        >>> await coordinator.mutate(7)
    """

    def __init__(
        self,
        descriptor: MutationDescriptor[V, T],
        notifier: Optional[Notifier] = None,
        name: Optional[str] = None,
    ):
        self.descriptor = descriptor
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.name = name or getattr(descriptor.call, '__name__', 'mutation')
        self._state = MutationState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> MutationState:
        return MutationState(busy=self._state.busy, error=self._state.error)

    @property
    def busy(self) -> bool:
        return self._state.busy

    @property
    def error(self) -> Optional[BaseException]:
        return self._state.error

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called on every busy/error transition.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_state(self, busy: bool, error: Optional[BaseException]) -> None:
        self._state = MutationState(busy=busy, error=error)
        for listener in list(self._listeners):
            listener(self.state)

    def _rollback(self, variables: V, token: object) -> None:
        try:
            self.descriptor.rollback(variables, token)
        except Exception:
            # The original failure is what the caller gets; this one is only logged
            logger.exception(f"{self.name}: rollback failed for {variables!r}")

    def _on_error(self, error: Exception, variables: V) -> None:
        if self.descriptor.on_error is None:
            return
        try:
            self.descriptor.on_error(error, variables)
        except Exception:
            logger.exception(f"{self.name}: on_error callback failed for {variables!r}")

    async def mutate(self, variables: V) -> T:
        """Run one optimistic mutation to settlement.

        Args:
            variables: Passed unchanged to apply, call, rollback and callbacks

        Returns:
            The result of ``call`` on success

        Raises:
            Exception: Whatever ``call`` raised, after the rollback ran
        """
        descriptor = self.descriptor
        self._set_state(busy=True, error=None)

        try:
            token = descriptor.apply(variables)
        except Exception as e:
            self._set_state(busy=False, error=e)
            raise

        if descriptor.show_success_message and descriptor.success_message:
            self.notifier.success(descriptor.success_message)

        try:
            data = await descriptor.call(variables)
        except asyncio.CancelledError:
            logger.info(f"{self.name}: cancelled, rolling back {variables!r}")
            self._rollback(variables, token)
            self._set_state(busy=False, error=None)
            raise
        except Exception as e:
            logger.info(f"{self.name}: remote call failed, rolling back {variables!r}: {e}")
            self._rollback(variables, token)
            self._on_error(e, variables)
            try:
                if descriptor.show_error_message:
                    self.notifier.error(descriptor.error_message or DEFAULT_ERROR_MESSAGE)
            finally:
                self._set_state(busy=False, error=e)
            raise

        # Confirmed: the applied state is now the truth, whatever on_success does
        try:
            if descriptor.on_success is not None:
                descriptor.on_success(data, variables)
        finally:
            self._set_state(busy=False, error=None)
        logger.debug(f"{self.name}: confirmed {variables!r}")
        return data
