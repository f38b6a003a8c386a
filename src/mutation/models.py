"""Data models for optimistic mutations.

A MutationDescriptor bundles the three caller-supplied functions of an
optimistic mutation:

    apply(variables) -> token        synchronous local change, no I/O
    call(variables) -> awaitable     the remote operation
    rollback(variables, token)       undo of apply, driven by its token

``apply`` returns an opaque snapshot token that ``rollback`` consumes, so a
rollback never depends on outer variables that unrelated code may have
changed in between.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar('T')
V = TypeVar('V')

DEFAULT_ERROR_MESSAGE = "Operation failed, changes rolled back"


@dataclass
class MutationDescriptor(Generic[V, T]):
    """Description of one optimistic mutation.

    Attributes:
        call: Remote operation; awaited once per mutate()
        apply: Local optimistic change; returns a snapshot token
        rollback: Restores the state captured by the token
        on_success: Optional callback ``(data, variables)`` after confirmation
        on_error: Optional callback ``(error, variables)`` after rollback
        success_message: Shown immediately when the action is accepted
        error_message: Shown after a rollback (a default is used when unset)
        show_success_message: Set False to suppress the acceptance message
        show_error_message: Set False to suppress the failure message
    """
    call: Callable[[V], Awaitable[T]]
    apply: Callable[[V], Any]
    rollback: Callable[[V, Any], None]
    on_success: Optional[Callable[[T, V], None]] = None
    on_error: Optional[Callable[[BaseException, V], None]] = None
    success_message: Optional[str] = None
    error_message: Optional[str] = None
    show_success_message: bool = True
    show_error_message: bool = True


@dataclass
class MutationState:
    """Observable state of a coordinator.

    Attributes:
        busy: True while a mutate() call is in flight
        error: Error of the last failed settlement, cleared on the next mutate()
    """
    busy: bool = False
    error: Optional[BaseException] = None
