"""Exceptions for collection store invariant checks."""

from src.platform_client.errors import StudyShareError


class StoreInvariantError(StudyShareError):
    """Raised by CollectionStore.check_invariants() when a store is inconsistent.

    This is a programmer error: store operations never raise it themselves,
    tests call check_invariants() to detect broken call sequences.
    """

    def __init__(self, message: str, store_name: str = "store"):
        super().__init__(f"{store_name}: {message}")
        self.store_name = store_name
