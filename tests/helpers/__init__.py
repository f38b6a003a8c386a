"""Test helper modules for collection store and backend testing."""

from .store_helpers import assert_store_invariants, make_store, mock_api, store_state

__all__ = [
    'assert_store_invariants',
    'make_store',
    'mock_api',
    'store_state',
]
