"""Test fixtures for the studyshare client tests.

Builders for backend entities (materials, notifications, committee
applications) and the list/envelope payloads the backend wraps them in.
"""

from .sample_entities import application, envelope, list_payload, material, notification

__all__ = [
    "application",
    "envelope",
    "list_payload",
    "material",
    "notification",
]
