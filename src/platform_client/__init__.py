"""Client library for the study-material platform backend.

This package wraps the platform REST API: credential loading, the
``{code, message, data}`` envelope, rate-limit retries and typed errors.
"""

from .errors import (
    StudyShareError,
    PlatformError,
    InvalidCredentialsError,
    APIUnreachableError,
    APIAccessError,
    RemoteOperationError,
)

__all__ = [
    "StudyShareError",
    "PlatformError",
    "InvalidCredentialsError",
    "APIUnreachableError",
    "APIAccessError",
    "RemoteOperationError",
]
