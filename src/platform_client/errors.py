"""Typed exception hierarchy for platform API errors.

This module defines the exceptions raised while talking to the study-material
platform backend. All exceptions inherit from PlatformError for easy catching
and include descriptive messages with context to help with debugging.
"""

from typing import Optional, Union


class StudyShareError(Exception):
    """Base exception for all studyshare-client errors.

    Use this to catch any application-level error from the client.
    """
    pass


class PlatformError(StudyShareError):
    """Base exception for all backend API errors."""
    pass


class InvalidCredentialsError(PlatformError):
    """Raised when API credentials are missing, invalid or expired."""

    def __init__(self, endpoint: str, reason: str = "API token is invalid or expired"):
        super().__init__(f"{reason} (endpoint: {endpoint})")
        self.endpoint = endpoint
        self.reason = reason


class APIUnreachableError(PlatformError):
    """Raised when the platform API is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(PlatformError):
    """Raised when API access fails after retries or with an unexpected status."""

    def __init__(self, message: str = "Platform API failure (after 3 retries)"):
        super().__init__(message)


class RemoteOperationError(PlatformError):
    """Raised when the backend answers with a non-zero envelope code.

    The message is the backend's own domain message and is safe to show
    to the user.
    """

    def __init__(self, code: Union[int, str, None], message: str, operation: Optional[str] = None):
        text = message or f"Request failed with code {code}"
        super().__init__(text)
        self.code = code
        self.message = text
        self.operation = operation
