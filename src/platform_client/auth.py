"""Authentication module for loading platform credentials.

This module handles loading the backend URL and bearer token from environment
variables using python-dotenv. It validates that all required credentials are
present and raises InvalidCredentialsError if any are missing.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


class Credentials(NamedTuple):
    """Platform API credentials."""
    url: str
    api_token: str


class Authenticator:
    """Loads and validates platform credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Required environment variables:
        STUDYSHARE_API_URL: Backend API base URL (e.g., https://study.example.edu/api/v1)
        STUDYSHARE_API_TOKEN: Bearer token of the signed-in user

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.url}")
    """

    URL_VARIABLE = 'STUDYSHARE_API_URL'
    TOKEN_VARIABLE = 'STUDYSHARE_API_TOKEN'

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get platform credentials from environment variables.

        Returns:
            Credentials: A named tuple containing url and api_token

        Raises:
            InvalidCredentialsError: If any required credential is missing
        """
        url = os.getenv(self.URL_VARIABLE)
        api_token = os.getenv(self.TOKEN_VARIABLE)

        missing = []
        if not url:
            missing.append(self.URL_VARIABLE)
        if not api_token:
            missing.append(self.TOKEN_VARIABLE)

        if missing:
            raise InvalidCredentialsError(
                endpoint=url if url else "unknown",
                reason=f"Missing credentials: {', '.join(missing)}"
            )

        return Credentials(url=url.rstrip('/'), api_token=api_token)  # type: ignore[union-attr,arg-type]
