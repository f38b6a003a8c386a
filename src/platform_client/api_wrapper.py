"""API wrapper for the study-material platform REST API.

This module wraps a requests session and provides error translation from
HTTP failures and response envelopes to our typed exception hierarchy.
It integrates with the retry logic for handling rate limits and exposes
awaitable variants that run the blocking request on a worker thread.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Optional, Union

import requests
from requests.exceptions import ConnectionError, HTTPError, Timeout

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    RemoteOperationError,
)
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)

SUCCESS_CODE = 0

# Envelope codes the backend uses for missing, invalid or expired tokens
AUTH_ERROR_CODES = frozenset({10002, 10104, 40101})


def _envelope_code(raw: Any) -> Union[int, str, None]:
    """Return the envelope code as an int when it parses, else as text.

    Some endpoints answer with symbolic codes such as "quota-exceeded".
    """
    if raw is None:
        return None
    try:
        return int(str(raw))
    except ValueError:
        return str(raw)


class APIWrapper:
    """Thin wrapper around a requests session with error translation.

    This class:
    1. Handles authentication using the Authenticator (bearer token)
    2. Unwraps the ``{code, message, data}`` envelope, ``code == 0`` being
       the only success
    3. Translates HTTP and envelope errors to typed exceptions
    4. Integrates retry logic for 429 rate limits

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> data = api.get("/notifications", params={"page": 1, "size": 20})
        >>> data = await api.arequest("POST", "/notifications/7/read")
    """

    def __init__(self, authenticator: Authenticator, timeout: float = 30):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator instance for loading credentials
            timeout: Per-request timeout in seconds
        """
        self._authenticator = authenticator
        self._timeout = timeout
        self._session: Optional[requests.Session] = None
        self._base_url: Optional[str] = None

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session.

        The session is created lazily on first use so that constructing
        the wrapper never touches the environment.

        Raises:
            InvalidCredentialsError: If credentials are missing
        """
        if self._session is None:
            creds = self._authenticator.get_credentials()
            session = requests.Session()
            session.headers.update({
                'Authorization': f'Bearer {creds.api_token}',
                'Accept': 'application/json',
            })
            self._base_url = creds.url
            self._session = session
        return self._session

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def close(self) -> None:
        """Close the underlying session, if one was opened."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def _sanitize(self, text: str) -> str:
        """Mask secrets in error messages before they reach the logs.

        Masks bearer tokens, Authorization headers, token fields and the
        query string of signed storage URLs.

        Example:
            >>> api._sanitize("Authorization: Bearer abc.def")
            'Authorization: ***REDACTED***'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(api_?token|token)["\']?\s*[:=]\s*["\']?([^"\'\s&]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # Signed URLs carry the credential in the query string
        sanitized = re.sub(
            r'(https?://[^\s?]+)\?[^\s]+',
            r'\1?***REDACTED***',
            sanitized
        )
        return sanitized

    def _unwrap(self, response: requests.Response, operation: str) -> Any:
        """Decode the response envelope and return its ``data`` field.

        Args:
            response: HTTP response from the backend
            operation: Description of the request (for errors and logs)

        Raises:
            InvalidCredentialsError: On HTTP 401 or an auth envelope code
            RemoteOperationError: On any non-zero envelope code
            APIAccessError: On a non-JSON body or unexpected status
        """
        if response.status_code == 401:
            raise InvalidCredentialsError(endpoint=self._base_url or "unknown")

        try:
            body = response.json()
        except ValueError:
            logger.error(
                f"API operation failed: {operation} - HTTP {response.status_code}, "
                f"non-JSON body"
            )
            raise APIAccessError(
                f"Platform API failure during {operation} (HTTP {response.status_code})"
            )

        if not isinstance(body, dict) or 'code' not in body:
            raise APIAccessError(f"Malformed response envelope during {operation}")

        code = _envelope_code(body.get('code'))
        if code == SUCCESS_CODE:
            return body.get('data')

        message = body.get('message') or ''
        if code in AUTH_ERROR_CODES:
            raise InvalidCredentialsError(
                endpoint=self._base_url or "unknown",
                reason=message or "API token is invalid or expired"
            )

        logger.warning(
            f"{operation} rejected by backend: code={code} message={self._sanitize(message)}"
        )
        raise RemoteOperationError(code=code, message=message, operation=operation)

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform a blocking request and return the envelope data.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            params: Optional query parameters (None values are dropped)
            json: Optional JSON body

        Returns:
            The ``data`` field of a successful envelope

        Raises:
            InvalidCredentialsError: If credentials are missing or rejected
            APIUnreachableError: On timeouts and connection failures
            APIAccessError: If rate limiting persists or the body is malformed
            RemoteOperationError: If the backend returns a non-zero code
        """
        operation = f"{method.upper()} {path}"
        session = self._get_session()
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        def _send() -> requests.Response:
            try:
                response = session.request(
                    method.upper(),
                    self._url(path),
                    params=params,
                    json=json,
                    timeout=self._timeout,
                )
            except (Timeout, ConnectionError) as e:
                logger.error(f"{operation} failed: {self._sanitize(str(e))}")
                raise APIUnreachableError(endpoint=self._base_url or "unknown") from e
            if response.status_code == 429:
                raise HTTPError(f"429 Too Many Requests: {operation}", response=response)
            return response

        response = retry_on_rate_limit(_send)
        logger.debug(f"{operation} -> HTTP {response.status_code}")
        return self._unwrap(response, operation)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request('GET', path, params=params)

    def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return self.request('POST', path, json=json)

    def delete(self, path: str) -> Any:
        return self.request('DELETE', path)

    async def arequest(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Awaitable variant of request().

        The blocking call runs on a worker thread; the caller's task is
        suspended until it settles.
        """
        return await asyncio.to_thread(self.request, method, path, params, json)

    async def aget(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.arequest('GET', path, params=params)

    async def apost(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self.arequest('POST', path, json=json)

    async def adelete(self, path: str) -> Any:
        return await self.arequest('DELETE', path)
