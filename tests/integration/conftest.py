"""Pytest configuration and fixtures for integration tests.

The real APIWrapper, features and upload pipeline are wired together; only
the HTTP sessions are replaced by a routing fake, so envelope decoding,
error translation and threading are all exercised.
"""

from typing import Any, Callable, Dict, List, Tuple
from unittest.mock import Mock, patch

import pytest

from src.features.session import Session
from src.mutation.notifier import NullNotifier
from src.platform_client.api_wrapper import APIWrapper
from src.upload.transport import StorageTransport
from tests.fixtures.sample_entities import envelope

BASE_URL = 'https://study.example.edu/api/v1'

Handler = Callable[[Dict[str, Any]], Tuple[int, Any]]


class FakeBackend:
    """Routes ``(method, path)`` to handlers and records every request."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[Tuple[str, str, Dict[str, Any]]] = []
        self.session = Mock()
        self.session.headers = {}
        self.session.request.side_effect = self._handle

    def route(self, method: str, path: str, data: Any = None, code: Any = 0, message: str = 'success'):
        self.routes[(method, path)] = lambda request: (200, envelope(data, code, message))

    def route_handler(self, method: str, path: str, handler: Handler):
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [kwargs for m, p, kwargs in self.requests if (m, p) == (method, path)]

    def _handle(self, method, url, params=None, json=None, timeout=None):
        path = url[len(BASE_URL):]
        request = {'params': params, 'json': json}
        self.requests.append((method, path, request))
        handler = self.routes.get((method, path))
        if handler is None:
            status, body = 404, None
        else:
            status, body = handler(request)
        response = Mock()
        response.status_code = status
        if body is None:
            response.json.side_effect = ValueError("no body")
        else:
            response.json.return_value = body
        return response


@pytest.fixture
def backend():
    fake = FakeBackend()
    with patch('src.platform_client.api_wrapper.requests.Session', return_value=fake.session):
        yield fake


@pytest.fixture
def storage():
    """Fake object storage: records PUT bodies by URL."""
    stored: Dict[str, Any] = {'objects': {}, 'status': 200}
    session = Mock()

    def put(url, data, headers, timeout):
        stored['objects'][url] = (b''.join(data), headers['Content-Type'])
        return Mock(status_code=stored['status'])

    session.put.side_effect = put
    stored['session'] = session
    return stored


@pytest.fixture
def session(backend, storage):
    auth = Mock()
    auth.get_credentials.return_value = Mock(url=BASE_URL, api_token='token123')
    api = APIWrapper(auth)
    transport = StorageTransport(chunk_size=4, session=storage['session'])
    return Session(api, NullNotifier(), page_size=2, admin=True, transport=transport)
