"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging
from unittest.mock import patch

import pytest

# urllib3 logs every retry and connection at DEBUG/WARNING; tests never
# open real connections, so its output is only noise.
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def isolated_credentials(monkeypatch):
    """Keep a developer's .env and shell credentials out of the tests."""
    monkeypatch.delenv('STUDYSHARE_API_URL', raising=False)
    monkeypatch.delenv('STUDYSHARE_API_TOKEN', raising=False)
    with patch('src.platform_client.auth.load_dotenv'):
        yield
