"""
Shared fixtures for httpsig-client tests
"""

import os

import pytest
from unittest.mock import MagicMock

from httpsig_client.config import ClientConfig, ENV_PREFIX


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep HTTPSIG_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def client_config():
    """Client configuration with a fixed identity and secret."""
    return ClientConfig(key_id="test-key", secret=b"top-secret")


@pytest.fixture
def mock_session():
    """Mock requests session returning a 200 JSON response."""
    session = MagicMock()
    response = MagicMock()
    response.status_code = 200
    response.reason = "OK"
    response.headers = {"Content-Type": "application/json"}
    response.content = b'{"ok": true}'
    session.request.return_value = response
    return session
