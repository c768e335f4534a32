"""Shared test fixtures for the WMS sync server tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from wms_sync_server.credentials import Credentials
from wms_sync_server.token_manager import TokenCache, TokenManager
from wms_sync_server.wms_client import WmsClient


BASE_URL = "https://wms.test/"
AUTH_URL = "https://wms.test/AuthServer/api/Token"

WMS_ENV = {
    "WMS_BASE_URL": BASE_URL,
    "WMS_CLIENT_ID": "client-abc-123",
    "WMS_CLIENT_SECRET": "secret-xyz-789",
    "WMS_USER_LOGIN_ID": "ops.user",
    "WMS_FACILITY_ID": "7",
    "WMS_CUSTOMER_ID": "42",
}


class FakeClock:
    """Controllable replacement for time.time()."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def mock_response():
    """Factory for creating mock HTTP responses.

    Usage:
        resp = mock_response(200, {"key": "value"})
        resp = mock_response(401, text="Unauthorized")
    """
    def _make(status_code=200, json_data=None, text=None, headers=None):
        response = MagicMock()
        response.status_code = status_code
        if json_data is not None:
            response.json.return_value = json_data
            response.text = text or str(json_data)
        else:
            response.json.side_effect = ValueError("No JSON")
            response.text = text or ""
        response.headers = headers or {}
        return response
    return _make


@pytest.fixture
def credentials():
    return Credentials(
        client_id="client-abc-123",
        client_secret="secret-xyz-789",
        user_login_id="ops.user",
        facility_id="7",
        customer_id="42",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_manager(clock):
    """TokenManager with a fresh cache, fake clock and mocked _request."""
    manager = TokenManager(auth_url=AUTH_URL, cache=TokenCache(), clock=clock)
    manager._request = AsyncMock()
    return manager


@pytest.fixture
def mock_client(token_manager):
    """WmsClient with mocked _request for data calls and token calls."""
    client = WmsClient(base_url=BASE_URL, auth_url=AUTH_URL, token_manager=token_manager)
    client._request = AsyncMock()
    return client


@pytest.fixture
def wms_env():
    with patch.dict("os.environ", WMS_ENV, clear=False):
        yield WMS_ENV


# All tool modules that import WmsClient
_RESOURCE_MODULES = [
    "wms_sync_server.resources.connection",
    "wms_sync_server.resources.items",
    "wms_sync_server.resources.orders",
    "wms_sync_server.resources.receiving",
]


@pytest.fixture
def patched_client(mock_client, wms_env):
    """Patch WmsClient in all tool modules so from_env() yields mock_client.

    Usage:
        def test_something(patched_client, mock_response):
            patched_client.token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)
            patched_client._request.return_value = mock_response(200, {...})
            # call the tool function...
    """
    mock_class = MagicMock()
    mock_class.from_env.return_value = mock_client

    patchers = [patch(f"{mod}.WmsClient", mock_class) for mod in _RESOURCE_MODULES]
    patchers.append(patch("wms_sync_server.resources.common.TOKEN_CACHE", TokenCache()))
    for p in patchers:
        p.start()
    yield mock_client
    for p in patchers:
        p.stop()
