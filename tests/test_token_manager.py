"""Tests for token acquisition and caching."""

from __future__ import annotations

import base64

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from wms_sync_server.credentials import Credentials
from wms_sync_server.errors import AuthError, NetworkError
from wms_sync_server.token_manager import (
    CachedToken,
    TokenCache,
    TokenManager,
    basic_auth_header,
)

from tests.fixtures.tokens import (
    TOKEN_ERROR_401,
    TOKEN_RESPONSE,
    TOKEN_RESPONSE_NO_EXPIRY,
    TOKEN_RESPONSE_SECOND,
)


# ---------------------------------------------------------------------------
# TestTokenRequest
# ---------------------------------------------------------------------------


class TestTokenRequest:
    """Shape of the request sent to the token endpoint."""

    async def test_basic_auth_header_is_base64_of_colon_pair(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)

        await token_manager.get_token(credentials)

        headers = token_manager._request.call_args.kwargs["headers"]
        expected = base64.b64encode(b"client-abc-123:secret-xyz-789").decode("ascii")
        assert headers["Authorization"] == f"Basic {expected}"

    async def test_body_declares_client_credentials_and_user_login(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)

        await token_manager.get_token(credentials)

        body = token_manager._request.call_args.kwargs["json"]
        assert body == {"grant_type": "client_credentials", "user_login": "ops.user"}

    def test_basic_auth_header_helper(self):
        assert basic_auth_header("a", "b") == "Basic YTpi"


# ---------------------------------------------------------------------------
# TestTokenCaching
# ---------------------------------------------------------------------------


class TestTokenCaching:
    """Reuse vs. refresh decisions."""

    async def test_second_call_within_window_reuses_token(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)

        first = await token_manager.get_token(credentials)
        second = await token_manager.get_token(credentials)

        assert first == second == "tok-abc-123456789"
        token_manager._request.assert_called_once()

    async def test_reused_until_expiry_minus_buffer(self, token_manager, credentials, clock, mock_response):
        token_manager._request.side_effect = [
            mock_response(200, TOKEN_RESPONSE),
            mock_response(200, TOKEN_RESPONSE_SECOND),
        ]

        await token_manager.get_token(credentials)
        clock.advance(3600 - 300 - 1)
        still_cached = await token_manager.get_token(credentials)
        assert still_cached == "tok-abc-123456789"
        assert token_manager._request.call_count == 1

        clock.advance(1)
        refreshed = await token_manager.get_token(credentials)
        assert refreshed == "tok-def-987654321"
        assert token_manager._request.call_count == 2

    async def test_refresh_overwrites_single_cache_entry(self, token_manager, credentials, clock, mock_response):
        token_manager._request.side_effect = [
            mock_response(200, TOKEN_RESPONSE),
            mock_response(200, TOKEN_RESPONSE_SECOND),
        ]

        await token_manager.get_token(credentials)
        clock.advance(4000)
        await token_manager.get_token(credentials)

        assert len(token_manager.cache) == 1
        assert token_manager.cache.get(credentials.identity).token == "tok-def-987654321"

    async def test_missing_expires_in_defaults_to_one_hour(self, token_manager, credentials, clock, mock_response):
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE_NO_EXPIRY)

        info = await token_manager.get_token_info(credentials)

        assert info.expires_in == 3600
        assert info.expires_at == clock.now + 3600

    async def test_token_info_reports_cache_hit(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)

        first = await token_manager.get_token_info(credentials)
        second = await token_manager.get_token_info(credentials)

        assert first.cached is False
        assert second.cached is True
        assert second.token_type == "Bearer"

    async def test_identities_cached_separately(self, token_manager, credentials, mock_response):
        other = Credentials(
            client_id="client-abc-123",
            client_secret="secret-xyz-789",
            user_login_id="ops.user",
            facility_id="7",
            customer_id="99",
        )
        token_manager._request.side_effect = [
            mock_response(200, TOKEN_RESPONSE),
            mock_response(200, TOKEN_RESPONSE_SECOND),
        ]

        a = await token_manager.get_token(credentials)
        b = await token_manager.get_token(other)

        assert a != b
        assert len(token_manager.cache) == 2

    async def test_facility_is_not_part_of_identity(self, token_manager, credentials, mock_response):
        same_identity = Credentials(
            client_id="client-abc-123",
            client_secret="secret-xyz-789",
            user_login_id="ops.user",
            facility_id="8",
            customer_id="42",
        )
        token_manager._request.return_value = mock_response(200, TOKEN_RESPONSE)

        await token_manager.get_token(credentials)
        await token_manager.get_token(same_identity)

        token_manager._request.assert_called_once()

    async def test_fresh_cache_per_manager(self, credentials, mock_response):
        m1 = TokenManager(auth_url="https://wms.test/token", cache=TokenCache())
        m2 = TokenManager(auth_url="https://wms.test/token", cache=TokenCache())
        m1._request = AsyncMock(return_value=mock_response(200, TOKEN_RESPONSE))
        m2._request = AsyncMock(return_value=mock_response(200, TOKEN_RESPONSE_SECOND))

        assert await m1.get_token(credentials) == "tok-abc-123456789"
        assert await m2.get_token(credentials) == "tok-def-987654321"


# ---------------------------------------------------------------------------
# TestTokenErrors
# ---------------------------------------------------------------------------


class TestTokenErrors:

    async def test_rejected_credentials_raise_auth_error(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(401, text=TOKEN_ERROR_401)

        with pytest.raises(AuthError, match="Failed to get access token: 401") as exc_info:
            await token_manager.get_token(credentials)

        assert exc_info.value.status == 401
        assert "invalid_client" in exc_info.value.body
        assert exc_info.value.step == "token"
        assert len(token_manager.cache) == 0

    async def test_missing_access_token_raises_auth_error(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, {"token_type": "Bearer"})

        with pytest.raises(AuthError, match="no access_token"):
            await token_manager.get_token(credentials)

    async def test_non_json_body_raises_auth_error(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(200, text="<html>ok</html>")

        with pytest.raises(AuthError, match="non-JSON"):
            await token_manager.get_token(credentials)

    async def test_secret_is_scrubbed_from_error_body(self, token_manager, credentials, mock_response):
        token_manager._request.return_value = mock_response(
            400, text="bad client secret-xyz-789"
        )

        with pytest.raises(AuthError) as exc_info:
            await token_manager.get_token(credentials)

        assert "secret-xyz-789" not in exc_info.value.body
        assert "[REDACTED]" in exc_info.value.body

    async def test_transport_failure_raises_network_error(self, credentials):
        manager = TokenManager(auth_url="https://wms.test/AuthServer/api/Token")
        with patch(
            "httpx.AsyncClient.post",
            AsyncMock(side_effect=httpx.ConnectError("connection refused")),
        ):
            with pytest.raises(NetworkError, match="ConnectError"):
                await manager.get_token(credentials)


class TestCachedToken:

    def test_is_fresh_uses_strict_comparison(self):
        entry = CachedToken(token="t", expires_at=1000.0)
        assert entry.is_fresh(699.0, buffer=300)
        assert not entry.is_fresh(700.0, buffer=300)

    def test_cache_clear_returns_count(self):
        cache = TokenCache()
        cache.set(("a", "b", "c"), CachedToken(token="t", expires_at=1.0))
        assert ("a", "b", "c") in cache
        assert cache.clear() == 1
        assert len(cache) == 0
