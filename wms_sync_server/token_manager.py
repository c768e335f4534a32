"""OAuth client-credentials token acquisition with a per-identity cache."""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

import httpx

from .credentials import Credentials
from .errors import AuthError, NetworkError
from .utils.logging import scrub_secrets, truncate


logger = logging.getLogger("wms_sync_server.token")

REFRESH_BUFFER_SECONDS = 5 * 60
DEFAULT_EXPIRES_IN = 3600

Identity = Tuple[str, str, str]


@dataclass
class CachedToken:
    token: str
    expires_at: float
    token_type: str = "Bearer"
    expires_in: int = DEFAULT_EXPIRES_IN
    cached: bool = False

    def is_fresh(self, now: float, buffer: float = REFRESH_BUFFER_SECONDS) -> bool:
        return now + buffer < self.expires_at


class TokenCache:
    """In-memory token store, one entry per credential identity.

    Owned by whoever builds the TokenManager; never persisted.
    """

    def __init__(self) -> None:
        self._entries: Dict[Identity, CachedToken] = {}

    def get(self, identity: Identity) -> Optional[CachedToken]:
        return self._entries.get(identity)

    def set(self, identity: Identity, entry: CachedToken) -> None:
        self._entries[identity] = entry

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        return identity in self._entries


def basic_auth_header(client_id: str, client_secret: str) -> str:
    raw = f"{client_id}:{client_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


@dataclass
class TokenManager:
    """Exchange credentials for a bearer token, reusing cached tokens.

    Two concurrent misses for the same identity may both hit the token
    endpoint; the later write wins and both tokens stay valid.
    """

    auth_url: str
    cache: TokenCache = field(default_factory=TokenCache)
    refresh_buffer: float = REFRESH_BUFFER_SECONDS
    default_expires_in: int = DEFAULT_EXPIRES_IN
    timeout: float = 30.0
    clock: Callable[[], float] = time.time

    async def _request(self, **kwargs) -> httpx.Response:
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
            try:
                return await client.post(self.auth_url, **kwargs)
            except httpx.TransportError as e:
                raise NetworkError(
                    f"Token request failed: {type(e).__name__}: {e}",
                    url=self.auth_url,
                ) from e

    async def get_token(self, credentials: Credentials) -> str:
        entry = await self.get_token_info(credentials)
        return entry.token

    async def get_token_info(self, credentials: Credentials) -> CachedToken:
        identity = credentials.identity
        now = self.clock()
        cached = self.cache.get(identity)
        if cached is not None and cached.is_fresh(now, self.refresh_buffer):
            logger.debug("Using cached token for %s", credentials.masked()["client_id"])
            return CachedToken(
                token=cached.token,
                expires_at=cached.expires_at,
                token_type=cached.token_type,
                expires_in=cached.expires_in,
                cached=True,
            )

        logger.info("Fetching new WMS token for %s", credentials.masked()["client_id"])
        entry = await self._fetch(credentials)
        self.cache.set(identity, entry)
        return entry

    async def _fetch(self, credentials: Credentials) -> CachedToken:
        response = await self._request(
            headers={
                "Authorization": basic_auth_header(credentials.client_id, credentials.client_secret),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json={
                "grant_type": "client_credentials",
                "user_login": credentials.user_login_id,
            },
        )
        body_text = scrub_secrets(response.text or "", [credentials.client_secret])

        if not 200 <= response.status_code < 300:
            logger.warning("Token request rejected: status=%s", response.status_code)
            raise AuthError(
                f"Failed to get access token: {response.status_code} {truncate(body_text, 200)}",
                status=response.status_code,
                body=truncate(body_text, 1000),
                url=self.auth_url,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AuthError(
                "Token endpoint returned a non-JSON body",
                status=response.status_code,
                body=truncate(body_text, 1000),
                url=self.auth_url,
            ) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthError(
                "Authentication succeeded but no access_token in response",
                status=response.status_code,
                url=self.auth_url,
            )

        expires_in = data.get("expires_in") or self.default_expires_in
        try:
            expires_in = int(expires_in)
        except (TypeError, ValueError):
            expires_in = self.default_expires_in

        return CachedToken(
            token=token,
            expires_at=self.clock() + expires_in,
            token_type=str(data.get("token_type") or "Bearer"),
            expires_in=expires_in,
            cached=False,
        )
