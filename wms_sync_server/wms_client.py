from __future__ import annotations

import os
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from .credentials import Credentials
from .errors import HTTPError, NetworkError, ParseError
from .receiving import as_identifier
from .token_manager import TokenCache, TokenManager
from .utils.logging import scrub_secrets, truncate


logger = logging.getLogger("wms_sync_server.http")

DEFAULT_BASE_URL = "https://secure-wms.com/"
AUTH_PATH = "AuthServer/api/Token"
HAL_JSON = "application/hal+json"

# name -> (path template, include customer/facility query params)
COLLECTIONS: Dict[str, tuple[str, bool]] = {
    "items": ("customers/{customer_id}/items", False),
    "stocksummaries": ("inventory/stocksummaries", True),
    "inventory": ("inventory", True),
    "orders": ("orders", True),
}


def _redact_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    redacted = {}
    for k, v in headers.items():
        if str(k).lower() == "authorization":
            redacted[k] = "[REDACTED]"
        else:
            redacted[k] = v
    return redacted


def _first(data: Dict[str, Any], *paths: str) -> Any:
    for path in paths:
        node: Any = data
        for part in path.split("."):
            if not isinstance(node, dict) or part not in node:
                node = None
                break
            node = node[part]
        if node not in (None, ""):
            return node
    return None


@dataclass
class WmsClient:
    """Async client for the Extensiv 3PL Warehouse Manager REST API.

    Uses a per-request httpx.AsyncClient. Nothing is retried: a failed call
    fails the operation that issued it.
    """

    base_url: str
    auth_url: str
    token_manager: TokenManager = field(repr=False)
    timeout: float = 30.0

    @classmethod
    def from_env(cls, cache: Optional[TokenCache] = None) -> "WmsClient":
        """Create a client from environment variables.

        Optional env vars:
        - WMS_BASE_URL (defaults to https://secure-wms.com/)
        - WMS_AUTH_URL (defaults to <base>AuthServer/api/Token)
        - WMS_HTTP_TIMEOUT (seconds, default 30)
        """
        base_url = os.getenv("WMS_BASE_URL", DEFAULT_BASE_URL)
        if not base_url.endswith("/"):
            base_url = base_url + "/"
        auth_url = os.getenv("WMS_AUTH_URL") or base_url + AUTH_PATH
        timeout = float(os.getenv("WMS_HTTP_TIMEOUT", "30"))

        token_manager = TokenManager(
            auth_url=auth_url,
            cache=cache if cache is not None else TokenCache(),
            timeout=timeout,
        )
        return cls(
            base_url=base_url,
            auth_url=auth_url,
            token_manager=token_manager,
            timeout=timeout,
        )

    def _headers(self, token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": HAL_JSON,
            "Content-Type": HAL_JSON,
        }

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Execute a single HTTP request; transport failures become NetworkError."""
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        ) as client:
            start = time.perf_counter()
            try:
                response = await client.request(method.upper(), url, **kwargs)
            except httpx.TransportError as e:
                logger.warning("HTTP %s %s failed: %s", method.upper(), url, type(e).__name__)
                raise NetworkError(
                    f"{method.upper()} {url} failed: {type(e).__name__}: {e}", url=url
                ) from e
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.debug(
                "HTTP %s %s status=%s elapsed_ms=%.2f headers=%s",
                method.upper(),
                url,
                response.status_code,
                elapsed_ms,
                _redact_headers(kwargs.get("headers") or {}),
            )
            return response

    # ----------------------------- URLs -----------------------------

    def collection_url(
        self,
        collection: str,
        credentials: Credentials,
        page: int | str,
        page_size: int,
    ) -> str:
        """Relative URL of one page of a named collection."""
        if collection not in COLLECTIONS:
            raise ValueError(
                f"Unknown collection '{collection}'. Expected one of: {', '.join(sorted(COLLECTIONS))}"
            )
        template, scoped = COLLECTIONS[collection]
        path = template.format(customer_id=credentials.customer_id)
        params: Dict[str, Any] = {}
        if scoped:
            params["customerid"] = credentials.customer_id
            params["facilityid"] = credentials.facility_id
        params["pgsiz"] = page_size
        params["pgnum"] = page
        # keep the {page} placeholder readable in diagnostics templates
        return f"{path}?{urlencode(params, safe='{}')}"

    # ----------------------------- API methods -----------------------------

    async def get_page(self, url: str, token: str) -> httpx.Response:
        """GET one collection page; status handling is left to the caller."""
        return await self._request("get", url, headers=self._headers(token))

    def _json_or_raise(self, response: httpx.Response, url: str, token: str, what: str) -> Any:
        body = scrub_secrets(response.text or "", [token])
        if not 200 <= response.status_code < 300:
            raise HTTPError(
                f"{what} failed: {response.status_code} {truncate(body, 200)}",
                status=response.status_code,
                body=truncate(body, 1000),
                url=url,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                f"{what}: response is not valid JSON",
                status=response.status_code,
                body=truncate(body, 1000),
                url=url,
            ) from e

    async def create_receiver(self, payload: Dict[str, Any], token: str) -> Dict[str, Any]:
        """Submit a receiving transaction via POST inventory/receivers."""
        url = "inventory/receivers"
        response = await self._request("post", url, headers=self._headers(token), json=payload)
        data = self._json_or_raise(response, url, token, "Receiver submission")
        if not isinstance(data, dict):
            data = {"result": data}
        return {
            "status": response.status_code,
            "receiver_id": _first(data, "ReadOnly.ReceiverId", "readOnly.receiverId", "ReceiverId", "id"),
            "reference_num": _first(data, "ReferenceNum", "referenceNum"),
            "raw": data,
        }

    async def get_order(self, order_id: str, token: str) -> Dict[str, Any]:
        """Fetch a single order with full detail."""
        url = f"orders/{order_id}?detail=All"
        response = await self._request("get", url, headers=self._headers(token))
        data = self._json_or_raise(response, url, token, "Order fetch")
        return data if isinstance(data, dict) else {"result": data}

    async def create_order(
        self, credentials: Credentials, order_data: Dict[str, Any], token: str
    ) -> Dict[str, Any]:
        """Create an order for the credential's customer and facility."""
        url = "orders"
        payload = {
            "customerIdentifier": {"id": as_identifier(credentials.customer_id)},
            "facilityIdentifier": {"id": as_identifier(credentials.facility_id)},
            **order_data,
        }
        response = await self._request("post", url, headers=self._headers(token), json=payload)
        data = self._json_or_raise(response, url, token, "Order creation")
        return data if isinstance(data, dict) else {"result": data}

