"""Connection test and token cache tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import HTTPError, WmsError
from ..wms_client import WmsClient
from ..utils.logging import scrub_secrets, truncate
from . import common

logger = logging.getLogger("wms_sync_server.resources.connection")


async def wms_test_connection(
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Verify WMS credentials: obtain a token, then read one stock summary row.

    Any argument left empty falls back to the matching WMS_* environment
    variable. Returns token metadata (type, expiry, whether it came from the
    cache) on success, or the failing step and status on failure.
    """
    logger.debug("Tool call: wms_test_connection()")
    step = "credentials"
    try:
        credentials = common.resolve_credentials(
            client_id, client_secret, user_login_id, facility_id, customer_id
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)

        step = "token"
        token = await client.token_manager.get_token_info(credentials)

        step = "items"
        url = client.collection_url("stocksummaries", credentials, page=1, page_size=1)
        response = await client.get_page(url, token.token)
        if not 200 <= response.status_code < 300:
            raise HTTPError(
                f"API validation failed: {response.status_code}",
                status=response.status_code,
                body=truncate(scrub_secrets(response.text or "", [token.token]), 500),
                url=url,
            )
    except WmsError as e:
        logger.warning("Connection test failed at %s: %s", step, e)
        return common.failure(e, step=step)
    except Exception as e:
        return common.failure(e)

    result = {
        "success": True,
        "message": "Successfully connected to WMS API",
        "token": {
            "token_type": token.token_type,
            "expires_at": token.expires_at,
            "expires_in": token.expires_in,
            "cached": token.cached,
        },
        "api_validated": True,
        "customer_id": credentials.customer_id,
        "facility_id": credentials.facility_id,
        "test_endpoint": "inventory/stocksummaries",
    }
    logger.debug("Tool result: wms_test_connection() -> %s", truncate(str(result)))
    return result


async def wms_clear_token_cache() -> Dict[str, Any]:
    """Drop every cached WMS token; the next call fetches a fresh one."""
    cleared = common.TOKEN_CACHE.clear()
    logger.info("Token cache cleared (%d entries)", cleared)
    return {"success": True, "message": "Token cache cleared", "cleared": cleared}
