"""Order lookup and creation tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import WmsError
from ..wms_client import WmsClient
from ..utils.logging import truncate
from ..utils.projection import project_dict
from . import common

logger = logging.getLogger("wms_sync_server.resources.orders")


async def wms_get_order(
    order_id: str,
    fields: list[str] | None = None,
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Fetch one WMS order with full detail.

    To list orders use wms_sync_items(collection="orders").
    """
    logger.debug("Tool call: wms_get_order(order_id=%s)", order_id)
    step = "credentials"
    try:
        credentials = common.resolve_credentials(
            client_id, client_secret, user_login_id, facility_id, customer_id
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)
        step = "token"
        token = await client.token_manager.get_token(credentials)
        step = "items"
        order = await client.get_order(order_id, token)
    except WmsError as e:
        return common.failure(e, step=step)
    except Exception as e:
        return common.failure(e)

    result = {"success": True, "order": project_dict(order, fields)}
    logger.debug("Tool result: wms_get_order -> %s", truncate(str(result)))
    return result


async def wms_create_order(
    order_data: Dict[str, Any],
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Create a WMS order; customer and facility identifiers are added for you."""
    logger.debug("Tool call: wms_create_order(keys=%s)", sorted((order_data or {}).keys()))
    if not order_data:
        return {"success": False, "step": "items", "status": 400, "error": "order_data is required"}

    step = "credentials"
    try:
        credentials = common.resolve_credentials(
            client_id, client_secret, user_login_id, facility_id, customer_id
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)
        step = "token"
        token = await client.token_manager.get_token(credentials)
        step = "items"
        order = await client.create_order(credentials, order_data, token)
    except WmsError as e:
        return common.failure(e, step=step)
    except Exception as e:
        return common.failure(e)

    logger.info("Created WMS order for customer %s", credentials.customer_id)
    return {"success": True, "order": order}
