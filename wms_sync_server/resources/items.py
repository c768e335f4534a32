"""Item and inventory collection tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from ..diagnostics import DiagnosticsRecord
from ..errors import HTTPError, ParseError, WmsError
from ..pagination import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE, fetch_all_pages
from ..shapes import extract_items, reported_total
from ..wms_client import WmsClient
from ..utils.logging import scrub_secrets, truncate
from ..utils.projection import project_items
from . import common

logger = logging.getLogger("wms_sync_server.resources.items")


async def wms_sync_items(
    collection: str = "items",
    page_size: int | None = None,
    max_pages: int | None = None,
    fields: list[str] | None = None,
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Fetch every page of a WMS collection and return the items with diagnostics.

    Parameters:
    - collection: items (customer item master), stocksummaries, inventory or orders
    - page_size: records per page (default WMS_PAGE_SIZE or 100)
    - max_pages: safety ceiling on pages fetched (default WMS_MAX_PAGES or 50)
    - fields: keep only these keys on each item; omit for full records

    Credentials default to the WMS_* environment variables.
    """
    logger.debug(
        "Tool call: wms_sync_items(collection=%s, page_size=%s, max_pages=%s)",
        collection, page_size, max_pages,
    )
    page_size = page_size or common.env_int("WMS_PAGE_SIZE", DEFAULT_PAGE_SIZE)
    max_pages = max_pages or common.env_int("WMS_MAX_PAGES", DEFAULT_MAX_PAGES)

    step = "credentials"
    diagnostics: DiagnosticsRecord | None = None
    try:
        credentials = common.resolve_credentials(
            client_id, client_secret, user_login_id, facility_id, customer_id
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)
        url_template = client.collection_url(collection, credentials, page="{page}", page_size=page_size)
        diagnostics = DiagnosticsRecord.start(url_template, page_size)

        step = "token"
        token = await client.token_manager.get_token(credentials)

        step = "items"
        result = await fetch_all_pages(
            client,
            lambda page: client.collection_url(collection, credentials, page=page, page_size=page_size),
            token,
            page_size=page_size,
            max_pages=max_pages,
            url_template=url_template,
            diagnostics=diagnostics,
        )
    except WmsError as e:
        logger.warning("Sync of %s failed at %s: %s", collection, step, e)
        if diagnostics is not None and diagnostics.sync_end_time is None:
            diagnostics.fail(e)
        return common.failure(e, step=step, diagnostics=diagnostics)
    except ValueError as e:
        return {"success": False, "step": "items", "status": 400, "error": str(e)}
    except Exception as e:
        return common.failure(e, diagnostics=diagnostics)

    items = project_items(result.items, fields)
    out = {
        "success": True,
        "collection": collection,
        "items": items,
        "count": len(items),
        "total_reported": result.diagnostics.response.total_results_reported,
        "diagnostics": result.diagnostics.to_dict(),
    }
    logger.info("Synced %d %s from WMS", len(items), collection)
    logger.debug("Tool result: wms_sync_items -> %s", truncate(str(out)))
    return out


async def wms_inventory_page(
    page: int = 1,
    page_size: int = 100,
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Read a single page of inventory stock summaries.

    Returns the raw page body plus the extracted items, for quick inspection
    without running a full sync.
    """
    logger.debug("Tool call: wms_inventory_page(page=%s, page_size=%s)", page, page_size)
    step = "credentials"
    try:
        credentials = common.resolve_credentials(
            client_id, client_secret, user_login_id, facility_id, customer_id
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)

        step = "token"
        token = await client.token_manager.get_token(credentials)

        step = "items"
        url = client.collection_url("stocksummaries", credentials, page=page, page_size=page_size)
        response = await client.get_page(url, token)
        body_text = scrub_secrets(response.text or "", [token])
        if not 200 <= response.status_code < 300:
            raise HTTPError(
                f"Failed to fetch inventory: {response.status_code}",
                status=response.status_code,
                body=truncate(body_text, 1000),
                url=url,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise ParseError("Inventory page is not valid JSON", status=response.status_code, url=url) from e
    except WmsError as e:
        return common.failure(e, step=step)
    except Exception as e:
        return common.failure(e)

    match = extract_items(body)
    return {
        "success": True,
        "page": page,
        "shape": match.shape_name,
        "items": match.items,
        "total_reported": reported_total(body),
        "inventory": body,
    }
