"""Receiving submission tools."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict

from ..credentials import Credentials
from ..diagnostics import DiagnosticsRecord
from ..errors import WmsError
from ..receiving import (
    ReceivingDefaults,
    ReceivingSession,
    build_receiving_payload,
)
from ..wms_client import WmsClient
from ..utils.logging import truncate
from . import common

logger = logging.getLogger("wms_sync_server.resources.receiving")


def _summary(payload: Dict[str, Any]) -> Dict[str, Any]:
    lines = payload.get("receiveItems", [])
    return {
        "entries_count": len(lines),
        "total_qty": sum(line["qty"] for line in lines),
        "on_hold_count": sum(1 for line in lines if line.get("onHold")),
    }


async def wms_preview_receiving(
    session: Dict[str, Any],
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Build the receiving transaction for a session without submitting it.

    Useful to review how full, partial and mixed pallets were split. The
    session's customerId wins over customer_id and WMS_CUSTOMER_ID.
    """
    logger.debug("Tool call: wms_preview_receiving(items=%d)", len(session.get("items") or []))
    parsed = ReceivingSession.from_dict(session)
    env = Credentials.from_env()
    facility = facility_id or env.facility_id
    if not parsed.customer_id:
        parsed = replace(parsed, customer_id=customer_id or env.customer_id)
    payload = build_receiving_payload(parsed, facility, ReceivingDefaults.from_env())
    return {"success": True, "payload": payload, **_summary(payload)}


async def wms_send_receiving(
    session: Dict[str, Any],
    facility_id: str | None = None,
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    customer_id: str | None = None,
) -> Dict[str, Any]:
    """Split a receiving session into pallet lines and submit it to the WMS.

    The session is the caller's JSON: customerId, containerNumber, poNumber,
    startedBy, startedAt, completedAt, reviewNotes, type (normal|blind) and
    items with itemNumber, fullPallets, casesPerPallet, partialCases,
    mixedPallet, mixedPalletQty, condition (ok|damaged|defective), notes and
    optional dimensions. The session's customerId wins over customer_id.
    """
    parsed = ReceivingSession.from_dict(session)
    logger.debug(
        "Tool call: wms_send_receiving(container=%s, items=%d)",
        parsed.container_number, len(parsed.items),
    )
    step = "credentials"
    diagnostics: DiagnosticsRecord | None = None
    try:
        credentials = common.resolve_credentials(
            client_id,
            client_secret,
            user_login_id,
            facility_id,
            parsed.customer_id or customer_id,
        )
        client = WmsClient.from_env(cache=common.TOKEN_CACHE)
        parsed = replace(parsed, customer_id=credentials.customer_id)
        payload = build_receiving_payload(parsed, credentials.facility_id, ReceivingDefaults.from_env())
        diagnostics = DiagnosticsRecord.start("inventory/receivers")

        step = "token"
        token = await client.token_manager.get_token(credentials)
        diagnostics.add_secret(token)

        step = "items"
        submitted = await client.create_receiver(payload, token)
        diagnostics.record_page("inventory/receivers", submitted["status"], str(submitted["raw"]))
        diagnostics.finish()
    except WmsError as e:
        logger.warning("Receiving submission failed at %s: %s", step, e)
        if diagnostics is not None:
            if e.status is not None and e.url:
                diagnostics.record_page(e.url, e.status, e.body)
            diagnostics.fail(e)
        return common.failure(e, step=step, diagnostics=diagnostics)
    except Exception as e:
        return common.failure(e, diagnostics=diagnostics)

    result = {
        "success": True,
        "receiver_id": submitted["receiver_id"],
        "reference_num": submitted["reference_num"] or payload["referenceNum"],
        **_summary(payload),
        "diagnostics": diagnostics.to_dict(),
    }
    logger.info(
        "Submitted receiver %s (%d lines)", result["receiver_id"], result["entries_count"]
    )
    logger.debug("Tool result: wms_send_receiving -> %s", truncate(str(result)))
    return result
