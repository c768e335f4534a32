"""Shared state and result envelopes for the WMS tools."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from ..credentials import Credentials
from ..diagnostics import DiagnosticsRecord
from ..errors import CredentialError, NetworkError, WmsError
from ..token_manager import TokenCache

logger = logging.getLogger("wms_sync_server.resources")

# Lives as long as the server process; tests swap in a fresh one.
TOKEN_CACHE = TokenCache()


def resolve_credentials(
    client_id: str | None = None,
    client_secret: str | None = None,
    user_login_id: str | None = None,
    facility_id: str | None = None,
    customer_id: str | None = None,
) -> Credentials:
    """Explicit arguments first, WMS_* environment second; validated."""
    return Credentials.from_env(
        client_id=client_id,
        client_secret=client_secret,
        user_login_id=user_login_id,
        facility_id=facility_id,
        customer_id=customer_id,
    ).validate()


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def failure(
    exc: Exception,
    step: Optional[str] = None,
    diagnostics: Optional[DiagnosticsRecord] = None,
) -> Dict[str, Any]:
    """Turn an exception into the failure envelope callers expect."""
    if isinstance(exc, WmsError):
        status = exc.status
        if status is None:
            status = 502 if isinstance(exc, NetworkError) else 500
        result: Dict[str, Any] = {
            "success": False,
            "step": step or exc.step,
            "status": status,
            "error": exc.message,
        }
        if isinstance(exc, CredentialError):
            result["missing"] = exc.missing
        if exc.body:
            result["details"] = exc.body
        diagnostics = diagnostics or exc.diagnostics
    else:
        logger.exception("Unexpected error")
        result = {
            "success": False,
            "step": "unknown",
            "status": 500,
            "error": str(exc),
        }
    if diagnostics is not None:
        result["diagnostics"] = diagnostics.to_dict()
    return result
