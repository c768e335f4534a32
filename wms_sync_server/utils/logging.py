"""Logging helpers for the WMS sync server."""

from __future__ import annotations

import os
import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv


_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/=]+", re.IGNORECASE)
_ACCESS_TOKEN_RE = re.compile(r'("?access_token"?\s*[:=]\s*"?)[^",\s}]+', re.IGNORECASE)


def setup_logging() -> None:
    """Configure logging from environment variables.

    Reads WMS_LOG_LEVEL and WMS_LOG_FILE, sets up root logger.
    """
    loaded = load_dotenv()
    if not loaded:
        package_dir = Path(__file__).resolve().parent.parent
        env_path = package_dir.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=False)

    log_level = os.getenv("WMS_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    log_file = os.getenv("WMS_LOG_FILE")
    if log_file:
        try:
            handler = RotatingFileHandler(log_file, maxBytes=5_000_000, backupCount=3)
        except OSError as exc:
            logging.getLogger("wms_sync_server").warning(
                "Cannot open log file %s: %s", log_file, exc
            )
            return
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s: %(message)s"))
        logging.getLogger().addHandler(handler)


def truncate(text: str, max_len: int = 2000) -> str:
    """Truncate text to max_len with a suffix marker."""
    if text is None:
        return ""
    if len(text) <= max_len:
        return text
    return text[:max_len] + "... [truncated]"


def scrub_secrets(text: Optional[str], secrets: Iterable[str] = ()) -> str:
    """Replace bearer tokens, access_token values and known secrets."""
    if not text:
        return ""
    scrubbed = _BEARER_RE.sub(r"\1[REDACTED]", text)
    scrubbed = _ACCESS_TOKEN_RE.sub(r"\1[REDACTED]", scrubbed)
    for secret in secrets:
        if secret:
            scrubbed = scrubbed.replace(secret, "[REDACTED]")
    return scrubbed
