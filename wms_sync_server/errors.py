"""Error taxonomy for the WMS sync engine."""

from __future__ import annotations

from typing import Any, Optional


class WmsError(Exception):
    """Base error for everything raised while talking to the WMS provider.

    `step` names the stage a caller reports when the error surfaces:
    credentials, token, items or unknown.
    """

    step = "unknown"

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body
        self.url = url
        self.diagnostics: Optional[Any] = None


class CredentialError(WmsError):
    """A required credential field is missing."""

    step = "credentials"

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Missing required fields: " + ", ".join(missing),
            status=400,
        )
        self.missing = list(missing)


class AuthError(WmsError):
    """The token endpoint rejected the credentials."""

    step = "token"


class NetworkError(WmsError):
    """Transport-level failure (DNS, connect, read timeout...)."""


class HTTPError(WmsError):
    """Non-2xx response from a data endpoint."""

    step = "items"


class ParseError(WmsError):
    """Response body is not valid JSON."""

    step = "items"


class UnknownShapeError(WmsError):
    """Valid JSON without a recognizable item array.

    Never raised out of the fetcher; recorded as a diagnostics warning.
    """

    step = "items"

    def __init__(self, page: int, top_level_keys: list[str]) -> None:
        super().__init__(
            f"Page {page}: no item array found (top-level keys: {', '.join(top_level_keys) or 'none'})"
        )
        self.page = page
        self.top_level_keys = top_level_keys
