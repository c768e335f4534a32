"""Structured trace of a sync attempt.

A record is built incrementally while pages are fetched and handed back to
the caller whether the sync succeeded or not. Per-page lists and response
snippets are bounded by MAX_DIAGNOSTIC_PAGES and SNIPPET_MAX_CHARS, and
every snippet is scrubbed of bearer tokens before it is stored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .utils.logging import scrub_secrets, truncate


API_VERSION = "v1"
MAX_DIAGNOSTIC_PAGES = 50
SNIPPET_MAX_CHARS = 500


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class RequestTrace:
    url_template: Optional[str] = None
    page_size: Optional[int] = None
    pages_requested: int = 0
    last_url_called: Optional[str] = None
    max_pages_reached: bool = False


@dataclass
class ResponseTrace:
    http_status_by_page: List[int] = field(default_factory=list)
    raw_snippet_by_page: List[str] = field(default_factory=list)
    detected_items_path: Optional[str] = None
    detected_shape: Optional[str] = None
    total_results_reported: Optional[int] = None
    items_found_by_page: List[int] = field(default_factory=list)
    total_items_extracted: int = 0


@dataclass
class DiagnosticsRecord:
    api_version: str = API_VERSION
    sync_start_time: Optional[str] = None
    sync_end_time: Optional[str] = None
    request: RequestTrace = field(default_factory=RequestTrace)
    response: ResponseTrace = field(default_factory=ResponseTrace)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    secrets: List[str] = field(default_factory=list, repr=False)

    @classmethod
    def start(cls, url_template: Optional[str] = None, page_size: Optional[int] = None) -> "DiagnosticsRecord":
        record = cls(sync_start_time=_now_iso())
        record.request.url_template = url_template
        record.request.page_size = page_size
        return record

    def add_secret(self, value: Optional[str]) -> None:
        """Register a value (usually the bearer token) to redact from snippets."""
        if value and value not in self.secrets:
            self.secrets.append(value)

    def snippet(self, text: Optional[str]) -> str:
        return truncate(scrub_secrets(text, self.secrets), SNIPPET_MAX_CHARS)

    def begin_page(self, url: str) -> None:
        """Count a page request before it is sent."""
        self.request.pages_requested += 1
        self.request.last_url_called = url

    def record_response(self, status: int, body_text: Optional[str]) -> None:
        if len(self.response.http_status_by_page) < MAX_DIAGNOSTIC_PAGES:
            self.response.http_status_by_page.append(status)
            self.response.raw_snippet_by_page.append(self.snippet(body_text))

    def record_page(self, url: str, status: int, body_text: Optional[str]) -> None:
        self.begin_page(url)
        self.record_response(status, body_text)

    def record_items(self, count: int, path: Optional[str] = None, shape: Optional[str] = None) -> None:
        if len(self.response.items_found_by_page) < MAX_DIAGNOSTIC_PAGES:
            self.response.items_found_by_page.append(count)
        self.response.total_items_extracted += count
        if path and self.response.detected_items_path is None:
            self.response.detected_items_path = path
            self.response.detected_shape = shape
        elif shape and self.response.detected_shape is None:
            self.response.detected_shape = shape

    def record_total(self, total: Optional[int]) -> None:
        # first page that reports a total wins
        if total is not None and self.response.total_results_reported is None:
            self.response.total_results_reported = total

    def warn(self, message: str) -> None:
        if len(self.warnings) < MAX_DIAGNOSTIC_PAGES:
            self.warnings.append(message)

    def fail(self, error: Exception) -> None:
        self.error = self.snippet(str(error))
        self.finish()

    def finish(self) -> None:
        self.sync_end_time = _now_iso()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("secrets", None)
        return data
