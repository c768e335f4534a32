"""Sequential page-by-page retrieval of a collection resource."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .diagnostics import DiagnosticsRecord
from .errors import HTTPError, ParseError, UnknownShapeError, WmsError
from .shapes import ResponseShape, extract_items, reported_total
from .utils.logging import scrub_secrets, truncate


logger = logging.getLogger("wms_sync_server.pagination")

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 50


@dataclass
class PageFetchResult:
    items: List[Any] = field(default_factory=list)
    diagnostics: DiagnosticsRecord = field(default_factory=DiagnosticsRecord)


async def fetch_all_pages(
    client,
    endpoint_builder: Callable[[int], str],
    token: str,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
    *,
    url_template: Optional[str] = None,
    diagnostics: Optional[DiagnosticsRecord] = None,
) -> PageFetchResult:
    """Fetch pages 1..n until the collection is exhausted.

    A page with no items, or with fewer than `page_size` items, ends the
    loop. Reaching `max_pages` also ends it, without an error. Any non-2xx
    page raises HTTPError and a non-JSON body raises ParseError; in both
    cases the accumulated items are dropped and the diagnostics gathered so
    far travel on the exception as `exc.diagnostics`.
    """
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    if max_pages < 1:
        raise ValueError("max_pages must be >= 1")

    if diagnostics is None:
        diagnostics = DiagnosticsRecord.start(url_template, page_size)
    else:
        diagnostics.request.url_template = diagnostics.request.url_template or url_template
        diagnostics.request.page_size = page_size
    diagnostics.add_secret(token)

    items: List[Any] = []
    page = 1
    try:
        while True:
            url = endpoint_builder(page)
            diagnostics.begin_page(url)
            response = await client.get_page(url, token)
            body_text = response.text or ""
            diagnostics.record_response(response.status_code, body_text)

            if not 200 <= response.status_code < 300:
                snippet = truncate(scrub_secrets(body_text, [token]), 1000)
                logger.warning("Page %d failed: status=%s url=%s", page, response.status_code, url)
                raise HTTPError(
                    f"Page {page} request failed: {response.status_code} {truncate(snippet, 200)}",
                    status=response.status_code,
                    body=snippet,
                    url=url,
                )

            try:
                body = response.json()
            except ValueError as e:
                raise ParseError(
                    f"Page {page} body is not valid JSON",
                    status=response.status_code,
                    body=diagnostics.snippet(body_text),
                    url=url,
                ) from e

            match = extract_items(body)
            if match.shape is ResponseShape.UNKNOWN:
                diagnostics.warn(str(UnknownShapeError(page, match.top_level_keys)))
            diagnostics.record_items(len(match.items), match.path, match.shape_name)
            diagnostics.record_total(reported_total(body))
            items.extend(match.items)

            logger.info(
                "Fetched page %d: %d items (shape=%s, total so far=%d)",
                page, len(match.items), match.shape_name, len(items),
            )

            if not match.items or len(match.items) < page_size:
                break
            if page >= max_pages:
                diagnostics.request.max_pages_reached = True
                logger.warning("Stopped after max_pages=%d; collection may be incomplete", max_pages)
                break
            page += 1
    except WmsError as e:
        diagnostics.fail(e)
        e.diagnostics = diagnostics
        raise

    diagnostics.finish()
    return PageFetchResult(items=items, diagnostics=diagnostics)
