"""
Cursor pagination over timeline-shaped operations.

``paginate_cursor`` drives a page fetcher until the target count is met, the
upstream runs out of pages, or the page cap is reached. Items are
de-duplicated by key in first-seen order.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable

from ..core.types import Page, PaginatedResult
from ..logging_utils import log_event

logger = logging.getLogger(__name__)

HARD_MAX_PAGES = 10
DEFAULT_PAGE_SIZE = 20

PageFetcher = Callable[[str | None, int], Awaitable[Page]]


def resolve_page_cap(
    target_count: int | None,
    max_pages: int | None,
    page_size: int = DEFAULT_PAGE_SIZE,
    hard_max_pages: int = HARD_MAX_PAGES,
) -> int:
    """Return how many pages one call may fetch."""
    if max_pages:
        return min(hard_max_pages, max_pages)
    if target_count is None:
        return hard_max_pages
    return min(hard_max_pages, max(1, math.ceil(target_count / page_size)))


async def paginate_cursor(
    fetch_page: PageFetcher,
    *,
    target_count: int | None = None,
    max_pages: int | None = None,
    cursor: str | None = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    page_delay: float = 0.0,
    key: Callable[[Any], str] = lambda item: item.id,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    hard_max_pages: int = HARD_MAX_PAGES,
) -> PaginatedResult:
    """Fetch pages sequentially and merge them into one result.

    Args:
        fetch_page: Coroutine taking (cursor, requested_count) and returning a Page
        target_count: Stop once this many unique items are collected; None for unbounded
        max_pages: Caller page cap, itself capped by ``hard_max_pages``
        cursor: Cursor to resume from
        page_size: Largest count requested per page
        page_delay: Seconds to wait between pages (not before the first)
        key: Identity of an item, used for de-duplication
        sleep: Awaitable sleep, replaceable in tests
        hard_max_pages: Absolute page cap

    Returns:
        PaginatedResult. ``next_cursor`` is None when the upstream is exhausted,
        set when the page cap stopped the walk, and set to the cursor being
        fetched when a page failed.
    """
    page_cap = resolve_page_cap(target_count, max_pages, page_size, hard_max_pages)
    items: list[Any] = []
    seen: set[str] = set()
    pages_fetched = 0
    next_cursor: str | None = None

    while target_count is None or len(items) < target_count:
        if target_count is None:
            requested = page_size
        else:
            requested = min(page_size, target_count - len(items))

        if pages_fetched > 0 and page_delay > 0:
            await sleep(page_delay)

        page = await fetch_page(cursor, requested)
        if not page.success:
            log_event(
                logger,
                "Pagination stopped on failed page",
                level=logging.WARNING,
                event="pagination_stop",
                reason="error",
                pages_fetched=pages_fetched,
                items=len(items),
                error=page.error,
            )
            return PaginatedResult(
                success=False,
                items=items,
                next_cursor=cursor,
                error=page.error or "Unknown error fetching page",
                pages_fetched=pages_fetched,
            )
        pages_fetched += 1

        added = 0
        for item in page.items:
            if target_count is not None and len(items) >= target_count:
                break
            item_key = key(item)
            if item_key in seen:
                continue
            seen.add(item_key)
            items.append(item)
            added += 1

        log_event(
            logger,
            "Fetched page",
            level=logging.DEBUG,
            event="page_fetched",
            page=pages_fetched,
            received=len(page.items),
            added=added,
        )

        stop_reason = _exhausted_reason(page, cursor, added)
        if stop_reason:
            log_event(
                logger,
                "Pagination finished",
                level=logging.DEBUG,
                event="pagination_stop",
                reason=stop_reason,
                pages_fetched=pages_fetched,
            )
            next_cursor = None
            break

        next_cursor = page.cursor
        if pages_fetched >= page_cap:
            log_event(
                logger,
                "Pagination reached page cap",
                level=logging.DEBUG,
                event="pagination_stop",
                reason="page_cap",
                pages_fetched=pages_fetched,
            )
            break
        cursor = page.cursor

    return PaginatedResult(
        success=True,
        items=items,
        next_cursor=next_cursor,
        pages_fetched=pages_fetched,
    )


def _exhausted_reason(page: Page, cursor: str | None, added: int) -> str | None:
    if not page.cursor:
        return "no_cursor"
    if page.cursor == cursor:
        return "repeated_cursor"
    if not page.items:
        return "empty_page"
    if added == 0:
        return "no_new_items"
    return None
