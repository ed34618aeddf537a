"""Tests for cursor pagination."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from xfeed.core.types import Page
from xfeed.fetch.paginate import HARD_MAX_PAGES, paginate_cursor, resolve_page_cap


@dataclass
class Item:
    id: str


class ScriptedPages:
    def __init__(self, pages: list[Page]):
        self.pages = list(pages)
        self.calls: list[tuple[str | None, int]] = []

    async def __call__(self, cursor: str | None, requested: int) -> Page:
        self.calls.append((cursor, requested))
        return self.pages.pop(0)


class EndlessPages:
    """Always returns fresh items and a fresh cursor."""

    def __init__(self, per_page: int = 2):
        self.per_page = per_page
        self.calls: list[tuple[str | None, int]] = []

    async def __call__(self, cursor: str | None, requested: int) -> Page:
        self.calls.append((cursor, requested))
        number = len(self.calls)
        items = [Item(f"{number}-{index}") for index in range(self.per_page)]
        return Page(success=True, items=items, cursor=f"c{number}")


def _page(ids: list[str], cursor: str | None) -> Page:
    return Page(success=True, items=[Item(item_id) for item_id in ids], cursor=cursor)


def _ids(result) -> list[str]:
    return [item.id for item in result.items]


def test_merges_pages_and_dedups():
    fetch = ScriptedPages([_page(["A", "B"], "c1"), _page(["B", "C"], None)])

    result = asyncio.run(paginate_cursor(fetch))

    assert result.success
    assert _ids(result) == ["A", "B", "C"]
    assert result.next_cursor is None
    assert len(fetch.calls) == 2
    assert fetch.calls[1][0] == "c1"


def test_repeated_cursor_stops():
    fetch = ScriptedPages([_page(["A"], "c1"), _page(["B"], "c1")])

    result = asyncio.run(paginate_cursor(fetch))

    assert _ids(result) == ["A", "B"]
    assert result.next_cursor is None
    assert len(fetch.calls) == 2


def test_empty_page_stops():
    fetch = ScriptedPages([_page(["A"], "c1"), _page([], "c2")])

    result = asyncio.run(paginate_cursor(fetch))

    assert _ids(result) == ["A"]
    assert result.next_cursor is None


def test_page_without_new_items_stops():
    fetch = ScriptedPages([_page(["A", "B"], "c1"), _page(["A", "B"], "c2")])

    result = asyncio.run(paginate_cursor(fetch))

    assert _ids(result) == ["A", "B"]
    assert result.next_cursor is None
    assert len(fetch.calls) == 2


def test_unbounded_walk_is_hard_capped():
    fetch = EndlessPages()

    result = asyncio.run(paginate_cursor(fetch))

    assert result.success
    assert len(fetch.calls) == HARD_MAX_PAGES
    assert result.pages_fetched == HARD_MAX_PAGES
    assert len(result.items) == 2 * HARD_MAX_PAGES
    assert result.next_cursor == f"c{HARD_MAX_PAGES}"


def test_target_count_truncates_and_sizes_requests():
    fetch = EndlessPages(per_page=20)

    result = asyncio.run(paginate_cursor(fetch, target_count=45, page_size=20))

    assert len(result.items) == 45
    assert [requested for _, requested in fetch.calls] == [20, 20, 5]
    assert result.next_cursor == "c3"


def test_target_count_within_first_page():
    fetch = ScriptedPages([_page(["A", "B", "C"], "c1")])

    result = asyncio.run(paginate_cursor(fetch, target_count=2))

    assert _ids(result) == ["A", "B"]
    assert fetch.calls == [(None, 2)]
    assert result.next_cursor == "c1"


def test_max_pages_returns_resume_cursor():
    fetch = EndlessPages()

    result = asyncio.run(paginate_cursor(fetch, max_pages=3, cursor="start"))

    assert [cursor for cursor, _ in fetch.calls] == ["start", "c1", "c2"]
    assert result.next_cursor == "c3"
    assert result.pages_fetched == 3


def test_failed_page_keeps_earlier_items():
    fetch = ScriptedPages(
        [_page(["A"], "c1"), Page(success=False, error="HTTP 500: boom")]
    )

    result = asyncio.run(paginate_cursor(fetch))

    assert not result.success
    assert _ids(result) == ["A"]
    assert result.error == "HTTP 500: boom"
    assert result.next_cursor == "c1"
    assert result.pages_fetched == 1


def test_failed_first_page():
    fetch = ScriptedPages([Page(success=False)])

    result = asyncio.run(paginate_cursor(fetch, cursor="resume"))

    assert not result.success
    assert result.items == []
    assert result.next_cursor == "resume"
    assert result.error


def test_delay_only_between_pages():
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    fetch = ScriptedPages([_page(["A"], "c1"), _page(["B"], "c2"), _page(["C"], None)])

    asyncio.run(paginate_cursor(fetch, page_delay=0.5, sleep=fake_sleep))

    assert delays == [0.5, 0.5]


def test_resolve_page_cap():
    assert resolve_page_cap(None, None) == HARD_MAX_PAGES
    assert resolve_page_cap(None, 3) == 3
    assert resolve_page_cap(None, 50) == HARD_MAX_PAGES
    assert resolve_page_cap(45, None, page_size=20) == 3
    assert resolve_page_cap(10_000, None, page_size=20) == HARD_MAX_PAGES
    assert resolve_page_cap(100, 2, page_size=20) == 2
