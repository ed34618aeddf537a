"""Tests for query ID discovery from client bundles."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from xfeed.core.errors import XFeedError
from xfeed.query_ids.discovery import QueryIdDiscovery, extract_operations, find_bundle_urls

BUNDLE_A = "https://abs.twimg.com/responsive-web/client-web/main.abc123.js"
BUNDLE_B = "https://abs.twimg.com/responsive-web/client-web-legacy/api.def456.js"


def test_find_bundle_urls_dedups_in_order():
    html = f'<script src="{BUNDLE_A}"></script><script src="{BUNDLE_B}"></script><link href="{BUNDLE_A}">'

    assert find_bundle_urls(html) == [BUNDLE_A, BUNDLE_B]


def test_extract_operations_handles_both_field_orders():
    bundle = (
        'e.exports={queryId:"abc_123",operationName:"TweetDetail",operationType:"query"};'
        'e.exports={operationName:"SearchTimeline",queryId:"xyz-789",operationType:"query"};'
        'e.exports={queryId:"ignored",operationName:"NotWanted"};'
    )
    discovered: dict[str, str] = {}

    extract_operations(bundle, {"TweetDetail", "SearchTimeline"}, discovered)

    assert discovered == {"TweetDetail": "abc_123", "SearchTimeline": "xyz-789"}


def test_first_match_wins_and_invalid_ids_skipped():
    bundle = (
        'e.exports={queryId:"bad id!",operationName:"Bookmarks"};'
        'e.exports={queryId:"good1",operationName:"Bookmarks"};'
        'e.exports={queryId:"good2",operationName:"Bookmarks"};'
    )
    discovered: dict[str, str] = {"Likes": "existing"}

    extract_operations(bundle, {"Bookmarks", "Likes", "UserTweets"}, discovered)

    assert discovered == {"Likes": "existing", "Bookmarks": "good1"}


def _mock_transport(routes: dict[str, tuple[int, str]], seen: list[str]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        seen.append(url)
        status, body = routes.get(url, (404, "missing"))
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler)


def test_discover_scans_bundles_until_all_found():
    seen: list[str] = []
    routes = {
        "https://x.com/home": (200, f'<script src="{BUNDLE_A}"></script><script src="{BUNDLE_B}"></script>'),
        "https://x.com/explore": (500, "error"),
        BUNDLE_A: (200, 'e.exports={queryId:"q1",operationName:"TweetDetail"}'),
        BUNDLE_B: (200, 'e.exports={queryId:"q2",operationName:"Likes"}'),
    }
    discovery = QueryIdDiscovery(
        pages=["https://x.com/home", "https://x.com/explore"],
        transport=_mock_transport(routes, seen),
    )

    found = asyncio.run(discovery.discover(["TweetDetail"]))

    assert found == {"TweetDetail": "q1"}
    assert BUNDLE_B not in seen


def test_discover_skips_failed_bundles():
    seen: list[str] = []
    routes = {
        "https://x.com/home": (200, f"{BUNDLE_A} {BUNDLE_B}"),
        BUNDLE_A: (503, "unavailable"),
        BUNDLE_B: (200, 'e.exports={queryId:"q2",operationName:"Likes"}'),
    }
    discovery = QueryIdDiscovery(pages=["https://x.com/home"], transport=_mock_transport(routes, seen))

    found = asyncio.run(discovery.discover(["Likes", "Bookmarks"]))

    assert found == {"Likes": "q2"}


def test_discover_raises_when_no_bundles():
    routes = {"https://x.com/home": (200, "<html>no scripts</html>")}
    discovery = QueryIdDiscovery(pages=["https://x.com/home"], transport=_mock_transport(routes, []))

    with pytest.raises(XFeedError):
        asyncio.run(discovery.discover(["Likes"]))
