"""
Query ID discovery from the public web client bundles.

The web client ships its GraphQL operation table inside minified JavaScript
bundles. Discovery works in two steps:
1. Fetch a few public pages and collect the bundle URLs they reference
2. Scan bundles, one at a time, for queryId/operationName pairs

Only operations that were asked for are reported, and the first match for
an operation wins.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re

import httpx

from ..core.errors import XFeedError
from ..logging_utils import log_event
from .constants import (
    BUNDLE_URL_PATTERN,
    DISCOVERY_HEADERS,
    DISCOVERY_PAGES,
    QUERY_ID_PATTERN,
)

logger = logging.getLogger(__name__)

_BUNDLE_URL_RE = re.compile(BUNDLE_URL_PATTERN)
_QUERY_ID_RE = re.compile(QUERY_ID_PATTERN)


@dataclass(frozen=True)
class _OperationPattern:
    regex: re.Pattern[str]
    operation_group: int
    query_id_group: int


# Modern bundles export operations like:
#   e.exports={queryId:"...",operationName:"TweetDetail",operationType:"query",...}
OPERATION_PATTERNS = [
    _OperationPattern(
        re.compile(
            r"e\.exports=\{queryId\s*:\s*[\"']([^\"']+)[\"']\s*,\s*operationName\s*:\s*[\"']([^\"']+)[\"']",
            re.S,
        ),
        operation_group=2,
        query_id_group=1,
    ),
    _OperationPattern(
        re.compile(
            r"e\.exports=\{operationName\s*:\s*[\"']([^\"']+)[\"']\s*,\s*queryId\s*:\s*[\"']([^\"']+)[\"']",
            re.S,
        ),
        operation_group=1,
        query_id_group=2,
    ),
    _OperationPattern(
        re.compile(
            r"operationName\s*[:=]\s*[\"']([^\"']+)[\"'](.{0,4000}?)queryId\s*[:=]\s*[\"']([^\"']+)[\"']",
            re.S,
        ),
        operation_group=1,
        query_id_group=3,
    ),
    _OperationPattern(
        re.compile(
            r"queryId\s*[:=]\s*[\"']([^\"']+)[\"'](.{0,4000}?)operationName\s*[:=]\s*[\"']([^\"']+)[\"']",
            re.S,
        ),
        operation_group=3,
        query_id_group=1,
    ),
]


def find_bundle_urls(html: str) -> list[str]:
    """Return bundle URLs referenced by a page, in first-seen order."""
    return list(dict.fromkeys(match.group(0) for match in _BUNDLE_URL_RE.finditer(html)))


def extract_operations(bundle_text: str, targets: set[str], discovered: dict[str, str]) -> None:
    """Record queryId values for target operations found in one bundle.

    Args:
        bundle_text: JavaScript source of a client bundle
        targets: Operation names to look for
        discovered: Mapping updated in place; existing entries are kept
    """
    for pattern in OPERATION_PATTERNS:
        for match in pattern.regex.finditer(bundle_text):
            operation = match.group(pattern.operation_group)
            query_id = match.group(pattern.query_id_group)
            if not operation or not query_id:
                continue
            if operation not in targets or operation in discovered:
                continue
            if not _QUERY_ID_RE.match(query_id):
                continue
            discovered[operation] = query_id
            if len(discovered) >= len(targets):
                return


class QueryIdDiscovery:
    """Discovers current query IDs by scanning the web client bundles."""

    def __init__(
        self,
        timeout: float = 20.0,
        trust_env: bool = True,
        pages: list[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.trust_env = trust_env
        self.pages = pages or list(DISCOVERY_PAGES)
        self.transport = transport

    async def discover(self, operation_names: list[str]) -> dict[str, str]:
        """Return a best-effort mapping of operation name to query ID.

        Raises:
            XFeedError: If no bundles could be located at all
        """
        targets = set(operation_names)
        discovered: dict[str, str] = {}

        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=DISCOVERY_HEADERS,
            follow_redirects=True,
            trust_env=self.trust_env,
            transport=self.transport,
        ) as client:
            bundles = await self._discover_bundles(client)
            for url in bundles:
                if len(discovered) >= len(targets):
                    break
                label = url.rsplit("/", 1)[-1]
                try:
                    resp = await client.get(url)
                    resp.raise_for_status()
                except httpx.HTTPError as exc:
                    log_event(
                        logger,
                        "Failed to scan bundle",
                        level=logging.WARNING,
                        event="bundle_scan_failed",
                        bundle=label,
                        error=f"{type(exc).__name__}: {exc}",
                    )
                    continue
                extract_operations(resp.text, targets, discovered)

        log_event(
            logger,
            "Query ID discovery finished",
            event="query_id_discovery",
            bundles=len(bundles),
            found=sorted(discovered),
        )
        return discovered

    async def _discover_bundles(self, client: httpx.AsyncClient) -> list[str]:
        bundles: dict[str, None] = {}
        for page in self.pages:
            try:
                resp = await client.get(page)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                log_event(
                    logger,
                    "Could not fetch discovery page",
                    level=logging.WARNING,
                    event="discovery_page_failed",
                    page=page,
                    error=f"{type(exc).__name__}: {exc}",
                )
                continue
            for url in find_bundle_urls(resp.text):
                bundles[url] = None

        if not bundles:
            raise XFeedError("No client bundles discovered; x.com layout may have changed.")
        return list(bundles)
