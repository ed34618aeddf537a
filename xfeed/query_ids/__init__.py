"""Query ID management for the GraphQL API."""

from .constants import (
    DEFAULT_TTL_SECONDS,
    FALLBACK_QUERY_IDS,
    TARGET_QUERY_ID_OPERATIONS,
    TWITTER_API_BASE,
)
from .discovery import QueryIdDiscovery, extract_operations, find_bundle_urls
from .registry import QueryIdRegistry, QueryIdSnapshot, SnapshotInfo

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "FALLBACK_QUERY_IDS",
    "TARGET_QUERY_ID_OPERATIONS",
    "TWITTER_API_BASE",
    "QueryIdDiscovery",
    "QueryIdRegistry",
    "QueryIdSnapshot",
    "SnapshotInfo",
    "extract_operations",
    "find_bundle_urls",
]
