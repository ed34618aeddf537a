"""xfeed: a resilient read-only client for the X web GraphQL API."""

from .client import TwitterClient
from .core.types import PaginatedResult, Tweet, TweetResult, TwitterUser, UserLookupResult
from .credentials import TwitterCredentials

__all__ = [
    "PaginatedResult",
    "Tweet",
    "TweetResult",
    "TwitterClient",
    "TwitterCredentials",
    "TwitterUser",
    "UserLookupResult",
]

__version__ = "0.1.0"
