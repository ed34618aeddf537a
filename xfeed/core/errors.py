"""
Error taxonomy for GraphQL operation execution.

The executor raises these internally and converts them to result objects
at its boundary, so callers only ever see an ``error`` string:
- StaleOperationIdError: the query ID is no longer recognized (recoverable)
- TransportError: network, DNS or timeout failure
- HttpError: any non-2xx status other than 404
- ApiError: a 2xx body carrying a GraphQL ``errors`` list
- MalformedResponseError: the body is not a JSON object
"""

from __future__ import annotations

from ..logging_utils import truncate_text


class XFeedError(Exception):
    """Base class for all xfeed errors."""


class StaleOperationIdError(XFeedError):
    """The operation's query ID was not found upstream."""

    def __init__(self, message: str = "HTTP 404"):
        super().__init__(message)


class TransportError(XFeedError):
    """The request never produced a response."""


class HttpError(XFeedError):
    """Non-2xx response other than the stale-ID signal."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {truncate_text(body, 200, suffix='')}")


class ApiError(XFeedError):
    """A GraphQL response that carried an ``errors`` list."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(", ".join(messages))


class MalformedResponseError(XFeedError):
    """The response body could not be decoded into a JSON object."""
