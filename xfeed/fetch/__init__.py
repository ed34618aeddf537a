"""Request execution and pagination."""

from .executor import ExecutionResult, ResilientExecutor
from .paginate import HARD_MAX_PAGES, paginate_cursor, resolve_page_cap
from .transport import GraphqlRequest, HttpxTransport, Transport, TransportResponse

__all__ = [
    "ExecutionResult",
    "GraphqlRequest",
    "HARD_MAX_PAGES",
    "HttpxTransport",
    "ResilientExecutor",
    "Transport",
    "TransportResponse",
    "paginate_cursor",
    "resolve_page_cap",
]
