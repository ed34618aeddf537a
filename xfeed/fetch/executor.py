"""
Resilient execution of GraphQL operations.

An operation is tried against every candidate query ID the registry knows,
and every request variant the caller builds for each ID. A 404 (or an
error list that only says the operation was not found) means the ID is
stale and the next candidate is tried. When every candidate turned out to
be stale, the registry is refreshed once and the whole candidate list is
tried one more time. Every other failure is returned immediately.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Any, Callable, Iterable

from ..core.errors import (
    ApiError,
    HttpError,
    MalformedResponseError,
    StaleOperationIdError,
    XFeedError,
)
from ..logging_utils import log_event
from ..query_ids.registry import QueryIdRegistry
from .transport import GraphqlRequest, Transport

logger = logging.getLogger(__name__)

RequestBuilder = Callable[[str], list[GraphqlRequest]]

_STALE_MESSAGE_RE = re.compile(r"\b(query|operation)\b.*\bnot found\b", re.IGNORECASE)


@dataclass
class ExecutionResult:
    """Outcome of one executed operation.

    Attributes:
        success: Whether a usable response was received
        data: The response ``data`` object on success
        error: Error message on failure
        not_found: Whether any attempt hit the stale query ID signal
        exhausted_on_stale: Whether every attempt failed on the stale signal
    """
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    not_found: bool = False
    exhausted_on_stale: bool = False


class ResilientExecutor:
    """Runs operations with candidate fallback and refresh-on-stale recovery."""

    def __init__(
        self,
        transport: Transport,
        registry: QueryIdRegistry,
        timeout: float | None = None,
        refresh_on_stale: bool = True,
        refresh_operations: Iterable[str] | None = None,
    ):
        self.transport = transport
        self.registry = registry
        self.timeout = timeout
        self.refresh_on_stale = refresh_on_stale
        self.refresh_operations = list(refresh_operations) if refresh_operations is not None else None

    async def execute(
        self,
        operation: str,
        build_requests: RequestBuilder,
        *,
        allow_partial_data: bool = False,
    ) -> ExecutionResult:
        """Execute an operation, recovering from stale query IDs once.

        Args:
            operation: Operation name, e.g. "TweetDetail"
            build_requests: Builds the request variants for one query ID
            allow_partial_data: Accept an error list when ``data`` is non-empty

        Returns:
            ExecutionResult; never raises for request failures
        """
        first = await self._run_pass(operation, build_requests, allow_partial_data)
        if first.success or not first.exhausted_on_stale or not self.refresh_on_stale:
            return first

        log_event(
            logger,
            "All query IDs stale; refreshing",
            event="query_id_refresh",
            operation=operation,
        )
        operations = self.refresh_operations or self.registry.operation_names
        await self.registry.refresh(operations, force=True)

        second = await self._run_pass(operation, build_requests, allow_partial_data)
        if not second.success and second.exhausted_on_stale:
            log_event(
                logger,
                "Query IDs still stale after refresh",
                level=logging.WARNING,
                event="request_failed",
                operation=operation,
                error=second.error,
            )
        return second

    async def _run_pass(
        self,
        operation: str,
        build_requests: RequestBuilder,
        allow_partial_data: bool,
    ) -> ExecutionResult:
        candidates = self.registry.resolve(operation)
        if not candidates:
            return ExecutionResult(success=False, error=f"No query IDs known for operation {operation}")

        last_error: str | None = None
        had_stale = False
        for query_id in candidates:
            for request in build_requests(query_id):
                try:
                    data = await self._send(request, allow_partial_data)
                except StaleOperationIdError as exc:
                    had_stale = True
                    last_error = str(exc)
                    log_event(
                        logger,
                        "Query ID not found",
                        level=logging.DEBUG,
                        event="query_id_stale",
                        operation=operation,
                        query_id=query_id,
                        method=request.method,
                    )
                    continue
                except XFeedError as exc:
                    log_event(
                        logger,
                        "Request failed",
                        level=logging.WARNING,
                        event="request_failed",
                        operation=operation,
                        query_id=query_id,
                        error=str(exc),
                    )
                    return ExecutionResult(success=False, error=str(exc), not_found=had_stale)
                return ExecutionResult(success=True, data=data, not_found=had_stale)

        # Only reached when no attempt failed for any other reason
        return ExecutionResult(
            success=False,
            error=last_error or f"Unknown error executing {operation}",
            not_found=had_stale,
            exhausted_on_stale=had_stale,
        )

    async def _send(self, request: GraphqlRequest, allow_partial_data: bool) -> dict[str, Any]:
        response = await self.transport.send(request, self.timeout)
        if response.status_code == 404:
            raise StaleOperationIdError()
        if not response.ok:
            raise HttpError(response.status_code, response.text)

        payload = response.json()
        if not isinstance(payload, dict):
            raise MalformedResponseError("Response body is not a JSON object")

        data = payload.get("data")
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            messages = _error_messages(errors)
            if _is_stale_error_list(errors):
                raise StaleOperationIdError(", ".join(messages))
            if allow_partial_data and isinstance(data, dict) and data:
                log_event(
                    logger,
                    "Ignoring errors in partial response",
                    level=logging.DEBUG,
                    event="partial_response",
                    errors=messages,
                )
                return data
            raise ApiError(messages)

        return data if isinstance(data, dict) else {}


def _error_messages(errors: list[Any]) -> list[str]:
    messages = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(str(error.get("message") or "Unknown error"))
        else:
            messages.append(str(error))
    return messages


def _is_stale_error_list(errors: list[Any]) -> bool:
    for error in errors:
        if not isinstance(error, dict):
            return False
        if not _STALE_MESSAGE_RE.search(str(error.get("message") or "")):
            return False
    return True
