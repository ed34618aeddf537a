"""
HTTP transport for GraphQL requests.

The executor only needs a status code and a body, so the transport is a
small protocol that tests can replace with a scripted fake. HttpxTransport
is the real implementation over ``httpx.AsyncClient``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import logging
from typing import Any, Protocol

import httpx

from ..core.errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class GraphqlRequest:
    """One concrete HTTP request for an operation.

    Attributes:
        method: "GET" or "POST"
        url: Full endpoint URL including the query ID and operation name
        params: Query string parameters (already JSON-encoded values)
        json_body: JSON body for POST requests
        headers: Request headers
    """
    method: str
    url: str
    params: dict[str, str] | None = None
    json_body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class TransportResponse:
    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise MalformedResponseError(f"Invalid JSON response: {exc}") from exc


class Transport(Protocol):
    async def send(self, request: GraphqlRequest, timeout: float | None = None) -> TransportResponse:
        ...


class HttpxTransport:
    """Transport backed by a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient | None = None, trust_env: bool = True):
        self._owns_client = client is None
        # Timeouts are enforced per request with asyncio.wait_for
        self._client = client or httpx.AsyncClient(timeout=None, trust_env=trust_env)

    async def send(self, request: GraphqlRequest, timeout: float | None = None) -> TransportResponse:
        """Send a request and return its status and body.

        Raises:
            TransportError: On network failures or when the timeout elapses
        """
        call = self._client.request(
            request.method,
            request.url,
            params=request.params,
            json=request.json_body,
            headers=request.headers,
        )
        try:
            if timeout is not None and timeout > 0:
                response = await asyncio.wait_for(call, timeout=timeout)
            else:
                response = await call
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Request timed out after {timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        return TransportResponse(status_code=response.status_code, text=response.text)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
