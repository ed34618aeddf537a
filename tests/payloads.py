"""Fake collaborators and GraphQL payload builders shared by the tests."""

from __future__ import annotations

import json
from typing import Any

from xfeed.credentials import TwitterCredentials
from xfeed.fetch.transport import GraphqlRequest, TransportResponse
from xfeed.query_ids.registry import QueryIdRegistry


class FakeTransport:
    """Returns scripted responses in order and records every request."""

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.requests: list[GraphqlRequest] = []

    async def send(self, request: GraphqlRequest, timeout: float | None = None) -> TransportResponse:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def variables(self, index: int) -> dict[str, Any]:
        request = self.requests[index]
        if request.params and "variables" in request.params:
            return json.loads(request.params["variables"])
        return (request.json_body or {}).get("variables", {})


class FakeDiscovery:
    def __init__(self, result: dict[str, str] | None = None, error: Exception | None = None):
        self.result = result or {}
        self.error = error
        self.calls: list[list[str]] = []

    async def discover(self, operation_names: list[str]) -> dict[str, str]:
        self.calls.append(list(operation_names))
        if self.error is not None:
            raise self.error
        return dict(self.result)


def json_response(payload: Any, status_code: int = 200) -> TransportResponse:
    return TransportResponse(status_code=status_code, text=json.dumps(payload))


def not_found() -> TransportResponse:
    return TransportResponse(status_code=404, text="Not Found")


def make_credentials() -> TwitterCredentials:
    return TwitterCredentials(auth_token="token", ct0="csrf")


def make_registry(
    defaults: dict[str, str] | None = None,
    alternates: dict[str, list[str]] | None = None,
    discovery: FakeDiscovery | None = None,
    cache_path=None,
    **kwargs: Any,
) -> QueryIdRegistry:
    return QueryIdRegistry(
        cache_path=cache_path,
        discovery=discovery,
        defaults=defaults,
        alternates=alternates if alternates is not None else {},
        **kwargs,
    )


def user_result(username: str = "alice", name: str | None = "Alice", user_id: str = "u1") -> dict[str, Any]:
    legacy: dict[str, Any] = {"screen_name": username}
    if name is not None:
        legacy["name"] = name
    return {"__typename": "User", "rest_id": user_id, "legacy": legacy}


def tweet_result(
    tweet_id: str,
    text: str = "hello",
    username: str = "alice",
    **legacy_fields: Any,
) -> dict[str, Any]:
    legacy = {
        "full_text": text,
        "created_at": "Mon Jan 01 12:00:00 +0000 2024",
        "reply_count": 1,
        "retweet_count": 2,
        "favorite_count": 3,
        "conversation_id_str": tweet_id,
    }
    legacy.update(legacy_fields)
    return {
        "__typename": "Tweet",
        "rest_id": tweet_id,
        "legacy": legacy,
        "core": {"user_results": {"result": user_result(username, username.title())}},
    }


def tweet_entry(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "entryId": f"tweet-{result.get('rest_id')}",
        "content": {"itemContent": {"tweet_results": {"result": result}}},
    }


def cursor_entry(value: str, cursor_type: str = "Bottom") -> dict[str, Any]:
    return {
        "entryId": f"cursor-{cursor_type.lower()}",
        "content": {"cursorType": cursor_type, "value": value},
    }


def instructions(*entries: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"type": "TimelineAddEntries", "entries": list(entries)}]


def timeline_entries(tweet_ids: list[str], cursor: str | None = None) -> list[dict[str, Any]]:
    entries = [tweet_entry(tweet_result(tweet_id, f"tweet {tweet_id}")) for tweet_id in tweet_ids]
    if cursor:
        entries.append(cursor_entry(cursor))
    return entries


def user_timeline_payload(tweet_ids: list[str], cursor: str | None = None) -> dict[str, Any]:
    return {
        "data": {
            "user": {
                "result": {"timeline": {"timeline": {"instructions": instructions(*timeline_entries(tweet_ids, cursor))}}}
            }
        }
    }


def search_payload(tweet_ids: list[str], cursor: str | None = None) -> dict[str, Any]:
    return {
        "data": {
            "search_by_raw_query": {
                "search_timeline": {
                    "timeline": {"instructions": instructions(*timeline_entries(tweet_ids, cursor))}
                }
            }
        }
    }


def conversation_payload(results: list[dict[str, Any]], cursor: str | None = None) -> dict[str, Any]:
    entries = [tweet_entry(result) for result in results]
    if cursor:
        entries.append(cursor_entry(cursor))
    return {"data": {"threaded_conversation_with_injections_v2": {"instructions": instructions(*entries)}}}
