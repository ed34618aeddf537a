"""
Normalization of timeline instructions.

Timeline responses are a list of instructions, each with entries. A single
entry carries tweet results in one of several nestings:
- ``content.itemContent`` (plain timeline item)
- ``content.item.itemContent`` (item wrapper)
- ``content.items[]`` where each element is ``item.itemContent``,
  ``itemContent`` or ``content.itemContent`` (conversation modules)

Every shape is probed for every entry so none is silently missed.
"""

from __future__ import annotations

from typing import Any, Iterable

from ..core.types import Tweet, TwitterUser
from .content import dig
from .mapper import map_tweet_result, unwrap_tweet_result

_ENTRY_PATHS: list[tuple[str, ...]] = [
    ("itemContent",),
    ("item", "itemContent"),
]

_MODULE_ITEM_PATHS: list[tuple[str, ...]] = [
    ("item", "itemContent"),
    ("itemContent",),
    ("content", "itemContent"),
]


def _tweet_result_at(node: Any, path: tuple[str, ...]) -> dict[str, Any] | None:
    result = unwrap_tweet_result(dig(node, *path, "tweet_results", "result"))
    if result is not None and result.get("rest_id"):
        return result
    return None


def _iter_entries(instructions: Any) -> Iterable[dict[str, Any]]:
    if not isinstance(instructions, list):
        return
    for instruction in instructions:
        if not isinstance(instruction, dict):
            continue
        entries = instruction.get("entries")
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, dict):
                    yield entry
        # replaceEntry style instructions carry a single entry
        entry = instruction.get("entry")
        if isinstance(entry, dict):
            yield entry


def collect_tweet_results_from_entry(entry: dict[str, Any]) -> list[dict[str, Any]]:
    """Return every tweet result found in one timeline entry, in probe order."""
    content = entry.get("content")
    if not isinstance(content, dict):
        return []

    results = []
    for path in _ENTRY_PATHS:
        result = _tweet_result_at(content, path)
        if result is not None:
            results.append(result)

    items = content.get("items")
    if isinstance(items, list):
        for item in items:
            for path in _MODULE_ITEM_PATHS:
                result = _tweet_result_at(item, path)
                if result is not None:
                    results.append(result)
    return results


def parse_tweets_from_instructions(
    instructions: Any,
    quote_depth: int = 1,
    include_raw: bool = False,
) -> list[Tweet]:
    """Map all tweets in a timeline, de-duplicated by id in first-seen order."""
    tweets: list[Tweet] = []
    seen: set[str] = set()
    for entry in _iter_entries(instructions):
        for result in collect_tweet_results_from_entry(entry):
            tweet = map_tweet_result(result, quote_depth, include_raw)
            if tweet is None or tweet.id in seen:
                continue
            seen.add(tweet.id)
            tweets.append(tweet)
    return tweets


def extract_cursor_from_instructions(instructions: Any, cursor_type: str = "Bottom") -> str | None:
    """Return the first non-empty cursor value of the given type."""
    for entry in _iter_entries(instructions):
        content = entry.get("content")
        if not isinstance(content, dict):
            continue
        value = content.get("value")
        if content.get("cursorType") == cursor_type and isinstance(value, str) and value:
            return value
    return None


def find_tweet_in_instructions(instructions: Any, tweet_id: str) -> dict[str, Any] | None:
    for entry in _iter_entries(instructions):
        for result in collect_tweet_results_from_entry(entry):
            if result.get("rest_id") == tweet_id:
                return result
    return None


def parse_user_result(result: Any) -> TwitterUser | None:
    """Map a ``user_results.result`` object to a TwitterUser.

    ``UserWithVisibilityResults`` wrappers are unwrapped. Unavailable users
    and results without an id or screen name yield None.
    """
    result = _unwrap_user_result(result)
    if result is None or result.get("__typename") == "UserUnavailable":
        return None

    user_id = result.get("rest_id")
    username = dig(result, "legacy", "screen_name") or dig(result, "core", "screen_name")
    if not user_id or not username:
        return None
    legacy = result.get("legacy") if isinstance(result.get("legacy"), dict) else {}
    name = legacy.get("name") or dig(result, "core", "name") or username
    return TwitterUser(
        id=str(user_id),
        username=username,
        name=name,
        description=legacy.get("description"),
        followers_count=legacy.get("followers_count"),
        following_count=legacy.get("friends_count"),
        is_blue_verified=result.get("is_blue_verified"),
        profile_image_url=legacy.get("profile_image_url_https") or dig(result, "avatar", "image_url"),
        created_at=legacy.get("created_at") or dig(result, "core", "created_at"),
    )


def parse_users_from_instructions(instructions: Any) -> list[TwitterUser]:
    """Map the users in a follow-list timeline.

    Only entries whose result is a ``User`` are kept. Cursor entries and
    placeholder results are skipped.
    """
    users: list[TwitterUser] = []
    for entry in _iter_entries(instructions):
        result = _unwrap_user_result(dig(entry, "content", "itemContent", "user_results", "result"))
        if result is None or result.get("__typename") != "User":
            continue
        user = parse_user_result(result)
        if user is not None:
            users.append(user)
    return users


def _unwrap_user_result(result: Any) -> dict[str, Any] | None:
    if not isinstance(result, dict):
        return None
    if result.get("__typename") == "UserWithVisibilityResults" and isinstance(result.get("user"), dict):
        return result["user"]
    return result


def timeline_instructions(data: Any, *path: str) -> list[dict[str, Any]]:
    """Return the instructions list at ``path`` inside a response ``data`` object."""
    instructions = dig(data, *path, "instructions")
    return instructions if isinstance(instructions, list) else []
