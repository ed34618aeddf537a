"""Mapping of raw GraphQL tweet results to Tweet records."""

from __future__ import annotations

import math
from typing import Any

from ..core.types import Tweet, TweetAuthor, TweetMedia
from .content import dig, extract_article_metadata, extract_tweet_text

_VIDEO_TYPES = {"video", "animated_gif"}


def normalize_quote_depth(value: Any) -> int:
    """Clamp a user-supplied quote depth; missing or non-finite means 1."""
    if value is None:
        return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return max(0, math.floor(number))


def unwrap_tweet_result(result: Any) -> dict[str, Any] | None:
    """Unwrap one ``{tweet: {...}}`` level, e.g. TweetWithVisibilityResults."""
    if not isinstance(result, dict):
        return None
    inner = result.get("tweet")
    if isinstance(inner, dict):
        return inner
    return result


def extract_media(result: dict[str, Any] | None) -> list[TweetMedia] | None:
    """Return photos and videos attached to a tweet, or None if there are none."""
    raw_media = dig(result, "legacy", "extended_entities", "media") or dig(result, "legacy", "entities", "media")
    if not isinstance(raw_media, list) or not raw_media:
        return None

    media: list[TweetMedia] = []
    for item in raw_media:
        if not isinstance(item, dict):
            continue
        media_type = item.get("type")
        url = item.get("media_url_https")
        if not media_type or not url:
            continue

        entry = TweetMedia(type=media_type, url=url)
        sizes = item.get("sizes") if isinstance(item.get("sizes"), dict) else {}
        largest = sizes.get("large") or sizes.get("medium")
        if isinstance(largest, dict):
            entry.width = largest.get("w")
            entry.height = largest.get("h")
        if sizes.get("small"):
            entry.preview_url = f"{url}:small"

        video_info = item.get("video_info")
        if media_type in _VIDEO_TYPES and isinstance(video_info, dict):
            entry.video_url = _best_mp4_url(video_info.get("variants"))
            duration = video_info.get("duration_millis")
            if isinstance(duration, (int, float)) and not isinstance(duration, bool):
                entry.duration_ms = int(duration)

        media.append(entry)

    return media or None


def _best_mp4_url(variants: Any) -> str | None:
    if not isinstance(variants, list):
        return None
    mp4s = [
        variant
        for variant in variants
        if isinstance(variant, dict)
        and variant.get("content_type") == "video/mp4"
        and isinstance(variant.get("url"), str)
    ]
    with_bitrate = [variant for variant in mp4s if isinstance(variant.get("bitrate"), (int, float))]
    if with_bitrate:
        return max(with_bitrate, key=lambda variant: variant["bitrate"])["url"]
    if mp4s:
        return mp4s[0]["url"]
    return None


def map_tweet_result(
    result: dict[str, Any] | None,
    quote_depth: int = 1,
    include_raw: bool = False,
) -> Tweet | None:
    """Map one raw tweet result to a Tweet.

    Results without an id, an author username, or any resolvable text are
    dropped (None is returned).

    Args:
        result: The ``tweet_results.result`` object
        quote_depth: Remaining levels of quoted tweets to resolve
        include_raw: Keep the raw result on the Tweet

    Returns:
        The mapped Tweet or None
    """
    if not isinstance(result, dict):
        return None
    user = dig(result, "core", "user_results", "result")
    if not isinstance(user, dict):
        user = {}
    username = dig(user, "legacy", "screen_name") or dig(user, "core", "screen_name")
    name = dig(user, "legacy", "name") or dig(user, "core", "name") or username
    tweet_id = result.get("rest_id")
    if not tweet_id or not username:
        return None

    text = extract_tweet_text(result)
    if not text:
        return None

    quoted_tweet = None
    if quote_depth > 0:
        quoted = unwrap_tweet_result(dig(result, "quoted_status_result", "result"))
        if quoted is not None:
            quoted_tweet = map_tweet_result(quoted, quote_depth - 1, include_raw)

    legacy = result.get("legacy") if isinstance(result.get("legacy"), dict) else {}
    return Tweet(
        id=str(tweet_id),
        text=text,
        author=TweetAuthor(username=username, name=name or username),
        author_id=user.get("rest_id"),
        created_at=legacy.get("created_at"),
        reply_count=legacy.get("reply_count"),
        retweet_count=legacy.get("retweet_count"),
        like_count=legacy.get("favorite_count"),
        conversation_id=legacy.get("conversation_id_str"),
        in_reply_to_status_id=legacy.get("in_reply_to_status_id_str"),
        quoted_tweet=quoted_tweet,
        media=extract_media(result),
        article=extract_article_metadata(result),
        raw=result if include_raw else None,
    )
