"""
Terminal and JSON rendering of tweets and users.

Text output goes through a rich Console. JSON output is plain text on
stdout so it can be piped into other tools.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.types import PaginatedResult, Tweet, TwitterUser
from ..query_ids.registry import SnapshotInfo

SEPARATOR = "─" * 50


def tweet_url(tweet: Tweet) -> str:
    return f"https://x.com/{tweet.author.username}/status/{tweet.id}"


def tweet_to_json(tweet: Tweet) -> str:
    return json.dumps(tweet.to_dict(), indent=2, ensure_ascii=False)


def tweets_to_json(tweets: list[Tweet]) -> str:
    return json.dumps([tweet.to_dict() for tweet in tweets], indent=2, ensure_ascii=False)


def paginated_to_json(result: PaginatedResult, key: str = "tweets") -> str:
    """Serialize items together with the cursor to resume from.

    Args:
        result: Paginated tweets or users
        key: Name of the items field, "tweets" or "users"
    """
    payload: dict[str, Any] = {
        key: [item.to_dict() for item in result.items],
        "nextCursor": result.next_cursor,
    }
    if result.error:
        payload["error"] = result.error
    return json.dumps(payload, indent=2, ensure_ascii=False)


def users_to_json(users: list[TwitterUser]) -> str:
    return json.dumps([user.to_dict() for user in users], indent=2, ensure_ascii=False)


def render_tweet(console: Console, tweet: Tweet, indent: int = 0) -> None:
    """Print one tweet, its media and its quoted tweet."""
    pad = " " * indent
    console.print(f"{pad}[bold]@{escape(tweet.author.username)}[/bold] ({escape(tweet.author.name)}):")
    for line in tweet.text.splitlines() or [""]:
        console.print(f"{pad}{escape(line)}", highlight=False)

    for media in tweet.media or []:
        label = "🎬" if media.type in ("video", "animated_gif") else "🖼️"
        console.print(f"{pad}{label} {media.video_url or media.url}", highlight=False)

    if tweet.quoted_tweet is not None:
        console.print(f"{pad}┌─ QT", style="dim")
        render_tweet(console, tweet.quoted_tweet, indent + 2)

    if indent == 0:
        if tweet.created_at:
            console.print(f"📅 {escape(tweet.created_at)}", style="dim")
        console.print(f"🔗 {tweet_url(tweet)}", style="dim", highlight=False)


def render_tweets(console: Console, tweets: list[Tweet], empty_message: str = "No tweets found.") -> None:
    if not tweets:
        console.print(empty_message, style="yellow")
        return
    for tweet in tweets:
        render_tweet(console, tweet)
        console.print(SEPARATOR, style="dim")


def render_user(console: Console, user: TwitterUser) -> None:
    console.print(f"[bold]@{escape(user.username)}[/bold] ({escape(user.name)})")
    if user.description:
        bio = user.description if len(user.description) <= 100 else f"{user.description[:100]}..."
        console.print(f"  {escape(bio)}", highlight=False)
    if user.followers_count is not None:
        console.print(f"  {user.followers_count:,} followers", style="dim")


def render_users(console: Console, users: list[TwitterUser], empty_message: str = "No users found.") -> None:
    if not users:
        console.print(empty_message, style="yellow")
        return
    for user in users:
        render_user(console, user)
        console.print(SEPARATOR, style="dim")


def render_query_ids(
    console: Console,
    info: SnapshotInfo | None,
    candidates: dict[str, list[str]],
) -> None:
    """Print the query ID cache state and the candidates per operation."""
    if info is None:
        console.print("No cached query IDs; using baked-in defaults.", style="yellow")
    else:
        freshness = "fresh" if info.is_fresh else "stale"
        console.print(f"Cache: {info.cache_path}")
        console.print(f"Fetched at: {info.snapshot.fetched_at} ({int(info.age_seconds)}s ago, {freshness})")

    table = Table("Operation", "Candidates")
    for operation, ids in candidates.items():
        table.add_row(operation, "\n".join(ids) or "-")
    console.print(table)
