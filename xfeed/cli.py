"""
Command-line interface for xfeed.

Uses Typer to expose the read-only client operations. Credentials come from
the config file or the AUTH_TOKEN / CT0 environment variables, and a .env
file is loaded when present.

Exit codes: 0 on success, 1 when a request fails, 2 on invalid input.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
import re
from typing import Awaitable, Callable

from dotenv import load_dotenv
import typer
from rich.console import Console

from .client import TwitterClient
from .config import AppConfig, get_query_id_cache_path, load_config
from .core.types import PaginatedResult
from .credentials import normalize_handle, resolve_credentials
from .fetch.paginate import HARD_MAX_PAGES
from .logging_utils import setup_logging
from .output.renderer import (
    paginated_to_json,
    render_query_ids,
    render_tweet,
    render_tweets,
    render_user,
    render_users,
    tweet_to_json,
    tweets_to_json,
    users_to_json,
)
from .query_ids.constants import TARGET_QUERY_ID_OPERATIONS
from .query_ids.discovery import QueryIdDiscovery
from .query_ids.registry import QueryIdRegistry

app = typer.Typer(add_completion=False, help="Read tweets, timelines and threads from X.")
console = Console()
err_console = Console(stderr=True)

_TWEET_ID_RE = re.compile(r"(?:status(?:es)?/)?(\d{5,25})(?:[/?#].*)?$")
_BOOKMARK_FOLDER_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/i/bookmarks/(\d+)", re.IGNORECASE)
_BOOKMARK_FOLDER_ID_RE = re.compile(r"^\d{5,}$")


def _config_option():
    return typer.Option(None, "--config", "-c", exists=True, help="Path to a YAML config file.")


def _json_option():
    return typer.Option(False, "--json", help="Output as JSON.")


def _json_full_option():
    return typer.Option(False, "--json-full", help="Output as JSON including the raw GraphQL result.")


def _count_option(default: int = 20):
    return typer.Option(default, "--count", "-n", help="Number of tweets to fetch.")


def _max_pages_option():
    return typer.Option(None, "--max-pages", help=f"Stop after N pages (max: {HARD_MAX_PAGES}).")


def _cursor_option():
    return typer.Option(None, "--cursor", help="Resume pagination from a cursor.")


def _delay_option():
    return typer.Option(None, "--delay", help="Seconds to wait between page fetches.")


def _timeout_option():
    return typer.Option(None, "--timeout", help="Request timeout in seconds.")


def _quote_depth_option():
    return typer.Option(None, "--quote-depth", help="Maximum quoted tweet depth (0 disables).")


def _log_level_option():
    return typer.Option(None, "--log-level", help="Logging level.")


def extract_tweet_id(value: str) -> str | None:
    """Accept a tweet id or a status URL and return the id."""
    match = _TWEET_ID_RE.search(value.strip())
    return match.group(1) if match else None


def extract_bookmark_folder_id(value: str) -> str | None:
    """Accept a bookmark folder id or a /i/bookmarks/<id> URL and return the id."""
    value = value.strip()
    match = _BOOKMARK_FOLDER_URL_RE.search(value)
    if match:
        return match.group(1)
    return value if _BOOKMARK_FOLDER_ID_RE.match(value) else None


def _prepare(
    config: Path | None,
    timeout: float | None,
    quote_depth: int | None,
    log_level: str | None,
    json_output: bool = False,
    json_full: bool = False,
) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)

    if timeout is not None:
        cfg.client.timeout_seconds = timeout
    if quote_depth is not None:
        cfg.client.quote_depth = quote_depth
    if log_level:
        cfg.logging.level = log_level
    if json_output or json_full:
        cfg.output.format = "json"
    if json_full:
        cfg.output.include_raw = True
    # Raw payloads only make sense in JSON output
    cfg.output.include_raw = cfg.output.include_raw and cfg.output.format == "json"

    setup_logging(cfg.logging)
    return cfg


def _fail(message: str, code: int = 1) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}", highlight=False)
    return typer.Exit(code)


def _validate_paging(count: int | None, max_pages: int | None, delay: float | None) -> None:
    if count is not None and count <= 0:
        raise _fail("Invalid --count. Expected a positive integer.", 2)
    if max_pages is not None and not 1 <= max_pages <= HARD_MAX_PAGES:
        raise _fail(f"Invalid --max-pages. Expected a positive integer (max: {HARD_MAX_PAGES}).", 2)
    if delay is not None and delay < 0:
        raise _fail("Invalid --delay. Expected a non-negative number.", 2)


def _build_registry(cfg: AppConfig) -> QueryIdRegistry:
    return QueryIdRegistry(
        cache_path=get_query_id_cache_path(cfg.query_ids),
        discovery=QueryIdDiscovery(
            timeout=cfg.query_ids.discovery_timeout_seconds,
            trust_env=cfg.client.trust_env,
        ),
        ttl_seconds=cfg.query_ids.ttl_seconds,
    )


def _build_client(cfg: AppConfig) -> TwitterClient:
    try:
        credentials = resolve_credentials(cfg.credentials)
    except ValueError as exc:
        raise _fail(str(exc)) from exc
    return TwitterClient(
        credentials,
        config=cfg.client,
        registry=_build_registry(cfg),
        refresh_on_stale=cfg.query_ids.refresh_on_stale,
    )


def _run_paginated(
    cfg: AppConfig,
    call: Callable[[TwitterClient], Awaitable[PaginatedResult]],
    json_output: bool,
    with_cursor: bool,
    empty_message: str,
    users: bool = False,
) -> None:
    async def _run() -> PaginatedResult:
        async with _build_client(cfg) as client:
            return await call(client)

    result = asyncio.run(_run())
    _emit(result, json_output, with_cursor, empty_message, users)


def _emit(
    result: PaginatedResult,
    json_output: bool,
    with_cursor: bool,
    empty_message: str,
    users: bool = False,
) -> None:
    noun = "users" if users else "tweets"
    if json_output:
        if with_cursor or not result.success:
            typer.echo(paginated_to_json(result, key=noun))
        else:
            typer.echo(users_to_json(result.items) if users else tweets_to_json(result.items))
    elif result.items or result.success:
        if users:
            render_users(console, result.items, empty_message)
        else:
            render_tweets(console, result.items, empty_message)

    if not result.success:
        raise _fail(result.error or "Request failed")
    if result.next_cursor and not json_output:
        err_console.print(
            f"More {noun} available. Use --cursor \"{result.next_cursor}\" to continue.",
            highlight=False,
        )


@app.command()
def read(
    tweet: str = typer.Argument(..., help="Tweet id or URL."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """Read a single tweet."""
    tweet_id = extract_tweet_id(tweet)
    if not tweet_id:
        raise _fail(f"Invalid tweet id or URL: {tweet}", 2)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)

    async def _run():
        async with _build_client(cfg) as client:
            return await client.get_tweet(tweet_id, include_raw=cfg.output.include_raw)

    result = asyncio.run(_run())
    if not result.success or result.tweet is None:
        raise _fail(result.error or "Tweet not found")
    if cfg.output.format == "json":
        typer.echo(tweet_to_json(result.tweet))
    else:
        render_tweet(console, result.tweet)


@app.command()
def replies(
    tweet: str = typer.Argument(..., help="Tweet id or URL."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """List replies to a tweet."""
    tweet_id = extract_tweet_id(tweet)
    if not tweet_id:
        raise _fail(f"Invalid tweet id or URL: {tweet}", 2)
    _validate_paging(None, max_pages, delay)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)
    pages = max_pages or (None if cursor else 1)
    _run_paginated(
        cfg,
        lambda client: client.get_replies(
            tweet_id, max_pages=pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw
        ),
        cfg.output.format == "json",
        bool(cursor or max_pages),
        "No replies found.",
    )


@app.command()
def thread(
    tweet: str = typer.Argument(..., help="Tweet id or URL."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """Show the conversation thread a tweet belongs to."""
    tweet_id = extract_tweet_id(tweet)
    if not tweet_id:
        raise _fail(f"Invalid tweet id or URL: {tweet}", 2)
    _validate_paging(None, max_pages, delay)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)
    pages = max_pages or (None if cursor else 1)
    _run_paginated(
        cfg,
        lambda client: client.get_thread(
            tweet_id, max_pages=pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw
        ),
        cfg.output.format == "json",
        bool(cursor or max_pages),
        "No thread tweets found.",
    )


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    count: int = _count_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """Search for the latest tweets matching a query."""
    _validate_paging(count, max_pages, delay)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)
    _run_paginated(
        cfg,
        lambda client: client.search(
            query, count, max_pages=max_pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw
        ),
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        "No tweets found.",
    )


@app.command()
def bookmarks(
    folder: str | None = typer.Option(None, "--folder", help="Bookmark folder id or URL."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    count: int = _count_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """List your bookmarks, or the tweets in one bookmark folder."""
    _validate_paging(count, max_pages, delay)
    folder_id = None
    if folder is not None:
        folder_id = extract_bookmark_folder_id(folder)
        if not folder_id:
            raise _fail(f"Invalid bookmark folder id or URL: {folder}", 2)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)

    async def call(client: TwitterClient) -> PaginatedResult:
        paging = dict(max_pages=max_pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw)
        if folder_id:
            return await client.get_bookmark_folder_timeline(folder_id, count, **paging)
        return await client.get_bookmarks(count, **paging)

    _run_paginated(
        cfg,
        call,
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        "No bookmarks found.",
    )


@app.command()
def likes(
    handle: str = typer.Argument(..., help="Username whose likes to list (e.g. @jack)."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    count: int = _count_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """List tweets liked by a user."""
    _validate_paging(count, max_pages, delay)
    username = _require_handle(handle)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)

    async def call(client: TwitterClient) -> PaginatedResult:
        lookup = await client.get_user_id_by_username(username)
        if not lookup.success or lookup.user is None:
            return PaginatedResult(success=False, error=lookup.error or f"Could not find user @{username}")
        return await client.get_likes(
            lookup.user.id, count, max_pages=max_pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw
        )

    _run_paginated(
        cfg,
        call,
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        f"No liked tweets found for @{username}.",
    )


@app.command()
def home(
    following: bool = typer.Option(False, "--following", help="Show the chronological Following timeline."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    count: int = _count_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """Show your home timeline ("For You", or "Following" with --following)."""
    _validate_paging(count, max_pages, delay)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)

    async def call(client: TwitterClient) -> PaginatedResult:
        fetch = client.get_home_latest_timeline if following else client.get_home_timeline
        return await fetch(count, max_pages=max_pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw)

    _run_paginated(
        cfg,
        call,
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        "No tweets found.",
    )


@app.command("user-tweets")
def user_tweets(
    handle: str = typer.Argument(..., help="Username to fetch tweets from (e.g. @jack or jack)."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    json_full: bool = _json_full_option(),
    count: int = _count_option(),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    quote_depth: int | None = _quote_depth_option(),
    log_level: str | None = _log_level_option(),
):
    """Get tweets from a user's profile timeline."""
    _validate_paging(count, max_pages, delay)
    cfg = _prepare(config, timeout, quote_depth, log_level, json_output, json_full)
    max_tweets = cfg.client.page_size * HARD_MAX_PAGES
    if count > max_tweets:
        raise _fail(
            f"Invalid --count. Max {max_tweets} tweets per run (safety cap: {HARD_MAX_PAGES} pages). "
            "Use --cursor to continue.",
            2,
        )
    username = _require_handle(handle)

    async def call(client: TwitterClient) -> PaginatedResult:
        lookup = await client.get_user_id_by_username(username)
        if not lookup.success or lookup.user is None:
            return PaginatedResult(success=False, error=lookup.error or f"Could not find user @{username}")
        err_console.print(f"Fetching tweets from {lookup.user.name} (@{lookup.user.username})...", highlight=False)
        return await client.get_user_tweets(
            lookup.user.id, count, max_pages=max_pages, cursor=cursor, page_delay=delay, include_raw=cfg.output.include_raw
        )

    _run_paginated(
        cfg,
        call,
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        f"No tweets found for @{username}.",
    )


def _user_list_command(
    operation: str,
    user_id: str | None,
    config: Path | None,
    json_output: bool,
    count: int,
    max_pages: int | None,
    cursor: str | None,
    delay: float | None,
    timeout: float | None,
    log_level: str | None,
) -> None:
    _validate_paging(count, max_pages, delay)
    cfg = _prepare(config, timeout, None, log_level, json_output)

    async def call(client: TwitterClient) -> PaginatedResult:
        target = user_id
        if not target:
            current = await client.get_current_user()
            if not current.success or current.user is None:
                return PaginatedResult(success=False, error=f"Failed to get current user: {current.error}")
            target = current.user.id
        fetch = client.get_following if operation == "following" else client.get_followers
        return await fetch(target, count, max_pages=max_pages, cursor=cursor, page_delay=delay)

    _run_paginated(
        cfg,
        call,
        cfg.output.format == "json",
        _wants_cursor(count, max_pages, cursor, cfg),
        "No users found.",
        users=True,
    )


@app.command()
def following(
    user: str | None = typer.Option(None, "--user", help="User id to list (defaults to you)."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    count: int = typer.Option(20, "--count", "-n", help="Number of users to fetch."),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    log_level: str | None = _log_level_option(),
):
    """List the accounts you (or another user) follow."""
    _user_list_command("following", user, config, json_output, count, max_pages, cursor, delay, timeout, log_level)


@app.command()
def followers(
    user: str | None = typer.Option(None, "--user", help="User id to list (defaults to you)."),
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    count: int = typer.Option(20, "--count", "-n", help="Number of users to fetch."),
    max_pages: int | None = _max_pages_option(),
    cursor: str | None = _cursor_option(),
    delay: float | None = _delay_option(),
    timeout: float | None = _timeout_option(),
    log_level: str | None = _log_level_option(),
):
    """List the accounts following you (or another user)."""
    _user_list_command("followers", user, config, json_output, count, max_pages, cursor, delay, timeout, log_level)


@app.command()
def whoami(
    config: Path | None = _config_option(),
    json_output: bool = _json_option(),
    timeout: float | None = _timeout_option(),
    log_level: str | None = _log_level_option(),
):
    """Show which account the current credentials belong to."""
    cfg = _prepare(config, timeout, None, log_level, json_output)

    async def _run():
        async with _build_client(cfg) as client:
            return await client.get_current_user()

    result = asyncio.run(_run())
    if not result.success or result.user is None:
        raise _fail(f"Failed to determine current user: {result.error or 'Unknown error'}")
    if cfg.output.format == "json":
        typer.echo(json.dumps(result.user.to_dict(), indent=2, ensure_ascii=False))
    else:
        render_user(console, result.user)
        console.print(f"User id: {result.user.id}", highlight=False)


@app.command("query-ids")
def query_ids(
    refresh: bool = typer.Option(False, "--refresh", help="Re-discover query IDs from the web client."),
    config: Path | None = _config_option(),
    log_level: str | None = _log_level_option(),
):
    """Show (and optionally refresh) the cached GraphQL query IDs."""
    cfg = _prepare(config, None, None, log_level)
    registry = _build_registry(cfg)
    if refresh:
        asyncio.run(registry.refresh(TARGET_QUERY_ID_OPERATIONS, force=True))
        if registry.consecutive_refresh_failures:
            raise _fail("Query ID refresh failed; see log output.")
    render_query_ids(
        console,
        registry.snapshot_info(),
        {name: registry.resolve(name) for name in registry.operation_names},
    )


def _require_handle(handle: str) -> str:
    username = normalize_handle(handle)
    if not username:
        raise _fail(f"Invalid handle: {handle}", 2)
    return username


def _wants_cursor(count: int, max_pages: int | None, cursor: str | None, cfg: AppConfig) -> bool:
    return bool(cursor) or max_pages is not None or count > cfg.client.page_size


if __name__ == "__main__":
    app()
