"""
Async client for the X web GraphQL API.

TwitterClient ties the pieces together: it builds requests for each
operation, runs them through the ResilientExecutor (query ID fallback and
refresh-on-stale), walks cursors with ``paginate_cursor`` and maps the
timeline instructions to Tweet records.

Example:
    async with TwitterClient(credentials, config=cfg.client, registry=registry) as client:
        result = await client.search("from:jack", count=40)
"""

from __future__ import annotations

import asyncio
from datetime import datetime
import json
import logging
import re
import secrets
from typing import Any, Awaitable, Callable
import uuid

from .config import ClientConfig
from .core.errors import HttpError, XFeedError
from .core.types import Page, PaginatedResult, TweetResult, TwitterUser, UserLookupResult
from .credentials import TwitterCredentials, normalize_handle
from .features import (
    build_article_features,
    build_article_field_toggles,
    build_bookmarks_features,
    build_following_features,
    build_home_timeline_features,
    build_likes_features,
    build_search_features,
    build_tweet_detail_features,
    build_user_lookup_features,
    build_user_tweets_features,
)
from .fetch.executor import ExecutionResult, RequestBuilder, ResilientExecutor
from .fetch.paginate import paginate_cursor
from .fetch.transport import GraphqlRequest, HttpxTransport, Transport
from .logging_utils import log_event
from .parse.content import dig, extract_article_text, first_text
from .parse.mapper import map_tweet_result, normalize_quote_depth, unwrap_tweet_result
from .parse.normalizer import (
    extract_cursor_from_instructions,
    find_tweet_in_instructions,
    parse_tweets_from_instructions,
    parse_user_result,
    parse_users_from_instructions,
    timeline_instructions,
)
from .query_ids.constants import (
    ACCOUNT_SETTINGS_URLS,
    SETTINGS_NAME_PATTERN,
    SETTINGS_PAGES,
    SETTINGS_SCREEN_NAME_PATTERN,
    SETTINGS_USER_ID_PATTERN,
    TWITTER_API_BASE,
)
from .query_ids.registry import QueryIdRegistry

logger = logging.getLogger(__name__)

BEARER_TOKEN = (
    "AAAAAAAAAAAAAAAAAAAAANRILgAAAAAAnNwIzUejRCOuH5E6I8xnZz4puTs"
    "%3D1Zv7ttfk8LF81IUq16cHjhLTvJu4FA33AGWWjCpTnA"
)

CREATED_AT_FORMAT = "%a %b %d %H:%M:%S %z %Y"

_USER_TIMELINE_PATH = ("user", "result", "timeline", "timeline")
_HOME_TIMELINE_PATH = ("home", "home_timeline_urt")

_SETTINGS_SCREEN_NAME_RE = re.compile(SETTINGS_SCREEN_NAME_PATTERN)
_SETTINGS_USER_ID_RE = re.compile(SETTINGS_USER_ID_PATTERN)
_SETTINGS_NAME_RE = re.compile(SETTINGS_NAME_PATTERN)


class TwitterClient:
    """Read-only client for tweets, timelines and user lookups.

    Args:
        credentials: Session cookies
        config: Request and pagination settings
        registry: Query ID registry; a fresh one with baked-in IDs when None
        transport: HTTP transport; an HttpxTransport when None
        refresh_on_stale: Refresh query IDs when every candidate is stale
        sleep: Awaitable used for the delay between pages
    """

    def __init__(
        self,
        credentials: TwitterCredentials,
        config: ClientConfig | None = None,
        registry: QueryIdRegistry | None = None,
        transport: Transport | None = None,
        refresh_on_stale: bool = True,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.credentials = credentials
        self.config = config or ClientConfig()
        self.quote_depth = normalize_quote_depth(self.config.quote_depth)
        self.registry = registry or QueryIdRegistry()
        self.transport = transport or HttpxTransport(trust_env=self.config.trust_env)
        self.executor = ResilientExecutor(
            self.transport,
            self.registry,
            timeout=self.config.timeout_seconds,
            refresh_on_stale=refresh_on_stale,
        )
        self._sleep = sleep
        self._client_uuid = str(uuid.uuid4())
        self._device_id = str(uuid.uuid4())

    async def __aenter__(self) -> TwitterClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()

    # ------------------------------------------------------------------
    # Tweet detail
    # ------------------------------------------------------------------

    async def get_tweet(self, tweet_id: str, include_raw: bool = False) -> TweetResult:
        """Fetch a single tweet by id.

        Articles whose detail payload only carries a title are completed with
        the plain text from the author's article timeline.
        """
        result = await self.executor.execute("TweetDetail", self._tweet_detail_requests(tweet_id))
        if not result.success:
            return TweetResult(success=False, error=result.error)

        tweet_result = unwrap_tweet_result(dig(result.data, "tweetResult", "result"))
        if tweet_result is None:
            instructions = timeline_instructions(result.data, "threaded_conversation_with_injections_v2")
            tweet_result = find_tweet_in_instructions(instructions, tweet_id)

        tweet = map_tweet_result(tweet_result, self.quote_depth, include_raw)
        if tweet is None:
            return TweetResult(success=False, error="Tweet not found in response")

        article = dig(tweet_result, "article")
        if isinstance(article, dict):
            title = first_text(dig(article, "article_results", "result", "title"), article.get("title"))
            article_text = extract_article_text(tweet_result)
            user_id = dig(tweet_result, "core", "user_results", "result", "rest_id")
            if title and (not article_text or article_text.strip() == title) and user_id:
                fallback_title, plain_text = await self._fetch_user_article_plain_text(user_id, tweet_id)
                if plain_text:
                    tweet.text = f"{fallback_title}\n\n{plain_text}" if fallback_title else plain_text

        return TweetResult(success=True, tweet=tweet)

    async def get_replies(
        self,
        tweet_id: str,
        count: int | None = None,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch direct replies to a tweet, following conversation cursors.

        Pages are walked unfiltered so that a page holding only nested
        replies does not end the walk. ``count`` bounds the conversation
        tweets scanned, not the replies returned.
        """

        async def fetch_page(page_cursor: str | None, _count: int) -> Page:
            return await self._fetch_tweet_detail_page(tweet_id, page_cursor, include_raw)

        result = await self._paginate(fetch_page, count, max_pages, cursor, page_delay)
        result.items = [tweet for tweet in result.items if tweet.in_reply_to_status_id == tweet_id]
        return result

    async def get_thread(
        self,
        tweet_id: str,
        count: int | None = None,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch the conversation a tweet belongs to, oldest first.

        The conversation root comes from the focal tweet. A page resumed from
        a cursor may not contain it, in which case the first tweet carrying a
        conversation id decides.
        """

        async def fetch_page(page_cursor: str | None, _count: int) -> Page:
            return await self._fetch_tweet_detail_page(tweet_id, page_cursor, include_raw)

        result = await self._paginate(fetch_page, count, max_pages, cursor, page_delay)
        root_id = _conversation_root(result.items, tweet_id)
        result.items = [tweet for tweet in result.items if tweet.conversation_id == root_id]
        result.items.sort(key=lambda tweet: _created_at_timestamp(tweet.created_at))
        return result

    async def _fetch_tweet_detail_page(
        self,
        tweet_id: str,
        cursor: str | None,
        include_raw: bool,
    ) -> Page:
        result = await self.executor.execute("TweetDetail", self._tweet_detail_requests(tweet_id, cursor))
        return self._timeline_page(result, ("threaded_conversation_with_injections_v2",), include_raw)

    def _tweet_detail_requests(self, tweet_id: str, cursor: str | None = None) -> RequestBuilder:
        variables: dict[str, Any] = {
            "focalTweetId": tweet_id,
            "with_rux_injections": False,
            "rankingMode": "Relevance",
            "includePromotedContent": True,
            "withCommunity": True,
            "withQuickPromoteEligibilityTweetFields": True,
            "withBirdwatchNotes": True,
            "withVoice": True,
        }
        if cursor:
            variables["cursor"] = cursor
        features = build_tweet_detail_features()
        field_toggles = build_article_field_toggles()

        def build(query_id: str) -> list[GraphqlRequest]:
            url = self._graphql_url(query_id, "TweetDetail")
            return [
                GraphqlRequest(
                    method="GET",
                    url=url,
                    params=_encode_params(variables=variables, features=features, fieldToggles=field_toggles),
                    headers=self._headers(),
                ),
                GraphqlRequest(
                    method="POST",
                    url=url,
                    json_body={"variables": variables, "features": features, "queryId": query_id},
                    headers=self._headers(),
                ),
            ]

        return build

    async def _fetch_user_article_plain_text(self, user_id: str, tweet_id: str) -> tuple[str | None, str | None]:
        variables = {
            "userId": user_id,
            "count": 20,
            "includePromotedContent": True,
            "withVoice": True,
            "withQuickPromoteEligibilityTweetFields": True,
            "withBirdwatchNotes": True,
            "withCommunity": True,
            "withSafetyModeUserFields": True,
            "withSuperFollowsUserFields": True,
            "withDownvotePerspective": False,
            "withReactionsMetadata": False,
            "withReactionsPerspective": False,
            "withSuperFollowsTweetFields": True,
            "withSuperFollowsReplyCount": False,
            "withClientEventToken": False,
        }
        result = await self.executor.execute(
            "UserArticlesTweets",
            self._get_requests(
                "UserArticlesTweets",
                variables,
                build_article_features(),
                build_article_field_toggles(),
            ),
        )
        if not result.success:
            log_event(
                logger,
                "Article plain text fallback failed",
                level=logging.DEBUG,
                event="article_fallback_failed",
                tweet_id=tweet_id,
                error=result.error,
            )
            return None, None

        instructions = timeline_instructions(result.data, *_USER_TIMELINE_PATH)
        match = find_tweet_in_instructions(instructions, tweet_id)
        article = dig(match, "article")
        if not isinstance(article, dict):
            return None, None
        article_result = dig(article, "article_results", "result")
        title = first_text(dig(article_result, "title"), article.get("title"))
        plain_text = first_text(dig(article_result, "plain_text"), article.get("plain_text"))
        return title, plain_text

    # ------------------------------------------------------------------
    # Timelines
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Search latest tweets matching a query."""
        features = build_search_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "rawQuery": query,
                "count": page_count,
                "querySource": "typed_query",
                "product": "Latest",
            }
            if page_cursor:
                variables["cursor"] = page_cursor

            def build(query_id: str) -> list[GraphqlRequest]:
                return [
                    GraphqlRequest(
                        method="POST",
                        url=self._graphql_url(query_id, "SearchTimeline"),
                        params=_encode_params(variables=variables),
                        json_body={"features": features, "queryId": query_id},
                        headers=self._headers(),
                    )
                ]

            result = await self.executor.execute("SearchTimeline", build)
            return self._timeline_page(
                result, ("search_by_raw_query", "search_timeline", "timeline"), include_raw
            )

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_bookmarks(
        self,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch the authenticated user's bookmarks."""
        features = build_bookmarks_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "count": page_count,
                "includePromotedContent": False,
                "withDownvotePerspective": False,
                "withReactionsMetadata": False,
                "withReactionsPerspective": False,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute("Bookmarks", self._get_requests("Bookmarks", variables, features))
            return self._timeline_page(result, ("bookmark_timeline_v2", "timeline"), include_raw)

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_bookmark_folder_timeline(
        self,
        folder_id: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch the tweets in one bookmark folder.

        Some query IDs reject the ``count`` variable; such a page is
        re-requested without it.
        """
        features = build_bookmarks_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "bookmark_collection_id": folder_id,
                "includePromotedContent": True,
                "count": page_count,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute(
                "BookmarkFolderTimeline", self._get_requests("BookmarkFolderTimeline", variables, features)
            )
            if not result.success and 'Variable "$count"' in (result.error or ""):
                log_event(
                    logger,
                    "Retrying bookmark folder without count",
                    level=logging.DEBUG,
                    event="bookmark_folder_retry",
                    folder_id=folder_id,
                )
                del variables["count"]
                result = await self.executor.execute(
                    "BookmarkFolderTimeline", self._get_requests("BookmarkFolderTimeline", variables, features)
                )
            return self._timeline_page(result, ("bookmark_collection_timeline", "timeline"), include_raw)

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_likes(
        self,
        user_id: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch tweets liked by a user."""
        features = build_likes_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "userId": user_id,
                "count": page_count,
                "includePromotedContent": False,
                "withClientEventToken": False,
                "withBirdwatchNotes": False,
                "withVoice": True,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute("Likes", self._get_requests("Likes", variables, features))
            return self._timeline_page(result, _USER_TIMELINE_PATH, include_raw)

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_home_timeline(
        self,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch the "For You" home timeline."""
        return await self._home_timeline("HomeTimeline", count, max_pages, cursor, page_delay, include_raw)

    async def get_home_latest_timeline(
        self,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch the chronological "Following" home timeline."""
        return await self._home_timeline("HomeLatestTimeline", count, max_pages, cursor, page_delay, include_raw)

    async def _home_timeline(
        self,
        operation: str,
        count: int,
        max_pages: int | None,
        cursor: str | None,
        page_delay: float | None,
        include_raw: bool,
    ) -> PaginatedResult:
        features = build_home_timeline_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "count": page_count,
                "includePromotedContent": True,
                "latestControlAvailable": True,
                "requestContext": "launch",
                "withCommunity": True,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute(operation, self._get_requests(operation, variables, features))
            return self._timeline_page(result, _HOME_TIMELINE_PATH, include_raw)

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_user_tweets(
        self,
        user_id: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
        include_raw: bool = False,
    ) -> PaginatedResult:
        """Fetch tweets from a user's profile timeline.

        Error lists that accompany usable timeline data are tolerated, since
        the profile timeline often reports problems with individual entries.
        """
        features = build_user_tweets_features()
        field_toggles = {"withArticlePlainText": False}

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "userId": user_id,
                "count": page_count,
                "includePromotedContent": False,
                "withQuickPromoteEligibilityTweetFields": True,
                "withVoice": True,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute(
                "UserTweets",
                self._get_requests("UserTweets", variables, features, field_toggles),
                allow_partial_data=True,
            )
            return self._timeline_page(result, _USER_TIMELINE_PATH, include_raw)

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user_id_by_username(self, handle: str) -> UserLookupResult:
        """Resolve a handle (with or without "@") to a user id."""
        username = normalize_handle(handle)
        if not username:
            return UserLookupResult(success=False, error=f"Invalid username: {handle}")

        variables = {"screen_name": username, "withSafetyModeUserFields": True}
        result = await self.executor.execute(
            "UserByScreenName",
            self._get_requests(
                "UserByScreenName",
                variables,
                build_user_lookup_features(),
                {"withAuxiliaryUserLabels": False},
            ),
        )
        if not result.success:
            return UserLookupResult(success=False, error=result.error)

        user_result = dig(result.data, "user", "result")
        if dig(user_result, "__typename") == "UserUnavailable" or not user_result:
            return UserLookupResult(success=False, error=f"User @{username} not found or unavailable")

        user = parse_user_result(user_result)
        if user is None:
            return UserLookupResult(success=False, error="Could not parse user data from response")
        return UserLookupResult(success=True, user=user)

    async def get_following(
        self,
        user_id: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
    ) -> PaginatedResult:
        """Fetch the accounts a user follows. Items are TwitterUser records."""
        return await self._user_list("Following", user_id, count, max_pages, cursor, page_delay)

    async def get_followers(
        self,
        user_id: str,
        count: int = 20,
        max_pages: int | None = None,
        cursor: str | None = None,
        page_delay: float | None = None,
    ) -> PaginatedResult:
        """Fetch the accounts following a user. Items are TwitterUser records."""
        return await self._user_list("Followers", user_id, count, max_pages, cursor, page_delay)

    async def _user_list(
        self,
        operation: str,
        user_id: str,
        count: int,
        max_pages: int | None,
        cursor: str | None,
        page_delay: float | None,
    ) -> PaginatedResult:
        features = build_following_features()

        async def fetch_page(page_cursor: str | None, page_count: int) -> Page:
            variables: dict[str, Any] = {
                "userId": user_id,
                "count": page_count,
                "includePromotedContent": False,
            }
            if page_cursor:
                variables["cursor"] = page_cursor
            result = await self.executor.execute(operation, self._get_requests(operation, variables, features))
            if not result.success:
                return Page(success=False, error=result.error, not_found=result.not_found)
            instructions = timeline_instructions(result.data, *_USER_TIMELINE_PATH)
            return Page(
                success=True,
                items=parse_users_from_instructions(instructions),
                cursor=extract_cursor_from_instructions(instructions),
                not_found=result.not_found,
            )

        return await self._paginate(fetch_page, count, max_pages, cursor, page_delay)

    async def get_current_user(self) -> UserLookupResult:
        """Identify the account behind the session cookies.

        The account settings endpoints are tried first. When none of them
        yields a screen name and id, the HTML settings page is scraped.
        """
        last_error: str | None = None

        for url in ACCOUNT_SETTINGS_URLS:
            try:
                response = await self.transport.send(
                    GraphqlRequest(method="GET", url=url, headers=self._headers()),
                    self.config.timeout_seconds,
                )
                if not response.ok:
                    last_error = str(HttpError(response.status_code, response.text))
                    continue
                user = _account_user(response.json())
            except XFeedError as exc:
                last_error = str(exc)
                continue
            if user is not None:
                return UserLookupResult(success=True, user=user)
            last_error = "Could not determine current user from response"

        page_headers = {"cookie": self.credentials.cookie_header or "", "user-agent": self.config.user_agent}
        for url in SETTINGS_PAGES:
            try:
                response = await self.transport.send(
                    GraphqlRequest(method="GET", url=url, headers=page_headers),
                    self.config.timeout_seconds,
                )
            except XFeedError as exc:
                last_error = str(exc)
                continue
            if not response.ok:
                last_error = f"HTTP {response.status_code} (settings page)"
                continue
            user = _settings_page_user(response.text)
            if user is not None:
                return UserLookupResult(success=True, user=user)
            last_error = "Could not parse settings page for user info"

        log_event(
            logger,
            "Current user lookup failed",
            level=logging.WARNING,
            event="request_failed",
            operation="CurrentUser",
            error=last_error,
        )
        return UserLookupResult(success=False, error=last_error or "Unknown error fetching current user")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _paginate(
        self,
        fetch_page: Callable[[str | None, int], Awaitable[Page]],
        count: int | None,
        max_pages: int | None,
        cursor: str | None,
        page_delay: float | None,
    ) -> PaginatedResult:
        if count is not None and count <= 0:
            return PaginatedResult(success=False, error=f"Invalid count: {count}")
        return await paginate_cursor(
            fetch_page,
            target_count=count,
            max_pages=max_pages,
            cursor=cursor,
            page_size=self.config.page_size,
            page_delay=self.config.page_delay_seconds if page_delay is None else page_delay,
            sleep=self._sleep,
            hard_max_pages=self.config.hard_max_pages,
        )

    def _timeline_page(self, result: ExecutionResult, path: tuple[str, ...], include_raw: bool) -> Page:
        if not result.success:
            return Page(success=False, error=result.error, not_found=result.not_found)
        instructions = timeline_instructions(result.data, *path)
        return Page(
            success=True,
            items=parse_tweets_from_instructions(instructions, self.quote_depth, include_raw),
            cursor=extract_cursor_from_instructions(instructions),
            not_found=result.not_found,
        )

    def _get_requests(
        self,
        operation: str,
        variables: dict[str, Any],
        features: dict[str, bool],
        field_toggles: dict[str, bool] | None = None,
    ) -> RequestBuilder:
        params = _encode_params(variables=variables, features=features, fieldToggles=field_toggles)

        def build(query_id: str) -> list[GraphqlRequest]:
            return [
                GraphqlRequest(
                    method="GET",
                    url=self._graphql_url(query_id, operation),
                    params=params,
                    headers=self._headers(),
                )
            ]

        return build

    def _graphql_url(self, query_id: str, operation: str) -> str:
        return f"{TWITTER_API_BASE}/{query_id}/{operation}"

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "*/*",
            "accept-language": "en-US,en;q=0.9",
            "authorization": f"Bearer {BEARER_TOKEN}",
            "content-type": "application/json",
            "x-csrf-token": self.credentials.ct0,
            "x-twitter-auth-type": "OAuth2Session",
            "x-twitter-active-user": "yes",
            "x-twitter-client-language": "en",
            "x-client-uuid": self._client_uuid,
            "x-twitter-client-deviceid": self._device_id,
            "x-client-transaction-id": secrets.token_hex(16),
            "cookie": self.credentials.cookie_header or "",
            "user-agent": self.config.user_agent,
            "origin": "https://x.com",
            "referer": "https://x.com/",
        }


def _encode_params(**values: Any) -> dict[str, str]:
    return {key: json.dumps(value) for key, value in values.items() if value is not None}


def _created_at_timestamp(value: str | None) -> float:
    if not value:
        return 0.0
    try:
        return datetime.strptime(value, CREATED_AT_FORMAT).timestamp()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    except ValueError:
        return 0.0


def _conversation_root(tweets: list[Any], tweet_id: str) -> str:
    focal = next((tweet for tweet in tweets if tweet.id == tweet_id), None)
    if focal is not None and focal.conversation_id:
        return focal.conversation_id
    for tweet in tweets:
        if tweet.conversation_id:
            return tweet.conversation_id
    return tweet_id


def _account_user(data: Any) -> TwitterUser | None:
    if not isinstance(data, dict):
        return None
    nested = data.get("user") if isinstance(data.get("user"), dict) else {}
    username = first_text(data.get("screen_name"), nested.get("screen_name"))
    user_id = first_text(data.get("user_id"), data.get("user_id_str"), nested.get("id_str"), nested.get("id"))
    if not username or not user_id:
        return None
    name = first_text(data.get("name"), nested.get("name")) or username
    return TwitterUser(id=user_id, username=username, name=name)


def _settings_page_user(html: str) -> TwitterUser | None:
    username = _SETTINGS_SCREEN_NAME_RE.search(html)
    user_id = _SETTINGS_USER_ID_RE.search(html)
    if not username or not user_id:
        return None
    name = _SETTINGS_NAME_RE.search(html)
    display = name.group(1).replace('\\"', '"') if name else None
    return TwitterUser(id=user_id.group(1), username=username.group(1), name=display or username.group(1))
