"""
Core data types for xfeed.

This module defines the stable records the rest of the package produces:
- Tweet: A normalized tweet, independent of which GraphQL shape carried it
- TweetMedia / ArticleMetadata / TweetAuthor: Parts of a Tweet
- Page: Outcome of fetching one page of an operation
- TwitterUser: A user from lookups and follow lists
- PaginatedResult / TweetResult / UserLookupResult: What callers receive
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TweetAuthor:
    """Author of a tweet.

    Attributes:
        username: The screen name without the leading "@"
        name: Display name, falls back to the username when absent
    """
    username: str
    name: str


@dataclass
class TweetMedia:
    """A photo, video or animated GIF attached to a tweet.

    Attributes:
        type: "photo", "video" or "animated_gif"
        url: The media URL (for videos this is the poster image)
        preview_url: Small thumbnail URL, when a small size exists
        width: Width of the largest known size
        height: Height of the largest known size
        video_url: Best MP4 variant for video/animated_gif
        duration_ms: Video duration in milliseconds
    """
    type: str
    url: str
    preview_url: str | None = None
    width: int | None = None
    height: int | None = None
    video_url: str | None = None
    duration_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "url": self.url,
                "previewUrl": self.preview_url,
                "width": self.width,
                "height": self.height,
                "videoUrl": self.video_url,
                "durationMs": self.duration_ms,
            }
        )


@dataclass
class ArticleMetadata:
    """Title and preview of a long-form article attached to a tweet."""
    title: str
    preview_text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"title": self.title, "previewText": self.preview_text})


@dataclass
class Tweet:
    """A normalized tweet.

    Only ``id``, ``text`` and ``author`` are guaranteed. Everything else is
    optional because the wire format omits fields freely depending on the
    endpoint that returned the tweet.

    Attributes:
        id: The tweet's rest_id
        text: Display text resolved by the content extractor
        author: Username and display name
        author_id: The author's rest_id
        created_at: Timestamp string as returned by the API
        reply_count: Number of replies
        retweet_count: Number of retweets
        like_count: Number of likes
        conversation_id: Root tweet id of the conversation
        in_reply_to_status_id: Parent tweet id for replies
        quoted_tweet: Quoted tweet, bounded by the configured quote depth
        media: Attached media, None when the tweet has none
        article: Article metadata for long-form posts
        raw: The raw GraphQL result, only when requested
    """
    id: str
    text: str
    author: TweetAuthor
    author_id: str | None = None
    created_at: str | None = None
    reply_count: int | None = None
    retweet_count: int | None = None
    like_count: int | None = None
    conversation_id: str | None = None
    in_reply_to_status_id: str | None = None
    quoted_tweet: Tweet | None = None
    media: list[TweetMedia] | None = None
    article: ArticleMetadata | None = None
    raw: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase field names of the JSON output."""
        payload = _compact(
            {
                "id": self.id,
                "text": self.text,
                "createdAt": self.created_at,
                "replyCount": self.reply_count,
                "retweetCount": self.retweet_count,
                "likeCount": self.like_count,
                "conversationId": self.conversation_id,
                "inReplyToStatusId": self.in_reply_to_status_id,
                "author": {"username": self.author.username, "name": self.author.name},
                "authorId": self.author_id,
                "quotedTweet": self.quoted_tweet.to_dict() if self.quoted_tweet else None,
                "media": [item.to_dict() for item in self.media] if self.media else None,
                "article": self.article.to_dict() if self.article else None,
            }
        )
        if self.raw is not None:
            payload["_raw"] = self.raw
        return payload


@dataclass
class Page:
    """Result of fetching one page.

    Attributes:
        success: Whether the page was fetched and parsed
        items: Tweets (or users, for follow lists) parsed from the page
        cursor: Opaque cursor for the next page, if the page returned one
        not_found: Whether any attempt hit the stale query ID signal
        error: Error message on failure
    """
    success: bool
    items: list[Any] = field(default_factory=list)
    cursor: str | None = None
    not_found: bool = False
    error: str | None = None


@dataclass
class PaginatedResult:
    """Result of a paginated read.

    Callers distinguish three outcomes:
    - exhausted: success, next_cursor is None
    - capped: success, next_cursor set (resume with it later)
    - failed: error set, items holds whatever earlier pages produced
    """
    success: bool
    items: list[Any] = field(default_factory=list)
    next_cursor: str | None = None
    error: str | None = None
    pages_fetched: int = 0


@dataclass
class TweetResult:
    """Result of a single tweet lookup."""
    success: bool
    tweet: Tweet | None = None
    error: str | None = None


@dataclass
class TwitterUser:
    """A user as returned by handle lookups and follow lists.

    Attributes:
        id: The user's rest_id
        username: The screen name without the leading "@"
        name: Display name, falls back to the username when absent
        description: Profile bio
        followers_count: Number of followers
        following_count: Number of accounts the user follows
        is_blue_verified: Whether the account has a paid checkmark
        profile_image_url: Avatar URL
        created_at: Account creation timestamp as returned by the API
    """
    id: str
    username: str
    name: str
    description: str | None = None
    followers_count: int | None = None
    following_count: int | None = None
    is_blue_verified: bool | None = None
    profile_image_url: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "username": self.username,
                "name": self.name,
                "description": self.description,
                "followersCount": self.followers_count,
                "followingCount": self.following_count,
                "isBlueVerified": self.is_blue_verified,
                "profileImageUrl": self.profile_image_url,
                "createdAt": self.created_at,
            }
        )


@dataclass
class UserLookupResult:
    """Result of resolving a handle to a user id."""
    success: bool
    user: TwitterUser | None = None
    error: str | None = None


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}
