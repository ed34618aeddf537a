"""Response normalization, text extraction and record mapping."""

from .content import (
    extract_article_metadata,
    extract_article_text,
    extract_note_tweet_text,
    extract_tweet_text,
    render_content_state,
)
from .mapper import extract_media, map_tweet_result, normalize_quote_depth
from .normalizer import (
    collect_tweet_results_from_entry,
    extract_cursor_from_instructions,
    find_tweet_in_instructions,
    parse_tweets_from_instructions,
    parse_user_result,
    parse_users_from_instructions,
)

__all__ = [
    "collect_tweet_results_from_entry",
    "extract_article_metadata",
    "extract_article_text",
    "extract_cursor_from_instructions",
    "extract_media",
    "extract_note_tweet_text",
    "extract_tweet_text",
    "find_tweet_in_instructions",
    "map_tweet_result",
    "normalize_quote_depth",
    "parse_tweets_from_instructions",
    "parse_user_result",
    "parse_users_from_instructions",
    "render_content_state",
]
