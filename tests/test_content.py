"""Tests for rich article rendering and the text priority chain."""

from __future__ import annotations

from xfeed.parse.content import (
    extract_article_metadata,
    extract_article_text,
    extract_note_tweet_text,
    extract_tweet_text,
    render_content_state,
)


def _block(block_type: str, text: str, entity_ranges=None) -> dict:
    return {"type": block_type, "text": text, "entityRanges": entity_ranges or [], "inlineStyleRanges": []}


def test_ordered_list_counter_resets_after_interruption():
    content_state = {
        "blocks": [
            _block("ordered-list-item", "X"),
            _block("ordered-list-item", "Y"),
            _block("unstyled", "Z"),
            _block("ordered-list-item", "W"),
        ],
        "entityMap": [],
    }

    assert render_content_state(content_state) == "1. X\n\n2. Y\n\nZ\n\n1. W"


def test_block_prefixes():
    content_state = {
        "blocks": [
            _block("header-one", "Title"),
            _block("header-two", "Section"),
            _block("header-three", "Sub"),
            _block("unordered-list-item", "bullet"),
            _block("blockquote", "quoted"),
            _block("code-block", "fallback text"),
        ],
        "entityMap": [],
    }

    rendered = render_content_state(content_state)

    assert rendered == "# Title\n\n## Section\n\n### Sub\n\n- bullet\n\n> quoted\n\nfallback text"


def test_link_entities_rewritten_from_the_end():
    content_state = {
        "blocks": [
            _block(
                "unstyled",
                "Read the docs now",
                [{"key": 0, "offset": 9, "length": 4}, {"key": 1, "offset": 0, "length": 4}],
            )
        ],
        "entityMap": [
            {"key": "0", "value": {"type": "LINK", "data": {"url": "https://docs.example"}}},
            {"key": "1", "value": {"type": "LINK", "data": {"url": "https://read.example"}}},
        ],
    }

    assert render_content_state(content_state) == (
        "[Read](https://read.example) the [docs](https://docs.example) now"
    )


def test_atomic_blocks_resolve_their_entity():
    atomic = lambda key: _block("atomic", " ", [{"key": key, "offset": 0, "length": 1}])  # noqa: E731
    content_state = {
        "blocks": [atomic(0), atomic(1), atomic(2), atomic(3), atomic(4), atomic(5), atomic(99)],
        "entityMap": {
            "0": {"type": "MARKDOWN", "data": {"markdown": "```py\nprint(1)\n```"}},
            "1": {"type": "DIVIDER", "data": {}},
            "2": {"type": "TWEET", "data": {"tweetId": "123"}},
            "3": {"type": "LINK", "data": {"url": "https://example.com"}},
            "4": {"type": "IMAGE", "data": {}},
            "5": {"type": "POLL", "data": {}},
        },
    }

    assert render_content_state(content_state) == "\n\n".join(
        [
            "```py\nprint(1)\n```",
            "---",
            "[Embedded Tweet: https://x.com/i/status/123]",
            "[Link: https://example.com]",
            "[Image]",
        ]
    )


def test_empty_document_renders_nothing():
    assert render_content_state(None) is None
    assert render_content_state({"blocks": [], "entityMap": []}) is None
    assert render_content_state({"blocks": [_block("unstyled", "   ")], "entityMap": []}) is None


def _article_result(title: str | None = None, content_state=None, **fields) -> dict:
    article_result = dict(fields)
    if title is not None:
        article_result["title"] = title
    if content_state is not None:
        article_result["content_state"] = content_state
    return {"rest_id": "1", "article": {"article_results": {"result": article_result}}}


def test_rich_document_wins_over_legacy_text():
    result = _article_result(
        title="My Article",
        content_state={"blocks": [_block("unstyled", "Body paragraph")], "entityMap": []},
    )
    result["legacy"] = {"full_text": "https://t.co/short"}

    assert extract_tweet_text(result) == "My Article\n\nBody paragraph"


def test_rich_document_starting_with_title_is_not_prefixed_twice():
    result = _article_result(
        title="My Article",
        content_state={"blocks": [_block("header-one", "x"), _block("unstyled", "y")], "entityMap": []},
    )
    result["article"]["article_results"]["result"]["title"] = "# x"

    assert extract_article_text(result) == "# x\n\ny"


def test_plain_text_body_gets_title_prefix():
    result = _article_result(title="Title", plain_text="Plain body")

    assert extract_article_text(result) == "Title\n\nPlain body"


def test_body_identical_to_title_is_dropped():
    result = _article_result(title="Same", plain_text="Same")

    assert extract_article_text(result) == "Same"


def test_collected_text_fields_used_as_last_resort():
    result = _article_result(
        title="Title",
        sections=[{"text": "First part"}, {"nested": {"text": "Second part"}}, {"text": "First part"}],
    )

    assert extract_article_text(result) == "Title\n\nFirst part\n\nSecond part"


def test_note_tweet_text_beats_legacy_text():
    result = {
        "rest_id": "1",
        "note_tweet": {"note_tweet_results": {"result": {"richtext": {"text": "Long note body"}}}},
        "legacy": {"full_text": "Long note b…"},
    }

    assert extract_note_tweet_text(result) == "Long note body"
    assert extract_tweet_text(result) == "Long note body"


def test_legacy_text_used_when_nothing_else():
    assert extract_tweet_text({"rest_id": "1", "legacy": {"full_text": "just text"}}) == "just text"
    assert extract_tweet_text({"rest_id": "1", "legacy": {}}) is None


def test_article_metadata():
    result = {
        "article": {
            "article_results": {"result": {"title": " Headline ", "preview_text": "Teaser"}},
        }
    }

    metadata = extract_article_metadata(result)

    assert metadata is not None
    assert metadata.title == "Headline"
    assert metadata.preview_text == "Teaser"
    assert extract_article_metadata({"legacy": {}}) is None
