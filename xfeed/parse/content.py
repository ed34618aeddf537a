"""
Text extraction for tweets, note tweets and articles.

Tweet text can live in several places depending on the kind of post. The
resolution order is:
1. Article body (rich content_state, then plain text fields, then any
   text/title fields found in the article payload)
2. Note tweet text (long posts)
3. ``legacy.full_text``

Rich article bodies use a block/entity-map document format that is rendered
to Markdown-flavoured text by ``render_content_state``.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from ..core.types import ArticleMetadata

_HEADER_PREFIXES = {
    "header-one": "# ",
    "header-two": "## ",
    "header-three": "### ",
}


def first_text(*values: Any) -> str | None:
    """Return the first non-blank string, stripped."""
    for value in values:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped:
                return stripped
    return None


def dig(value: Any, *path: str) -> Any:
    """Follow dict keys, returning None as soon as one is missing."""
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def collect_text_fields(value: Any, keys: set[str], output: list[str]) -> None:
    """Append every non-blank string stored under one of ``keys``, depth first."""
    if isinstance(value, list):
        for item in value:
            collect_text_fields(item, keys, output)
        return
    if not isinstance(value, dict):
        return
    for key, nested in value.items():
        if key in keys and isinstance(nested, str):
            stripped = nested.strip()
            if stripped:
                output.append(stripped)
            continue
        collect_text_fields(nested, keys, output)


def unique_ordered(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def render_content_state(content_state: Any) -> str | None:
    """Render a rich article document to text.

    Args:
        content_state: Mapping with ``blocks`` and ``entityMap``

    Returns:
        Blocks joined by a blank line, or None if nothing rendered
    """
    if not isinstance(content_state, dict):
        return None
    blocks = content_state.get("blocks")
    if not isinstance(blocks, list) or not blocks:
        return None

    entities = _build_entity_map(content_state.get("entityMap"))
    lines: list[str] = []
    ordered_counter = 0
    previous_type: str | None = None

    for block in blocks:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type") or "unstyled"
        if block_type != "ordered-list-item" and previous_type == "ordered-list-item":
            ordered_counter = 0

        if block_type == "atomic":
            rendered = _render_atomic_block(block, entities)
        else:
            text = _render_block_text(block, entities)
            if block_type == "ordered-list-item":
                ordered_counter += 1
                rendered = f"{ordered_counter}. {text}" if text else None
            elif block_type in _HEADER_PREFIXES:
                rendered = _HEADER_PREFIXES[block_type] + text if text else None
            elif block_type == "unordered-list-item":
                rendered = f"- {text}" if text else None
            elif block_type == "blockquote":
                rendered = f"> {text}" if text else None
            else:
                rendered = text or None

        if rendered:
            lines.append(rendered)
        previous_type = block_type

    result = "\n\n".join(lines).strip()
    return result or None


def _build_entity_map(raw: Any) -> dict[int, dict[str, Any]]:
    entries: list[tuple[Any, Any]] = []
    if isinstance(raw, list):
        entries = [(entry.get("key"), entry.get("value")) for entry in raw if isinstance(entry, dict)]
    elif isinstance(raw, dict):
        entries = list(raw.items())

    entities: dict[int, dict[str, Any]] = {}
    for key, value in entries:
        try:
            index = int(key)
        except (TypeError, ValueError):
            continue
        if isinstance(value, dict):
            entities[index] = value
    return entities


def _lookup_entity(entities: dict[int, dict[str, Any]], key: Any) -> dict[str, Any] | None:
    try:
        return entities.get(int(key))
    except (TypeError, ValueError):
        return None


def _entity_data(entity: dict[str, Any]) -> dict[str, Any]:
    data = entity.get("data")
    return data if isinstance(data, dict) else {}


def _entity_ranges(block: dict[str, Any]) -> list[dict[str, Any]]:
    ranges = block.get("entityRanges")
    if not isinstance(ranges, list):
        return []
    return [item for item in ranges if isinstance(item, dict)]


def _render_block_text(block: dict[str, Any], entities: dict[int, dict[str, Any]]) -> str:
    text = block.get("text") if isinstance(block.get("text"), str) else ""

    links = []
    for entity_range in _entity_ranges(block):
        entity = _lookup_entity(entities, entity_range.get("key"))
        if entity and entity.get("type") == "LINK" and _entity_data(entity).get("url"):
            links.append((entity_range, _entity_data(entity)["url"]))

    # Rewrite from the end so earlier offsets stay valid
    for entity_range, url in sorted(links, key=lambda item: item[0].get("offset", 0), reverse=True):
        start = int(entity_range.get("offset", 0))
        end = start + int(entity_range.get("length", 0))
        text = f"{text[:start]}[{text[start:end]}]({url}){text[end:]}"

    return text.strip()


def _render_atomic_block(block: dict[str, Any], entities: dict[int, dict[str, Any]]) -> str | None:
    ranges = _entity_ranges(block)
    if not ranges:
        return None
    entity = _lookup_entity(entities, ranges[0].get("key"))
    if not entity:
        return None

    entity_type = entity.get("type")
    data = _entity_data(entity)
    if entity_type == "MARKDOWN":
        return first_text(data.get("markdown"))
    if entity_type == "DIVIDER":
        return "---"
    if entity_type == "TWEET":
        tweet_id = data.get("tweetId")
        return f"[Embedded Tweet: https://x.com/i/status/{tweet_id}]" if tweet_id else None
    if entity_type == "LINK":
        url = data.get("url")
        return f"[Link: {url}]" if url else None
    if entity_type == "IMAGE":
        return "[Image]"
    return None


def _text_variants(node: Any) -> list[Any]:
    """Known places a body string hides inside an article or note payload."""
    return [
        dig(node, "text"),
        dig(node, "richtext", "text"),
        dig(node, "rich_text", "text"),
    ]


def _article_body_variants(node: Any) -> list[Any]:
    return [
        *_text_variants(dig(node, "body")),
        *_text_variants(dig(node, "content")),
        *_text_variants(node),
    ]


def extract_article_text(result: dict[str, Any] | None) -> str | None:
    """Resolve the body of an article post, with its title."""
    article = dig(result, "article")
    if not isinstance(article, dict):
        return None
    article_result = dig(article, "article_results", "result")
    if not isinstance(article_result, dict):
        article_result = article

    title = first_text(article_result.get("title"), article.get("title"))

    rich_body = render_content_state(dig(article, "article_results", "result", "content_state"))
    if rich_body:
        if title and not rich_body.startswith(title):
            return f"{title}\n\n{rich_body}"
        return rich_body

    body = first_text(
        article_result.get("plain_text"),
        article.get("plain_text"),
        *_article_body_variants(article_result),
        *_article_body_variants(article),
    )
    if body and title and body == title:
        body = None

    if not body:
        collected: list[str] = []
        collect_text_fields(article_result, {"text", "title"}, collected)
        collect_text_fields(article, {"text", "title"}, collected)
        remaining = [value for value in unique_ordered(collected) if value != title]
        if remaining:
            body = "\n\n".join(remaining)

    if title and body and not body.startswith(title):
        return f"{title}\n\n{body}"
    return body or title


def extract_note_tweet_text(result: dict[str, Any] | None) -> str | None:
    note = dig(result, "note_tweet", "note_tweet_results", "result")
    if not isinstance(note, dict):
        return None
    return first_text(*_text_variants(note), *_text_variants(note.get("content")))


def extract_legacy_text(result: dict[str, Any] | None) -> str | None:
    return first_text(dig(result, "legacy", "full_text"))


TEXT_EXTRACTORS: list[Callable[[dict[str, Any] | None], str | None]] = [
    extract_article_text,
    extract_note_tweet_text,
    extract_legacy_text,
]


def extract_tweet_text(result: dict[str, Any] | None) -> str | None:
    """Return the display text of a tweet result, or None if it has none."""
    for extractor in TEXT_EXTRACTORS:
        text = extractor(result)
        if text:
            return text
    return None


def extract_article_metadata(result: dict[str, Any] | None) -> ArticleMetadata | None:
    article = dig(result, "article")
    if not isinstance(article, dict):
        return None
    article_result = dig(article, "article_results", "result")
    if not isinstance(article_result, dict):
        article_result = article

    title = first_text(article_result.get("title"), article.get("title"))
    if not title:
        return None
    preview_text = first_text(article_result.get("preview_text"), article.get("preview_text"))
    return ArticleMetadata(title=title, preview_text=preview_text)
