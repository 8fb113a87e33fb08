"""
Article normalization.

Turns RawFeedItems into NormalizedArticles:
- permissive date parsing and newest-first ordering
- staleness guard for abandoned feeds
- summary selection from the richest text field
- image selection from enclosure/media/embedded <img>
"""

import re
from datetime import datetime, timezone, timedelta
from typing import Optional

from dateutil import parser as date_parser

from .models import NormalizedArticle, RawFeedItem, PLACEHOLDER_LINK, UNTITLED


SUMMARY_PLACEHOLDER = "Tap to read the full article."

# Minimum index of a sentence boundary for boundary truncation
SENTENCE_BOUNDARY_MIN = 200
ELLIPSIS = "..."

# Feed-redistribution image proxy; its pixels are tracking images
PROXY_IMAGE_HOST = "feedburner"

_TAG_RE = re.compile(r"<[^>]*>")
_CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")
_WS_RE = re.compile(r"\s+")
_NUMERIC_ENTITY_RE = re.compile(r"&#(x[0-9a-fA-F]+|\d+);")
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
_TITLE_SEPARATOR_RE = re.compile(r"^[\s\-–—:|,]+")
_SURROGATE_RE = re.compile(r"[\ud800-\udfff]")

_NAMED_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}
_NAMED_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _NAMED_ENTITIES))


def _decode_numeric(match: re.Match) -> str:
    ref = match.group(1)
    try:
        code = int(ref[1:], 16) if ref[0] in "xX" else int(ref)
        return chr(code) if code else ""
    except (ValueError, OverflowError):
        return ""


def _join_surrogates(text: str) -> str:
    """
    Merge UTF-16 surrogate pairs (emoji written as two entities) and
    replace lone surrogates with U+FFFD so the text always encodes as UTF-8.
    """
    if not _SURROGATE_RE.search(text):
        return text
    return text.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def clean_text(text: Optional[str]) -> str:
    """
    Strip tags, decode common entities and collapse whitespace.

    >>> clean_text("<p>Fish &amp; chips</p>")
    'Fish & chips'
    """
    if not text:
        return ""
    clean = _CDATA_RE.sub("", text)
    clean = _TAG_RE.sub(" ", clean)
    clean = _NAMED_ENTITY_RE.sub(lambda m: _NAMED_ENTITIES[m.group(0)], clean)
    clean = _join_surrogates(_NUMERIC_ENTITY_RE.sub(_decode_numeric, clean))
    return _WS_RE.sub(" ", clean).strip()


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse any reasonable date string; naive results are taken as UTC."""
    if not value or not value.strip():
        return None
    try:
        dt = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _sort_key(item: RawFeedItem) -> float:
    parsed = parse_date(item.pub_date)
    return parsed.timestamp() if parsed else float("-inf")


def sort_by_date(items: list[RawFeedItem]) -> list[RawFeedItem]:
    """Newest first; undated items last, keeping their feed order."""
    return sorted(items, key=_sort_key, reverse=True)


def is_stale(
    items: list[RawFeedItem],
    max_age: timedelta,
    now: Optional[datetime] = None,
    window: int = 5,
) -> bool:
    """
    Check whether a (sorted) feed looks abandoned.

    Looks at the first `window` items and compares the newest known date
    against `max_age`. A feed with no parseable dates is not stale.
    """
    now = now or datetime.now(timezone.utc)
    dates = [parse_date(item.pub_date) for item in items[:window]]
    known = [d for d in dates if d is not None]
    if not known:
        return False
    return now - max(known) > max_age


def truncate_summary(text: str, max_chars: int = 450) -> str:
    """
    Bound a summary, preferring to cut at a sentence end.

    Cuts after the last '.', '?' or '!' within the first max_chars if that
    boundary lies past index 200, else hard-truncates with an ellipsis.
    """
    if len(text) <= max_chars:
        return text
    truncated = text[:max_chars]
    boundary = max(truncated.rfind("."), truncated.rfind("?"), truncated.rfind("!"))
    if boundary > SENTENCE_BOUNDARY_MIN:
        return truncated[:boundary + 1]
    return truncated[:max_chars - len(ELLIPSIS)] + ELLIPSIS


def extract_summary(item: RawFeedItem, max_chars: int = 450) -> str:
    """Pick the longest cleaned text field and tidy it up."""
    best = ""
    for raw in item.summary_candidates():
        cleaned = clean_text(raw)
        if len(cleaned) > len(best):
            best = cleaned

    title = clean_text(item.title)
    if best and title and best.startswith(title):
        best = _TITLE_SEPARATOR_RE.sub("", best[len(title):]).strip()

    if not best:
        return SUMMARY_PLACEHOLDER

    return truncate_summary(best, max_chars)


def _first_embedded_image(item: RawFeedItem) -> Optional[str]:
    for field_value in item.html_fields():
        if not field_value:
            continue
        match = _IMG_SRC_RE.search(field_value)
        if match and PROXY_IMAGE_HOST not in match.group(1):
            return match.group(1).strip()
    return None


def extract_image(item: RawFeedItem) -> Optional[str]:
    """First image found, in priority order; None defers to enrichment."""
    for url in (
        item.enclosure_url,
        item.media_content_url,
        item.media_thumbnail_url,
        item.media_group_url,
        *item.extra_image_urls,
    ):
        if url and url.strip():
            return url.strip()
    return _first_embedded_image(item)


def clean_link(link: Optional[str]) -> str:
    """Absolute http(s) URL or the '#' placeholder."""
    cleaned = _CDATA_RE.sub("", link or "")
    cleaned = _TAG_RE.sub("", cleaned).strip()
    if not re.match(r"^https?://\S+$", cleaned, re.IGNORECASE):
        return PLACEHOLDER_LINK
    return cleaned


def normalize_item(item: RawFeedItem, summary_max_chars: int = 450) -> NormalizedArticle:
    """Convert one raw item into a NormalizedArticle."""
    return NormalizedArticle(
        title=clean_text(item.title) or UNTITLED,
        link=clean_link(item.link),
        summary=extract_summary(item, summary_max_chars),
        published_at=parse_date(item.pub_date),
        image=extract_image(item),
    )


def select_articles(
    items: list[RawFeedItem],
    limit: int = 5,
    summary_max_chars: int = 450,
) -> list[NormalizedArticle]:
    """Normalize the newest `limit` items of an already sorted list."""
    return [normalize_item(item, summary_max_chars) for item in items[:limit]]
