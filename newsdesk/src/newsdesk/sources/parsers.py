"""
Feed parsing strategies and the chain that drives them.

Strategies are tried in order for one feed URL until one yields items:
1. ExtendedXMLStrategy  - XML parse capturing content:encoded and media:* fields
2. FeedparserStrategy   - feedparser, core fields only (odd dialects/namespaces)
3. LenientRegexStrategy - raw text, tolerant <item> pattern matching

Each strategy maps its output to RawFeedItem at the boundary.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

import feedparser
import httpx
from bs4 import BeautifulSoup, Tag

from ..config import Settings, get_settings
from ..fetching import fetch_page, feed_headers
from ..logging_conf import get_logger
from ..models import RawFeedItem

logger = get_logger(__name__)


class FeedStrategy(ABC):
    """
    One way of turning a feed URL into raw items.

    Returns None (or an empty list) for "no items"; may raise on network or
    parse errors, which the chain treats the same way.
    """

    name: str = "base"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    async def _fetch(self, url: str) -> httpx.Response:
        return await fetch_page(
            url,
            timeout=self.settings.feed_timeout,
            headers=feed_headers(self.settings.user_agent),
            transport=self.transport,
        )

    @abstractmethod
    async def __call__(self, url: str) -> Optional[list[RawFeedItem]]:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ==============================================================
# Strategy 1: structured XML with extended fields
# ==============================================================

def _qualified_name(tag: Tag) -> str:
    return f"{tag.prefix}:{tag.name}" if tag.prefix else tag.name


def _children(element: Tag, name: str) -> list[Tag]:
    """Direct children matching a qualified name like 'media:content'."""
    return [
        child for child in element.children
        if isinstance(child, Tag) and _qualified_name(child) == name
    ]


def _child_text(element: Tag, *names: str) -> Optional[str]:
    for name in names:
        for child in _children(element, name):
            text = child.get_text()
            if text and text.strip():
                return text.strip()
    return None


def _child_attr(element: Tag, name: str, attr: str) -> Optional[str]:
    for child in _children(element, name):
        value = child.get(attr)
        if value:
            return value.strip()
    return None


def _atom_link(entry: Tag, rel: str) -> Optional[str]:
    for link in _children(entry, "link"):
        href = link.get("href")
        if href and link.get("rel", "alternate") == rel:
            return href.strip()
    return None


class ExtendedXMLStrategy(FeedStrategy):
    """RSS <item> / Atom <entry> parse that also captures content and media fields."""

    name = "extended_xml"

    async def __call__(self, url: str) -> Optional[list[RawFeedItem]]:
        response = await self._fetch(url)
        return self.parse(response.content)

    def parse(self, markup: bytes | str) -> Optional[list[RawFeedItem]]:
        soup = BeautifulSoup(markup, "xml")
        elements = soup.find_all(["item", "entry"])
        items = [self._map(element) for element in elements]
        return items or None

    def _map(self, element: Tag) -> RawFeedItem:
        link = _child_text(element, "link") or _atom_link(element, "alternate") or ""

        media_group_url = None
        for group in _children(element, "media:group"):
            media_group_url = _child_attr(group, "media:content", "url")
            if media_group_url:
                break

        return RawFeedItem(
            title=_child_text(element, "title") or "",
            link=link,
            content_encoded=_child_text(element, "content:encoded"),
            content=_child_text(element, "content"),
            summary=_child_text(element, "summary"),
            description=_child_text(element, "description"),
            dc_description=_child_text(element, "dc:description"),
            pub_date=_child_text(element, "pubDate", "published", "updated", "dc:date"),
            enclosure_url=(
                _child_attr(element, "enclosure", "url")
                or _atom_link(element, "enclosure")
            ),
            media_content_url=_child_attr(element, "media:content", "url"),
            media_thumbnail_url=_child_attr(element, "media:thumbnail", "url"),
            media_group_url=media_group_url,
            strategy=self.name,
        )


# ==============================================================
# Strategy 2: feedparser, core fields only
# ==============================================================

class FeedparserStrategy(FeedStrategy):
    """feedparser-based parse without any custom field extraction."""

    name = "feedparser"

    async def __call__(self, url: str) -> Optional[list[RawFeedItem]]:
        response = await self._fetch(url)
        return self.parse(response.content)

    def parse(self, markup: bytes | str) -> Optional[list[RawFeedItem]]:
        feed = feedparser.parse(markup)

        if feed.bozo and feed.bozo_exception:
            logger.debug("feedparser_bozo", error=str(feed.bozo_exception))

        items = [self._map(entry) for entry in feed.entries]
        return items or None

    def _map(self, entry: dict) -> RawFeedItem:
        content = None
        if entry.get("content"):
            content = entry["content"][0].get("value")

        enclosure_url = None
        for enclosure in entry.get("enclosures", []):
            if enclosure.get("href"):
                enclosure_url = enclosure["href"]
                break

        return RawFeedItem(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            content=content,
            summary=entry.get("summary"),
            pub_date=entry.get("published") or entry.get("updated"),
            enclosure_url=enclosure_url,
            strategy=self.name,
        )


# ==============================================================
# Strategy 3: lenient regex extraction over raw markup
# ==============================================================

def _field_pattern(tag: str) -> re.Pattern:
    # Accept CDATA-wrapped or bare text
    return re.compile(
        rf"<{tag}[^>]*>(?:<!\[CDATA\[)?([\s\S]*?)(?:\]\]>)?</{tag}>",
        re.IGNORECASE,
    )


_ITEM_RE = re.compile(r"<item[\s>]([\s\S]*?)</item>", re.IGNORECASE)
_TITLE_RE = _field_pattern("title")
_LINK_RE = _field_pattern("link")
_DESCRIPTION_RE = _field_pattern("description")
_PUBDATE_RE = _field_pattern("pubDate")
_CONTENT_ENCODED_RE = _field_pattern("content:encoded")
_ENCLOSURE_RE = re.compile(r"""<enclosure[^>]+url=["']([^"']+)["']""", re.IGNORECASE)
_MEDIA_CONTENT_RE = re.compile(r"""<media:content[^>]+url=["']([^"']+)["']""", re.IGNORECASE)
_MEDIA_THUMBNAIL_RE = re.compile(r"""<media:thumbnail[^>]+url=["']([^"']+)["']""", re.IGNORECASE)
_IMG_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)


def _group(match: Optional[re.Match]) -> Optional[str]:
    return match.group(1) if match else None


class LenientRegexStrategy(FeedStrategy):
    """Pattern-match <item> blocks out of markup no XML parser accepts."""

    name = "lenient_regex"

    async def __call__(self, url: str) -> Optional[list[RawFeedItem]]:
        response = await self._fetch(url)
        return self.parse(response.text)

    def parse(self, text: str) -> Optional[list[RawFeedItem]]:
        items = []
        for match in _ITEM_RE.finditer(text):
            if len(items) >= self.settings.max_raw_items:
                break
            item = self._map(match.group(1))
            if item:
                items.append(item)
        return items or None

    def _map(self, block: str) -> Optional[RawFeedItem]:
        title = _group(_TITLE_RE.search(block))
        if title is None:
            return None

        description = _group(_DESCRIPTION_RE.search(block))
        pub_date = _group(_PUBDATE_RE.search(block))

        extra_images = [
            url for url in (
                _group(_MEDIA_CONTENT_RE.search(block)),
                _group(_MEDIA_THUMBNAIL_RE.search(block)),
                _group(_IMG_RE.search(description or "")),
            )
            if url
        ]

        return RawFeedItem(
            title=title,
            link=(_group(_LINK_RE.search(block)) or "").strip(),
            description=description or "",
            content_encoded=_group(_CONTENT_ENCODED_RE.search(block)),
            pub_date=pub_date.strip() if pub_date else None,
            enclosure_url=_group(_ENCLOSURE_RE.search(block)),
            extra_image_urls=extra_images,
            strategy=self.name,
        )


# ==============================================================
# Chain driver
# ==============================================================

def default_strategies(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[FeedStrategy]:
    """The standard strategy order."""
    return [
        ExtendedXMLStrategy(settings, transport),
        FeedparserStrategy(settings, transport),
        LenientRegexStrategy(settings, transport),
    ]


class ParserChain:
    """
    Runs strategies in order against one feed URL.

    The first strategy returning at least one item wins. Errors are logged
    and treated as "no items".
    """

    def __init__(self, strategies: Optional[list] = None):
        self.strategies = strategies if strategies is not None else default_strategies()

    async def parse(self, url: str) -> Optional[list[RawFeedItem]]:
        for strategy in self.strategies:
            name = getattr(strategy, "name", repr(strategy))
            try:
                items = await strategy(url)
            except Exception as e:
                logger.debug("feed_strategy_failed", url=url, strategy=name, error=str(e))
                continue

            if items:
                logger.debug("feed_strategy_succeeded", url=url, strategy=name, items=len(items))
                return list(items)

        logger.debug("feed_no_items", url=url)
        return None
