"""
Data model for the feed resolution pipeline.

- Source: one configured outlet with its candidate feed URLs
- RawFeedItem: the single shape every parser strategy produces
- NormalizedArticle: a cleaned article ready for the dashboard
- ResolvedSource: the cached unit returned across the JSON boundary
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


PLACEHOLDER_LINK = "#"
UNTITLED = "Untitled"


@dataclass(frozen=True)
class Source:
    """
    A logical news outlet.

    Feeds are mirrors or fallback queries for the same content and are tried
    in order.
    """
    id: str
    name: str
    color: str
    icon: str
    feeds: tuple[str, ...]
    platform: Optional[str] = None

    def __post_init__(self):
        if not self.feeds:
            raise ValueError(f"Source {self.id!r} needs at least one feed URL")
        # Accept lists from callers but store an immutable tuple
        object.__setattr__(self, "feeds", tuple(self.feeds))

    def __str__(self) -> str:
        return f"{self.name} ({len(self.feeds)} feeds)"


@dataclass
class RawFeedItem:
    """
    One feed entry as produced by a parser strategy.

    Text fields hold the raw (possibly HTML) value; normalization happens
    later, so every strategy maps into this shape and nothing downstream
    cares which strategy produced it.
    """
    title: str = ""
    link: str = ""
    content_encoded: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    content_snippet: Optional[str] = None
    dc_description: Optional[str] = None
    pub_date: Optional[str] = None
    enclosure_url: Optional[str] = None
    media_content_url: Optional[str] = None
    media_thumbnail_url: Optional[str] = None
    media_group_url: Optional[str] = None
    extra_image_urls: list[str] = field(default_factory=list)
    strategy: str = ""

    def summary_candidates(self) -> list[Optional[str]]:
        """Text fields in summary priority order (richest first)."""
        return [
            self.content_encoded,
            self.content,
            self.summary,
            self.description,
            self.content_snippet,
            self.dc_description,
        ]

    def html_fields(self) -> list[Optional[str]]:
        """Fields that may embed an <img> tag, in scan order."""
        return [
            self.content,
            self.content_encoded,
            self.description,
            self.summary,
        ]


@dataclass
class NormalizedArticle:
    """A cleaned article. Summary is plain text; link is absolute or '#'."""
    title: str = UNTITLED
    link: str = PLACEHOLDER_LINK
    summary: str = ""
    published_at: Optional[datetime] = None
    image: Optional[str] = None

    @property
    def has_real_link(self) -> bool:
        return bool(self.link) and self.link != PLACEHOLDER_LINK

    def to_dict(self) -> dict:
        """Convert to the dashboard JSON shape."""
        return {
            "title": self.title,
            "link": self.link,
            "summary": self.summary,
            "pubDate": self.published_at.isoformat() if self.published_at else None,
            "image": self.image,
        }


@dataclass
class ResolvedSource:
    """
    Result of resolving one source.

    An empty article list is a successful outcome, not an error.
    """
    source_id: str
    name: str
    color: str
    icon: str
    platform: Optional[str]
    articles: list[NormalizedArticle]
    resolved_at: datetime

    @classmethod
    def from_source(
        cls,
        source: Source,
        articles: list[NormalizedArticle],
        resolved_at: datetime,
    ) -> "ResolvedSource":
        """Copy display metadata from a registry Source."""
        return cls(
            source_id=source.id,
            name=source.name,
            color=source.color,
            icon=source.icon,
            platform=source.platform,
            articles=articles,
            resolved_at=resolved_at,
        )

    @property
    def is_empty(self) -> bool:
        return not self.articles

    def to_dict(self) -> dict:
        """Convert to the dashboard JSON shape."""
        return {
            "id": self.source_id,
            "name": self.name,
            "color": self.color,
            "icon": self.icon,
            "platform": self.platform,
            "articles": [article.to_dict() for article in self.articles],
            "lastUpdated": self.resolved_at.isoformat(),
        }

    def __str__(self) -> str:
        return f"[{self.source_id}] {len(self.articles)} articles"
