"""
Source registry for the dashboard.

Two groups of sources:

news:   Regional and international outlets. Direct publisher feeds come first,
        Google News site: queries are the fallback candidates.
social: "Trending" tabs built from Google News search queries that proxy
        social-platform chatter.

Candidate feeds for a source are interchangeable and tried in the order given.
"""

from enum import Enum
from typing import Optional

from ..logging_conf import get_logger
from ..models import Source

logger = get_logger(__name__)


class SourceGroup(str, Enum):
    """Dashboard tab a source belongs to."""
    NEWS = "news"
    SOCIAL = "social"


class SourceRegistry:
    """
    Read-only registry of configured sources, in display order.
    """

    def __init__(self):
        """Initialize registry with default sources."""
        self._groups: dict[SourceGroup, list[Source]] = {group: [] for group in SourceGroup}
        self._by_id: dict[str, Source] = {}
        self._setup_default_sources()

    def _add_source(self, source: Source, group: SourceGroup = SourceGroup.NEWS) -> None:
        """Add a source to a group; ids must be unique."""
        if source.id in self._by_id:
            raise ValueError(f"Duplicate source id: {source.id}")
        self._groups[group].append(source)
        self._by_id[source.id] = source

    def _setup_default_sources(self) -> None:
        """Configure all default sources."""

        # ==============================================================
        # NEWS: regional outlets
        # ==============================================================

        self._add_source(Source(
            id="wam",
            name="WAM",
            color="#00843D",
            icon="🇦🇪",
            feeds=(
                "https://www.wam.ae/en/rss/all",
                "https://wam.ae/en/rss/all",
                "https://www.wam.ae/en/rss",
                "https://news.google.com/rss/search?q=site:wam.ae&hl=en",
            ),
        ))

        self._add_source(Source(
            id="aletihad",
            name="Al Etihad",
            color="#1B4F72",
            icon="📰",
            feeds=("https://news.google.com/rss/search?q=site:aletihad.ae&hl=ar",),
        ))

        self._add_source(Source(
            id="alkhaleej",
            name="Al Khaleej",
            color="#C0392B",
            icon="📜",
            feeds=("https://news.google.com/rss/search?q=site:alkhaleej.ae&hl=ar",),
        ))

        self._add_source(Source(
            id="thenational",
            name="The National News",
            color="#003B5C",
            icon="🏛️",
            feeds=(
                "https://www.thenationalnews.com/arc/outboundfeeds/rss/?outputType=xml",
                "https://www.thenationalnews.com/rss",
                "https://news.google.com/rss/search?q=site:thenationalnews.com&hl=en",
            ),
        ))

        self._add_source(Source(
            id="albayan",
            name="Al Bayan",
            color="#2E86C1",
            icon="🗞️",
            feeds=("https://news.google.com/rss/search?q=site:albayan.ae&hl=ar",),
        ))

        self._add_source(Source(
            id="alarabiya",
            name="Al Arabiya",
            color="#F47920",
            icon="🌐",
            feeds=(
                "https://news.google.com/rss/search?q=site:alarabiya.net&hl=en",
                "https://news.google.com/rss/search?q=site:alarabiya.net&hl=ar",
            ),
        ))

        self._add_source(Source(
            id="skynews-arabia",
            name="Sky News Arabia",
            color="#0072CE",
            icon="🌍",
            feeds=(
                "https://www.skynewsarabia.com/web/rss",
                "https://www.skynewsarabia.com/rss",
                "https://news.google.com/rss/search?q=site:skynewsarabia.com+breaking&hl=ar",
                "https://news.google.com/rss/search?q=site:skynewsarabia.com&hl=ar",
            ),
        ))

        self._add_source(Source(
            id="asharqalawsat",
            name="Asharq Al-Awsat",
            color="#8B0000",
            icon="📰",
            feeds=(
                "https://aawsat.com/feed",
                "https://aawsat.com/feed/rss",
                "https://english.aawsat.com/feed",
                "https://news.google.com/rss/search?q=site:aawsat.com&hl=en",
            ),
        ))

        # ==============================================================
        # NEWS: international outlets
        # ==============================================================

        self._add_source(Source(
            id="bbc",
            name="BBC News",
            color="#BB1919",
            icon="📺",
            feeds=(
                "https://feeds.bbci.co.uk/news/rss.xml",
                "https://feeds.bbci.co.uk/news/world/rss.xml",
            ),
        ))

        self._add_source(Source(
            id="cnn",
            name="CNN International",
            color="#CC0000",
            icon="🔴",
            feeds=(
                "https://news.google.com/rss/search?q=site:edition.cnn.com+OR+site:cnn.com&hl=en",
                "https://news.google.com/rss/search?q=site:cnn.com&hl=en&gl=US&ceid=US:en",
            ),
        ))

        self._add_source(Source(
            id="skynews",
            name="Sky News",
            color="#951B32",
            icon="🌤️",
            feeds=(
                "https://feeds.skynews.com/feeds/rss/home.xml",
                "https://news.sky.com/feeds/rss/home.xml",
            ),
        ))

        self._add_source(Source(
            id="reuters",
            name="Reuters",
            color="#FF8000",
            icon="⚡",
            feeds=("https://news.google.com/rss/search?q=site:reuters.com&hl=en",),
        ))

        self._add_source(Source(
            id="afp",
            name="AFP",
            color="#005BAA",
            icon="🔵",
            feeds=(
                "https://news.google.com/rss/search?q=source:AFP&hl=en",
                "https://news.google.com/rss/search?q=site:afp.com&hl=en",
            ),
        ))

        self._add_source(Source(
            id="ft",
            name="Financial Times",
            color="#FCD0B1",
            icon="💹",
            feeds=(
                "https://www.ft.com/rss/home",
                "https://www.ft.com/rss/home/uk",
            ),
        ))

        self._add_source(Source(
            id="economist",
            name="The Economist",
            color="#E3120B",
            icon="📊",
            feeds=(
                "https://www.economist.com/latest/rss.xml",
                "https://www.economist.com/rss",
                "https://news.google.com/rss/search?q=site:economist.com&hl=en",
            ),
        ))

        # ==============================================================
        # SOCIAL: trending topics via search proxies
        # ==============================================================

        self._add_source(Source(
            id="x-trending",
            name="Trending on X - UAE",
            color="#000000",
            icon="𝕏",
            platform="x",
            feeds=(
                "https://news.google.com/rss/search?q=UAE+OR+Dubai+OR+%22Abu+Dhabi%22+trending+twitter+OR+X&hl=en&gl=AE&ceid=AE:en",
                "https://news.google.com/rss/search?q=%22trending+in+UAE%22+OR+%22viral+UAE%22+twitter&hl=en",
            ),
        ), SourceGroup.SOCIAL)

        self._add_source(Source(
            id="tiktok-trending",
            name="Trending on TikTok - UAE",
            color="#00F2EA",
            icon="🎵",
            platform="tiktok",
            feeds=(
                "https://news.google.com/rss/search?q=tiktok+Dubai+OR+UAE+OR+%22Abu+Dhabi%22&hl=en&gl=AE&ceid=AE:en",
                "https://news.google.com/rss/search?q=tiktok+trending+Dubai+OR+UAE+viral&hl=en",
                "https://news.google.com/rss/search?q=tiktok+%22United+Arab+Emirates%22+OR+Dubai&hl=en",
            ),
        ), SourceGroup.SOCIAL)

        self._add_source(Source(
            id="instagram-trending",
            name="Trending on Instagram - UAE",
            color="#E1306C",
            icon="📸",
            platform="instagram",
            feeds=(
                "https://news.google.com/rss/search?q=UAE+OR+Dubai+OR+%22Abu+Dhabi%22+instagram+trending+OR+viral&hl=en&gl=AE&ceid=AE:en",
                "https://news.google.com/rss/search?q=%22instagram+UAE%22+OR+%22instagram+Dubai%22+trending&hl=en",
            ),
        ), SourceGroup.SOCIAL)

        logger.debug(
            "source_registry_initialized",
            news=len(self._groups[SourceGroup.NEWS]),
            social=len(self._groups[SourceGroup.SOCIAL]),
        )

    def get_source(self, source_id: str) -> Optional[Source]:
        """Get a source by id from any group."""
        return self._by_id.get(source_id)

    def list_sources(self, group: Optional[SourceGroup | str] = None) -> list[Source]:
        """
        List sources in display order.

        Args:
            group: Restrict to one group; None lists every group
        """
        if group is None:
            return [source for group_sources in self._groups.values() for source in group_sources]
        return list(self._groups[SourceGroup(group)])

    def group_of(self, source_id: str) -> Optional[SourceGroup]:
        """Group a source id belongs to."""
        for group, sources in self._groups.items():
            if any(source.id == source_id for source in sources):
                return group
        return None

    def get_stats(self) -> dict:
        """Get registry statistics."""
        return {
            "total_sources": len(self._by_id),
            "by_group": {group.value: len(sources) for group, sources in self._groups.items()},
            "total_feeds": sum(len(source.feeds) for source in self._by_id.values()),
        }

    def __len__(self) -> int:
        return len(self._by_id)


# Singleton instance
_registry_instance: Optional[SourceRegistry] = None


def get_source_registry() -> SourceRegistry:
    """Get or create the source registry instance."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = SourceRegistry()
    return _registry_instance
