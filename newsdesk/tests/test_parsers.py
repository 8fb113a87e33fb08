"""
Tests for feed parsing strategies and the parser chain.
"""

import httpx
import pytest

from newsdesk.sources.parsers import (
    ExtendedXMLStrategy,
    FeedparserStrategy,
    LenientRegexStrategy,
    ParserChain,
)
from newsdesk.models import RawFeedItem


RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:atom="http://www.w3.org/2005/Atom">
  <channel>
    <title>Example News</title>
    <link>https://example.com</link>
    <atom:link href="https://example.com/feed.xml" rel="self"/>
    <item>
      <title>Rates held steady</title>
      <link>https://example.com/rates</link>
      <description><![CDATA[<p>Short teaser.</p>]]></description>
      <content:encoded><![CDATA[<p>The full body of the rates story.</p>]]></content:encoded>
      <pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
      <media:thumbnail url="https://cdn.example.com/rates-thumb.jpg"/>
    </item>
    <item>
      <title>Gallery story</title>
      <link>https://example.com/gallery</link>
      <pubDate>Tue, 02 Jan 2024 08:30:00 GMT</pubDate>
      <media:group>
        <media:content url="https://cdn.example.com/gallery-1.jpg" medium="image"/>
        <media:content url="https://cdn.example.com/gallery-2.jpg" medium="image"/>
      </media:group>
      <enclosure url="https://cdn.example.com/gallery.mp3" type="audio/mpeg" length="1"/>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example Atom</title>
  <entry>
    <title>Atom entry</title>
    <link rel="alternate" href="https://example.com/atom-entry"/>
    <link rel="enclosure" href="https://cdn.example.com/atom.jpg"/>
    <updated>2024-01-03T10:00:00Z</updated>
    <summary>Atom summary text.</summary>
  </entry>
</feed>
"""

BROKEN_FEED = """<rss><channel>
<item><title><![CDATA[Broken & unescaped]]></title>
<link>https://example.com/broken</link>
<description><![CDATA[Body <img src="https://cdn.example.com/inline.jpg"> text]]></description>
<pubDate> Wed, 03 Jan 2024 09:00:00 GMT </pubDate>
<media:content url="https://cdn.example.com/media.jpg"/>
</item>
<item><link>https://example.com/no-title</link></item>
<item><title>Second</title><link>https://example.com/second</link></item>
</channel>
"""


class TestExtendedXMLStrategy:
    """Tests for the structured XML strategy."""

    def test_parses_rss_with_extensions(self, settings):
        """content:encoded and media:thumbnail are captured."""
        items = ExtendedXMLStrategy(settings).parse(RSS_FEED)

        assert len(items) == 2
        first = items[0]
        assert first.title == "Rates held steady"
        assert first.link == "https://example.com/rates"
        assert "full body" in first.content_encoded
        assert first.description == "<p>Short teaser.</p>"
        assert first.pub_date == "Mon, 01 Jan 2024 12:00:00 GMT"
        assert first.media_thumbnail_url == "https://cdn.example.com/rates-thumb.jpg"
        assert first.strategy == "extended_xml"

    def test_captures_media_group(self, settings):
        """The first media:content inside media:group is kept separately."""
        items = ExtendedXMLStrategy(settings).parse(RSS_FEED)

        second = items[1]
        assert second.media_group_url == "https://cdn.example.com/gallery-1.jpg"
        assert second.media_content_url is None
        assert second.enclosure_url == "https://cdn.example.com/gallery.mp3"

    def test_parses_atom(self, settings):
        items = ExtendedXMLStrategy(settings).parse(ATOM_FEED)

        assert len(items) == 1
        entry = items[0]
        assert entry.title == "Atom entry"
        assert entry.link == "https://example.com/atom-entry"
        assert entry.enclosure_url == "https://cdn.example.com/atom.jpg"
        assert entry.pub_date == "2024-01-03T10:00:00Z"
        assert entry.summary == "Atom summary text."

    def test_no_items_is_none(self, settings):
        assert ExtendedXMLStrategy(settings).parse(b"<html><body>Not a feed</body></html>") is None


class TestFeedparserStrategy:
    """Tests for the feedparser strategy."""

    def test_maps_core_fields(self, settings):
        items = FeedparserStrategy(settings).parse(RSS_FEED)

        assert len(items) == 2
        first = items[0]
        assert first.title == "Rates held steady"
        assert first.link == "https://example.com/rates"
        assert first.pub_date == "Mon, 01 Jan 2024 12:00:00 GMT"
        assert first.strategy == "feedparser"
        # Extended fields are left to the XML strategy
        assert first.media_thumbnail_url is None
        assert first.media_group_url is None

    def test_enclosure_href(self, settings):
        feed = b"""<rss version="2.0"><channel><item>
            <title>Podcast</title><link>https://example.com/pod</link>
            <enclosure url="https://cdn.example.com/pod.jpg" type="image/jpeg" length="1"/>
        </item></channel></rss>"""

        items = FeedparserStrategy(settings).parse(feed)

        assert items[0].enclosure_url == "https://cdn.example.com/pod.jpg"

    def test_garbage_is_none(self, settings):
        assert FeedparserStrategy(settings).parse(b"not xml at all") is None


class TestLenientRegexStrategy:
    """Tests for the regex fallback."""

    def test_extracts_from_malformed_markup(self, settings):
        """CDATA is unwrapped and title-less blocks are skipped."""
        items = LenientRegexStrategy(settings).parse(BROKEN_FEED)

        assert [item.title for item in items] == ["Broken & unescaped", "Second"]
        first = items[0]
        assert first.link == "https://example.com/broken"
        assert first.pub_date == "Wed, 03 Jan 2024 09:00:00 GMT"
        assert first.strategy == "lenient_regex"

    def test_collects_extra_images(self, settings):
        items = LenientRegexStrategy(settings).parse(BROKEN_FEED)

        assert items[0].extra_image_urls == [
            "https://cdn.example.com/media.jpg",
            "https://cdn.example.com/inline.jpg",
        ]
        assert items[1].extra_image_urls == []

    def test_caps_item_count(self, settings):
        """At most max_raw_items items are returned."""
        blocks = "".join(
            f"<item><title>Story {n}</title><link>https://example.com/{n}</link></item>"
            for n in range(25)
        )

        items = LenientRegexStrategy(settings).parse(f"<rss>{blocks}</rss>")

        assert len(items) == settings.max_raw_items == 10
        assert items[-1].title == "Story 9"

    def test_no_items_is_none(self, settings):
        assert LenientRegexStrategy(settings).parse("<html></html>") is None


class _FakeStrategy:
    """Async strategy stub recording calls."""

    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = []

    async def __call__(self, url):
        self.calls.append(url)
        if self.error:
            raise self.error
        return self.result


class TestParserChain:
    """Tests for strategy ordering and failure handling."""

    @pytest.mark.asyncio
    async def test_first_non_empty_wins(self):
        first = _FakeStrategy("first", result=[])
        second = _FakeStrategy("second", result=[RawFeedItem(title="hit")])
        third = _FakeStrategy("third", result=[RawFeedItem(title="unused")])

        items = await ParserChain([first, second, third]).parse("https://feed")

        assert [i.title for i in items] == ["hit"]
        assert first.calls == ["https://feed"]
        assert third.calls == []

    @pytest.mark.asyncio
    async def test_errors_fall_through(self):
        """A raising strategy counts as no items."""
        broken = _FakeStrategy("broken", error=ValueError("bad xml"))
        working = _FakeStrategy("working", result=[RawFeedItem(title="ok")])

        items = await ParserChain([broken, working]).parse("https://feed")

        assert items[0].title == "ok"

    @pytest.mark.asyncio
    async def test_none_when_all_fail(self):
        chain = ParserChain([
            _FakeStrategy("a", result=None),
            _FakeStrategy("b", error=RuntimeError("boom")),
        ])

        assert await chain.parse("https://feed") is None

    @pytest.mark.asyncio
    async def test_http_errors_are_absorbed(self, settings):
        """A 404 from the feed host exhausts every real strategy."""
        transport = httpx.MockTransport(lambda request: httpx.Response(404, text="missing"))
        chain = ParserChain([
            ExtendedXMLStrategy(settings, transport),
            FeedparserStrategy(settings, transport),
            LenientRegexStrategy(settings, transport),
        ])

        assert await chain.parse("https://feeds.example.com/gone.xml") is None

    @pytest.mark.asyncio
    async def test_fetches_over_http(self, settings):
        seen = []

        def handler(request):
            seen.append(request.headers["accept"])
            return httpx.Response(200, content=RSS_FEED)

        chain = ParserChain([ExtendedXMLStrategy(settings, httpx.MockTransport(handler))])

        items = await chain.parse("https://feeds.example.com/rss.xml")

        assert len(items) == 2
        assert "application/rss+xml" in seen[0]
