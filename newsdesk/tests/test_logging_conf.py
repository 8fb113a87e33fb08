"""
Tests for the logging helpers.
"""

from newsdesk.logging_conf import MAX_URL_CHARS, shorten_urls


class TestShortenUrls:

    def test_long_urls_are_cut(self):
        long_url = "https://news.google.com/rss/articles/" + "x" * 300

        event = shorten_urls(None, "debug", {"event": "link_resolved", "original": long_url})

        assert len(event["original"]) == MAX_URL_CHARS + 3
        assert event["original"].endswith("...")

    def test_other_fields_untouched(self):
        error = "e" * 500

        event = shorten_urls(None, "debug", {"event": "x", "error": error, "url": "https://a.example"})

        assert event["error"] == error
        assert event["url"] == "https://a.example"
