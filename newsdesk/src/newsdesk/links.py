"""
Aggregator link resolution.

Search-proxy feeds (Google News) link to redirect URLs. Following the
redirect recovers the publisher URL and, on the way, often a thumbnail.
"""

from typing import Optional
from urllib.parse import urlparse

import httpx

from .config import Settings, get_settings
from .fetching import fetch_page, html_headers
from .logging_conf import get_logger
from .models import NormalizedArticle
from .scrape import (
    find_aggregator_thumbnail,
    find_og_image,
    find_publisher_link,
    is_image_url,
)

logger = get_logger(__name__)

AGGREGATOR_REDIRECT_HOST = "news.google.com"
AGGREGATOR_DOMAIN = "google.com"
AGGREGATOR_IMAGE_HOST = "googleusercontent.com"


def is_aggregator_link(url: Optional[str]) -> bool:
    """True for aggregator redirect/search-proxy links."""
    return bool(url) and AGGREGATOR_REDIRECT_HOST in url


def is_aggregator_hosted(url: Optional[str]) -> bool:
    """True for any URL on the aggregator or its image host."""
    return bool(url) and (AGGREGATOR_DOMAIN in url or AGGREGATOR_IMAGE_HOST in url)


class LinkResolver:
    """
    Follows aggregator redirects to the real article.

    Resolution is best effort: on any network error the article keeps its
    original link and image.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport

    async def resolve(self, article: NormalizedArticle) -> NormalizedArticle:
        """
        Resolve an article's aggregator link in place.

        Non-aggregator links are returned untouched without a fetch.
        """
        if not is_aggregator_link(article.link):
            return article

        original_link = article.link

        try:
            response = await fetch_page(
                article.link,
                timeout=self.settings.link_resolve_timeout,
                headers=html_headers(self.settings.user_agent),
                transport=self.transport,
                raise_for_status=False,
            )
        except httpx.HTTPError as e:
            logger.debug("link_resolve_failed", url=original_link, error=str(e))
            return article

        final_url = str(response.url)
        final_host = urlparse(final_url).netloc.lower()

        if AGGREGATOR_IMAGE_HOST in final_host:
            # Landed on the image host: use it as a thumbnail, keep the link
            if not article.image:
                article.image = final_url
            return article

        if AGGREGATOR_DOMAIN not in final_host and not is_image_url(final_url):
            article.link = final_url
            if not article.image:
                article.image = find_og_image(response.text[:self.settings.page_scan_chars])
            logger.debug("link_resolved", original=original_link, resolved=final_url)
            return article

        # Still on an aggregator consent/interstitial page
        html = response.text
        publisher_link = find_publisher_link(html)
        if publisher_link:
            article.link = publisher_link
        if not article.image:
            article.image = find_aggregator_thumbnail(html)

        return article
