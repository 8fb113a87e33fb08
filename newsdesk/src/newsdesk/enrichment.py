"""
Image enrichment for articles the feed gave no picture for.

Fetches the article page through one or more PageFetchers and looks for a
social preview image. Optionally falls back to a screenshot thumbnail
service. Every failure is silent: the article just keeps image=None.
"""

import asyncio
from typing import Optional, Protocol
from urllib.parse import quote

import cloudscraper
import httpx
import requests

from .config import Settings, get_settings
from .fetching import fetch_page, html_headers
from .links import is_aggregator_hosted, is_aggregator_link
from .logging_conf import get_logger
from .models import NormalizedArticle
from .scrape import find_preview_image

logger = get_logger(__name__)

# Crawler identities are often let through where generic clients are blocked
ROTATING_USER_AGENTS = (
    "facebookexternalhit/1.1 (+http://www.facebook.com/externalhit_uatext.php)",
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)


class PageFetcher(Protocol):
    """Anything that can return the HTML of a page, or None."""

    async def fetch(self, url: str) -> Optional[str]:
        ...


class UserAgentRotationFetcher:
    """
    Fetch a page trying several request identities in turn.

    An identity that errors or gets a non-2xx answer is skipped; the first
    successful body is returned.
    """

    def __init__(
        self,
        user_agents: tuple[str, ...] = ROTATING_USER_AGENTS,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agents = user_agents
        self.settings = settings or get_settings()
        self.transport = transport

    async def fetch(self, url: str) -> Optional[str]:
        for user_agent in self.user_agents:
            try:
                response = await fetch_page(
                    url,
                    timeout=self.settings.enrich_timeout,
                    headers=html_headers(user_agent),
                    transport=self.transport,
                )
            except httpx.HTTPError as e:
                logger.debug("enrich_fetch_failed", url=url, user_agent=user_agent, error=str(e))
                continue
            return response.text[:self.settings.page_scan_chars]
        return None


class CloudscraperFetcher:
    """
    Fetch a page through a cloudscraper session.

    cloudscraper answers Cloudflare's JavaScript challenge, which lets it
    read publisher pages that block plain HTTP clients. The session is
    synchronous, so requests run in a worker thread.
    """

    def __init__(self, settings: Optional[Settings] = None, scraper=None):
        self.settings = settings or get_settings()
        self._scraper = scraper

    @property
    def scraper(self):
        if self._scraper is None:
            self._scraper = cloudscraper.create_scraper()
        return self._scraper

    def _get(self, url: str) -> Optional[str]:
        try:
            response = self.scraper.get(url, timeout=self.settings.enrich_timeout)
        except requests.RequestException as e:
            logger.debug("enrich_fetch_failed", url=url, fetcher="cloudscraper", error=str(e))
            return None
        if not 200 <= response.status_code < 300:
            logger.debug("enrich_fetch_rejected", url=url, fetcher="cloudscraper", status=response.status_code)
            return None
        return response.text[:self.settings.page_scan_chars]

    async def fetch(self, url: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, url)


class ImageEnricher:
    """Recovers a preview image for articles without one."""

    def __init__(
        self,
        fetchers: Optional[list[PageFetcher]] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        if fetchers is None:
            fetchers = [UserAgentRotationFetcher(settings=self.settings, transport=transport)]
            if self.settings.enable_anti_bot_fetcher:
                fetchers.insert(0, CloudscraperFetcher(settings=self.settings))
        self.fetchers = fetchers

    def needs_image(self, article: NormalizedArticle) -> bool:
        """Only real, non-aggregator links without an image are enriched."""
        return (
            not article.image
            and article.has_real_link
            and not is_aggregator_link(article.link)
        )

    async def find_image(self, url: str) -> Optional[str]:
        """Run the fetchers in order and scan each page for a preview image."""
        if is_aggregator_hosted(url):
            return None

        for fetcher in self.fetchers:
            try:
                html = await fetcher.fetch(url)
            except Exception as e:
                # Fetchers are pluggable; any error counts as no page
                logger.debug("enrich_fetcher_failed", url=url, fetcher=type(fetcher).__name__, error=str(e))
                continue
            if not html:
                continue
            image = find_preview_image(html[:self.settings.page_scan_chars])
            if image:
                return image

        return None

    def screenshot_url(self, url: str) -> Optional[str]:
        """Screenshot-thumbnail fallback URL, unless disabled or aggregator-hosted."""
        if not self.settings.enable_screenshot_fallback:
            return None
        if is_aggregator_hosted(url):
            return None
        return self.settings.screenshot_service_url + quote(url, safe=";,/?:@&=+$!*'()#")

    async def enrich(self, article: NormalizedArticle) -> NormalizedArticle:
        """Fill article.image in place when possible."""
        if self.needs_image(article):
            article.image = await self.find_image(article.link)

        if not article.image and article.has_real_link:
            article.image = self.screenshot_url(article.link)

        if article.image:
            logger.debug("article_image_found", link=article.link)

        return article
