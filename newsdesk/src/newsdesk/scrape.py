"""
HTML scraping helpers for preview images and publisher links.

All functions are pure: page text in, optional URL out. They never fetch.
"""

import re
from typing import Optional

from bs4 import BeautifulSoup


GENERIC_IMAGE_MARKERS = (
    "logo",
    "favicon",
    "icon",
    "default.jpg",
    "share-image",
    "placeholder",
    "brand",
)

IMAGE_FILE_RE = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)
_INLINE_IMAGE_RE = re.compile(r"^https?://\S+\.(jpg|jpeg|png|webp)", re.IGNORECASE)
_OG_IMAGE_RE = re.compile(r"^og:image$", re.IGNORECASE)
_TWITTER_IMAGE_RE = re.compile(r"^twitter:image(:src)?$", re.IGNORECASE)

# Interstitial/consent pages of the aggregator carry the publisher URL here
_PUBLISHER_LINK_PATTERNS = (
    re.compile(r"""data-n-au=["'](https?://[^"']+)["']"""),
    re.compile(
        r"""href=["'](https?://(?!(?:news|accounts|support|consent|play|lh\d)\.google)[^"']+)["']"""
    ),
)
_AGGREGATOR_THUMBNAIL_PATTERNS = (
    re.compile(r"""src=["'](https?://lh\d*\.googleusercontent\.com[^"']+)["']""", re.IGNORECASE),
    re.compile(
        r"""src=["'](https?://[^"']*(?:googleusercontent|gstatic)[^"']*\.(?:jpg|jpeg|png|webp)[^"']*)["']""",
        re.IGNORECASE,
    ),
    re.compile(r"""srcset=["']([^"'\s]+)""", re.IGNORECASE),
)
_AGGREGATOR_HOSTS = ("google.com", "googleusercontent.com")


def is_generic_image(url: Optional[str]) -> bool:
    """True for logos, icons, placeholders and SVGs (not article photos)."""
    if not url:
        return True
    lower = url.lower()
    return lower.endswith(".svg") or any(marker in lower for marker in GENERIC_IMAGE_MARKERS)


def is_image_url(url: str) -> bool:
    """True if the URL path ends in a common image extension."""
    return bool(IMAGE_FILE_RE.search(url.split("?", 1)[0]))


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _meta_content(soup: BeautifulSoup, pattern: re.Pattern) -> Optional[str]:
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: pattern})
        if tag and tag.get("content"):
            return tag["content"].strip()
    return None


def find_og_image(html: str) -> Optional[str]:
    """The og:image URL unless it is a generic/placeholder image."""
    if not html:
        return None
    image = _meta_content(_soup(html), _OG_IMAGE_RE)
    if image and not is_generic_image(image):
        return image
    return None


def find_preview_image(html: str) -> Optional[str]:
    """
    Best preview image on an article page.

    Tries og:image, then twitter:image, then the first absolute
    jpg/png/webp <img>, skipping generic images at each step.
    """
    if not html:
        return None
    soup = _soup(html)

    for pattern in (_OG_IMAGE_RE, _TWITTER_IMAGE_RE):
        image = _meta_content(soup, pattern)
        if image and not is_generic_image(image):
            return image

    for img in soup.find_all("img", src=True):
        src = img["src"].strip()
        if _INLINE_IMAGE_RE.match(src) and not is_generic_image(src):
            return src

    return None


def find_publisher_link(html: str) -> Optional[str]:
    """First non-aggregator absolute URL on an aggregator interstitial page."""
    if not html:
        return None
    for pattern in _PUBLISHER_LINK_PATTERNS:
        for match in pattern.finditer(html):
            if not any(host in match.group(1) for host in _AGGREGATOR_HOSTS):
                return match.group(1)
    return None


def find_aggregator_thumbnail(html: str) -> Optional[str]:
    """Aggregator-hosted thumbnail on an interstitial page, if any."""
    if not html:
        return None
    for pattern in _AGGREGATOR_THUMBNAIL_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None
