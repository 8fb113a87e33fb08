"""
Shared HTTP fetch helper.

Every network call in the pipeline goes through fetch_page so timeouts,
redirect handling and test transports are configured in one place.
"""

from typing import Optional

import httpx

from .config import get_settings


FEED_ACCEPT = "application/rss+xml, application/xml, text/xml, */*"
HTML_ACCEPT = "text/html,application/xhtml+xml"


def feed_headers(user_agent: Optional[str] = None) -> dict[str, str]:
    """Request headers for feed endpoints."""
    return {
        "User-Agent": user_agent or get_settings().user_agent,
        "Accept": FEED_ACCEPT,
    }


def html_headers(user_agent: Optional[str] = None) -> dict[str, str]:
    """Request headers for article pages."""
    return {
        "User-Agent": user_agent or get_settings().user_agent,
        "Accept": HTML_ACCEPT,
    }


async def fetch_page(
    url: str,
    *,
    timeout: float,
    headers: Optional[dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    raise_for_status: bool = True,
) -> httpx.Response:
    """
    GET a URL following redirects.

    Args:
        url: Address to fetch
        timeout: Per-request timeout in seconds
        headers: Request headers
        transport: Optional httpx transport (tests use httpx.MockTransport)
        raise_for_status: Raise httpx.HTTPStatusError on non-2xx responses

    Returns:
        The final response; response.url is the post-redirect URL

    Raises:
        httpx.HTTPError: on timeout, connection failure or (optionally) bad status
    """
    async with httpx.AsyncClient(
        timeout=timeout,
        headers=headers,
        follow_redirects=True,
        transport=transport,
    ) as client:
        response = await client.get(url)

    if raise_for_status:
        response.raise_for_status()

    return response
