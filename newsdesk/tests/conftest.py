"""
Shared fixtures for the newsdesk tests.
"""

from datetime import datetime, timezone, timedelta

import pytest

from newsdesk.config import Settings
from newsdesk.models import RawFeedItem, Source


@pytest.fixture
def settings() -> Settings:
    """Settings with no backoff and no screenshot fallback."""
    return Settings(
        _env_file=None,
        retry_backoff_seconds=0,
        enable_screenshot_fallback=False,
    )


@pytest.fixture
def source() -> Source:
    return Source(
        id="example",
        name="Example News",
        color="#123456",
        icon="📰",
        feeds=(
            "https://feeds.example.com/primary.xml",
            "https://feeds.example.com/mirror.xml",
        ),
    )


def hours_ago(hours: float) -> str:
    """ISO timestamp `hours` in the past."""
    return (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()


def make_item(title: str, hours: float = 1.0, **kwargs) -> RawFeedItem:
    """Create a raw item published `hours` ago."""
    kwargs.setdefault("link", f"https://example.com/{title.lower().replace(' ', '-')}")
    kwargs.setdefault("description", f"{title} description text.")
    return RawFeedItem(title=title, pub_date=hours_ago(hours), **kwargs)
