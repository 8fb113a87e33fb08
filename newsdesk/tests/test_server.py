"""
Tests for the HTTP routes.

The orchestrator is replaced with a mock so no feeds are fetched.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from newsdesk import server
from newsdesk.cache import FeedCache
from newsdesk.models import NormalizedArticle, RawFeedItem, ResolvedSource
from newsdesk.normalizer import normalize_item
from newsdesk.orchestrator import SourceNotFoundError
from newsdesk.sources.registry import SourceGroup, SourceRegistry


def _resolved(source_id="bbc"):
    return ResolvedSource(
        source_id=source_id,
        name="BBC News",
        color="#BB1919",
        icon="📺",
        platform=None,
        articles=[NormalizedArticle(title="Headline", link="https://bbc.co.uk/1", summary="Text")],
        resolved_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def orchestrator(monkeypatch):
    mock = MagicMock()
    mock.registry = SourceRegistry()
    mock.cache = FeedCache()
    mock.resolve_group = AsyncMock(return_value=[_resolved()])
    mock.resolve_one = AsyncMock(return_value=_resolved())
    monkeypatch.setattr(server, "get_orchestrator", lambda: mock)
    return mock


@pytest.fixture
def client(orchestrator):
    return TestClient(server.app)


class TestBatchRoutes:

    def test_news(self, client, orchestrator):
        response = client.get("/api/news")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"][0]["id"] == "bbc"
        assert body["data"][0]["articles"][0]["pubDate"] is None
        assert "timestamp" in body
        orchestrator.resolve_group.assert_awaited_once_with(SourceGroup.NEWS, force_refresh=False)

    def test_social_with_refresh(self, client, orchestrator):
        response = client.get("/api/social?refresh=true")

        assert response.status_code == 200
        orchestrator.resolve_group.assert_awaited_once_with(SourceGroup.SOCIAL, force_refresh=True)

    def test_failure_is_500(self, client, orchestrator):
        orchestrator.resolve_group.side_effect = RuntimeError("down")

        response = client.get("/api/news")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to fetch news"}

    def test_emoji_entities_in_feed_text_render(self, client, orchestrator):
        """Titles built from UTF-16 entity pairs still serialize as JSON."""
        article = normalize_item(RawFeedItem(
            title="Hi &#55357;&#56832; there",
            link="https://bbc.co.uk/emoji",
            description="Stray &#55357; entity",
        ))
        resolved = _resolved()
        resolved.articles = [article]
        orchestrator.resolve_group.return_value = [resolved]

        response = client.get("/api/news")

        assert response.status_code == 200
        data = response.json()["data"][0]["articles"][0]
        assert data["title"] == "Hi \U0001F600 there"
        assert data["summary"] == "Stray \ufffd entity"

    def test_responses_are_not_cacheable(self, client):
        response = client.get("/api/news")

        assert "no-store" in response.headers["cache-control"]
        assert response.headers["pragma"] == "no-cache"


class TestSingleSourceRoute:

    def test_known_source(self, client, orchestrator):
        response = client.get("/api/news/bbc?refresh=1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["name"] == "BBC News"
        orchestrator.resolve_one.assert_awaited_once_with("bbc", force_refresh=True)

    def test_unknown_source_is_404(self, client, orchestrator):
        orchestrator.resolve_one.side_effect = SourceNotFoundError("nope")

        response = client.get("/api/news/nope")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Source not found"}

    def test_unexpected_error_is_500(self, client, orchestrator):
        orchestrator.resolve_one.side_effect = RuntimeError("bug")

        response = client.get("/api/news/bbc")

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["sources"] == 18
        assert body["cached"] == 0
