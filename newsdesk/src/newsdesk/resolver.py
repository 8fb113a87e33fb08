"""
Resolution of a single source.

CheckCache -> candidate URLs in order -> parser chain -> staleness guard ->
normalize -> link resolution + image enrichment -> cache.

If every candidate URL comes back empty the whole pass is retried once
after a fixed backoff. An empty result after that is still a success.
"""

import asyncio
from datetime import datetime, timezone, timedelta
from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from .cache import FeedCache
from .config import Settings, get_settings
from .enrichment import ImageEnricher
from .links import LinkResolver
from .logging_conf import get_logger
from .models import NormalizedArticle, ResolvedSource, Source
from .normalizer import is_stale, select_articles, sort_by_date
from .sources.parsers import ParserChain

logger = get_logger(__name__)


def _is_empty(articles: list[NormalizedArticle]) -> bool:
    return not articles


def _accept_last_result(retry_state: RetryCallState) -> list[NormalizedArticle]:
    return retry_state.outcome.result()


def _log_retry(retry_state: RetryCallState) -> None:
    source = retry_state.args[0] if retry_state.args else None
    logger.info(
        "source_retrying",
        source=getattr(source, "id", None),
        attempt=retry_state.attempt_number,
    )


class SourceResolver:
    """
    Drives one source through the pipeline.

    Collaborators are injectable so tests can run without the network.
    """

    def __init__(
        self,
        cache: Optional[FeedCache] = None,
        parser_chain: Optional[ParserChain] = None,
        link_resolver: Optional[LinkResolver] = None,
        image_enricher: Optional[ImageEnricher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else FeedCache(self.settings.cache_ttl_seconds)
        self.parser_chain = parser_chain or ParserChain()
        self.link_resolver = link_resolver or LinkResolver(self.settings)
        self.image_enricher = image_enricher or ImageEnricher(settings=self.settings)

    async def resolve(self, source: Source, force_refresh: bool = False) -> ResolvedSource:
        """
        Resolve a source, serving from cache when fresh.

        Args:
            source: Registry source to resolve
            force_refresh: Skip the cache read (the result is still cached)

        Returns:
            ResolvedSource, possibly with no articles
        """
        if not force_refresh:
            cached = self.cache.get(source.id)
            if cached is not None:
                logger.debug("source_cache_hit", source=source.id)
                return cached

        retrying = AsyncRetrying(
            stop=stop_after_attempt(1 + self.settings.max_retries),
            wait=wait_fixed(self.settings.retry_backoff_seconds),
            retry=retry_if_result(_is_empty),
            retry_error_callback=_accept_last_result,
            before_sleep=_log_retry,
        )
        articles = await retrying(self._try_candidates, source)

        result = ResolvedSource.from_source(
            source,
            articles=articles,
            resolved_at=datetime.now(timezone.utc),
        )
        self.cache.put(source.id, result)

        logger.info("source_resolved", source=source.id, articles=len(articles))
        return result

    async def _try_candidates(self, source: Source) -> list[NormalizedArticle]:
        """One pass over the candidate URLs; first fresh non-empty feed wins."""
        max_age = timedelta(days=self.settings.stale_after_days)

        for feed_url in source.feeds:
            items = await self.parser_chain.parse(feed_url)
            if not items:
                continue

            items = sort_by_date(items)
            if is_stale(items, max_age, window=self.settings.max_articles):
                logger.info("feed_stale", source=source.id, url=feed_url)
                continue

            articles = select_articles(
                items,
                limit=self.settings.max_articles,
                summary_max_chars=self.settings.summary_max_chars,
            )
            await self._enrich_all(articles)

            if articles:
                logger.debug("feed_selected", source=source.id, url=feed_url, items=len(items))
                return articles

        logger.warning("source_all_candidates_failed", source=source.id, candidates=len(source.feeds))
        return []

    async def _enrich_all(self, articles: list[NormalizedArticle]) -> None:
        """Resolve links and images for all articles concurrently."""
        results = await asyncio.gather(
            *(self._enrich_one(article) for article in articles),
            return_exceptions=True,
        )
        for article, result in zip(articles, results):
            if isinstance(result, Exception):
                logger.debug("article_enrich_failed", link=article.link, error=str(result))

    async def _enrich_one(self, article: NormalizedArticle) -> None:
        await self.link_resolver.resolve(article)
        await self.image_enricher.enrich(article)
