"""
Batch resolution across sources.

Each source is resolved independently; an exception in one source is logged
and that source is left out of the batch, never affecting the others.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from .cache import FeedCache
from .config import Settings, get_settings
from .logging_conf import get_logger
from .models import ResolvedSource, Source
from .resolver import SourceResolver
from .sources.registry import SourceGroup, SourceRegistry, get_source_registry

logger = get_logger(__name__)


class SourceNotFoundError(KeyError):
    """Raised for a source id that is not in the registry."""

    def __init__(self, source_id: str):
        super().__init__(source_id)
        self.source_id = source_id

    def __str__(self) -> str:
        return f"Source not found: {self.source_id}"


class Orchestrator:
    """
    Owns the cache and resolver and fans out over many sources.
    """

    def __init__(
        self,
        registry: Optional[SourceRegistry] = None,
        resolver: Optional[SourceResolver] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or get_source_registry()
        self.resolver = resolver or SourceResolver(
            cache=FeedCache(self.settings.cache_ttl_seconds),
            settings=self.settings,
        )

    @property
    def cache(self) -> FeedCache:
        return self.resolver.cache

    async def resolve_all(
        self,
        sources: list[Source],
        force_refresh: bool = False,
    ) -> list[ResolvedSource]:
        """
        Resolve sources concurrently.

        Args:
            sources: Sources to resolve
            force_refresh: Drop cached entries for these sources first

        Returns:
            Successful results, in the order of `sources`
        """
        if force_refresh:
            for source in sources:
                self.cache.invalidate(source.id)

        logger.info("resolve_all_starting", sources=len(sources), force_refresh=force_refresh)

        semaphore = asyncio.Semaphore(self.settings.max_concurrent_sources)

        async def resolve_with_semaphore(source: Source) -> ResolvedSource:
            async with semaphore:
                return await self.resolver.resolve(source, force_refresh=force_refresh)

        results = await asyncio.gather(
            *(resolve_with_semaphore(source) for source in sources),
            return_exceptions=True,
        )

        resolved: list[ResolvedSource] = []
        failed = 0
        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                failed += 1
                logger.error(
                    "source_resolution_failed",
                    source=source.id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            resolved.append(result)

        logger.info(
            "resolve_all_complete",
            sources_succeeded=len(resolved),
            sources_failed=failed,
            empty_sources=sum(1 for r in resolved if r.is_empty),
        )

        return resolved

    async def resolve_group(
        self,
        group: SourceGroup | str,
        force_refresh: bool = False,
    ) -> list[ResolvedSource]:
        """Resolve every source of one registry group."""
        return await self.resolve_all(self.registry.list_sources(group), force_refresh=force_refresh)

    async def resolve_one(self, source_id: str, force_refresh: bool = False) -> ResolvedSource:
        """
        Resolve a single source by id.

        Raises:
            SourceNotFoundError: if the id is not configured
        """
        source = self.registry.get_source(source_id)
        if source is None:
            raise SourceNotFoundError(source_id)

        if force_refresh:
            self.cache.invalidate(source_id)

        return await self.resolver.resolve(source, force_refresh=force_refresh)


def build_batch_payload(results: list[ResolvedSource]) -> dict:
    """Wrap batch results in the dashboard response envelope."""
    return {
        "success": True,
        "data": [result.to_dict() for result in results],
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Singleton instance
_orchestrator_instance: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Get or create the process-wide orchestrator."""
    global _orchestrator_instance
    if _orchestrator_instance is None:
        _orchestrator_instance = Orchestrator()
    return _orchestrator_instance


def reset_orchestrator() -> None:
    """Drop the process-wide orchestrator (and with it the cache)."""
    global _orchestrator_instance
    _orchestrator_instance = None
