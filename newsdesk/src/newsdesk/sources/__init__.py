"""
Feed sources module.

Provides the source registry and the feed parsing strategies:
- Registry of news and social-trending sources
- Parser chain (extended XML, feedparser, lenient regex)
"""

from .registry import SourceGroup, SourceRegistry, get_source_registry
from .parsers import (
    ExtendedXMLStrategy,
    FeedparserStrategy,
    FeedStrategy,
    LenientRegexStrategy,
    ParserChain,
)

__all__ = [
    "SourceGroup",
    "SourceRegistry",
    "get_source_registry",
    "FeedStrategy",
    "ExtendedXMLStrategy",
    "FeedparserStrategy",
    "LenientRegexStrategy",
    "ParserChain",
]
