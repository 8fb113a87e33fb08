"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Nothing is required, so the dashboard starts with an empty environment.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache
    cache_ttl_seconds: float = Field(180.0, description="Freshness window for resolved sources (seconds)")

    # Timeouts
    feed_timeout: float = Field(10.0, description="Timeout for feed fetches (seconds)")
    link_resolve_timeout: float = Field(8.0, description="Timeout for following aggregator redirects (seconds)")
    enrich_timeout: float = Field(5.0, description="Timeout per image enrichment page fetch (seconds)")

    # Retry
    max_retries: int = Field(1, description="Whole-source retries after every candidate URL failed")
    retry_backoff_seconds: float = Field(2.0, description="Fixed wait before a whole-source retry")

    # Normalization
    stale_after_days: int = Field(7, description="Reject a feed whose newest items are older than this")
    max_articles: int = Field(5, description="Articles kept per source")
    max_raw_items: int = Field(10, description="Item cap for the lenient regex parser")
    summary_max_chars: int = Field(450, description="Maximum summary length")
    page_scan_chars: int = Field(60000, description="Prefix of fetched pages scanned for preview images")

    # Enrichment
    enable_anti_bot_fetcher: bool = Field(True, description="Try a Cloudflare-aware session before plain fetches")
    enable_screenshot_fallback: bool = Field(True, description="Use a screenshot thumbnail as last image fallback")
    screenshot_service_url: str = Field(
        "https://image.thum.io/get/width/600/crop/400/noanimate/",
        description="Screenshot service prefix; the article URL is appended",
    )

    # Fetching
    user_agent: str = Field(DEFAULT_USER_AGENT, description="User agent for feed fetches")
    max_concurrent_sources: int = Field(20, description="Max sources resolved at the same time")

    # Server
    port: int = Field(3456, description="HTTP server port")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Output logs as JSON")

    @field_validator("max_retries", "max_articles", "max_raw_items")
    @classmethod
    def non_negative(cls, v: int) -> int:
        """Reject negative counts."""
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("summary_max_chars")
    @classmethod
    def summary_room_for_ellipsis(cls, v: int) -> int:
        """The hard-truncation path needs room for the ellipsis."""
        if v < 4:
            raise ValueError("summary_max_chars must be at least 4")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Clear cache to allow re-reading settings (useful for tests)
def clear_settings_cache():
    """Clear the settings cache."""
    get_settings.cache_clear()
