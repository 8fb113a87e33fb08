"""
Per-source time-to-live cache for resolved sources.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .logging_conf import get_logger
from .models import ResolvedSource

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    value: ResolvedSource
    stored_at: float


class FeedCache:
    """
    Freshness-window cache keyed by source id.

    One lock guards all operations, so concurrent resolutions can read and
    write safely. There is no size eviction: one entry per configured source.
    """

    def __init__(self, ttl_seconds: float = 180.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, source_id: str) -> Optional[ResolvedSource]:
        """Return the cached value if still fresh, else None."""
        with self._lock:
            entry = self._entries.get(source_id)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[source_id]
                return None
            return entry.value

    def put(self, source_id: str, value: ResolvedSource) -> None:
        """Store a value, replacing any previous entry."""
        with self._lock:
            self._entries[source_id] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, source_id: str) -> None:
        with self._lock:
            self._entries.pop(source_id, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("cache_cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, source_id: str) -> bool:
        return self.get(source_id) is not None
