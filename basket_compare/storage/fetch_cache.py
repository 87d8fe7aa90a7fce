# basket_compare/storage/fetch_cache.py

"""In-memory TTL cache of fetched page bodies, keyed by exact URL."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from basket_compare.config.settings import Settings

logger = logging.getLogger("basket_compare.cache")


@dataclass
class CacheEntry:
    """A validated page body for one URL."""

    url: str
    body: str
    timestamp: float


class FetchCache:
    """Process-wide page cache with expiry-based eviction.

    Reads are lock-free.  Writers for the same URL are serialised with
    :meth:`writer`; URLs never share a lock, so a slow fetch of one
    page cannot hold up another.
    """

    def __init__(self, ttl: float | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._ttl: float = (
            ttl if ttl is not None else Settings.FETCH_CACHE_TTL
        )

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> str | None:
        """Return the cached body for *url*, or ``None`` on miss/expiry."""
        self._evict_expired(time.time())
        entry = self._entries.get(url)
        if entry is None:
            return None
        logger.debug("Cache hit for %s", url)
        return entry.body

    def store(self, url: str, body: str) -> None:
        """Store a validated body, replacing any previous entry."""
        self._entries[url] = CacheEntry(
            url=url, body=body, timestamp=time.time()
        )
        logger.info(
            "Cached %d chars for %s (ttl=%.0fs)",
            len(body),
            url,
            self._ttl,
        )

    @asynccontextmanager
    async def writer(self, url: str) -> AsyncIterator[None]:
        """Hold the writer lock for *url* for the body of the block.

        The lock exists only while some task holds or awaits it, so
        URLs whose fetch failed leave nothing behind.
        """
        lock = self._locks.get(url)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[url] = lock
        self._waiters[url] = self._waiters.get(url, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[url] -= 1
            if not self._waiters[url]:
                del self._waiters[url]
                del self._locks[url]

    def invalidate(self, url: str) -> bool:
        """Drop the entry for *url*.  Returns True if one existed."""
        removed = self._entries.pop(url, None) is not None
        if removed:
            logger.debug("Invalidated cache entry for %s", url)
        return removed

    def clear(self) -> int:
        """Purge all cached entries.

        Returns the number of entries that were removed.
        """
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count

    def _evict_expired(self, now: float) -> None:
        """Remove entries older than the TTL threshold."""
        expired = [
            url
            for url, entry in self._entries.items()
            if now - entry.timestamp >= self._ttl
        ]
        for url in expired:
            del self._entries[url]
        if expired:
            logger.debug(
                "Evicted %d expired cache entries", len(expired)
            )
