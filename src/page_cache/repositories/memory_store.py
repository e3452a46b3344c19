"""In-process memory implementation of CacheStore.

Entries live in a bounded ``cachetools.TLRUCache``: each item carries both
artifacts of a page (the body and the encoded metadata) together with the
TTL it was written with, and the cache answers "absent" for expired items
itself, so no mtime comparison is needed. Expired items are purged on every
write and the least recently used entry is evicted when the cache is full.
All access goes through a single lock, since cachetools caches are not
thread-safe.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import NamedTuple

from cachetools import TLRUCache

from page_cache.config import Settings, get_settings
from page_cache.entities import CacheEntry

from .metadata_codec import CorruptEntryError, decode_metadata, encode_metadata

logger = logging.getLogger(__name__)


class _StoredPage(NamedTuple):
    ttl: int
    content: bytes
    data: bytes


def _expires_at(_key: str, page: _StoredPage, now: float) -> float:
    return now + page.ttl


class MemoryCacheStore:
    """Process-local store with built-in per-item TTL.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        lifetime: int,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the memory store.

        Args:
            lifetime: Default time-to-live in seconds.
            max_entries: Maximum number of pages held at once.
            clock: Monotonic time source used for expiry.
        """
        self._lifetime = lifetime
        self._max_entries = max_entries
        self._cache = TLRUCache(
            maxsize=max_entries,
            ttu=_expires_at,
            timer=clock,
        )
        self._lock = threading.Lock()

    @classmethod
    def create(cls, settings: Settings | None = None) -> "MemoryCacheStore":
        """Factory method to create MemoryCacheStore from settings.

        Args:
            settings: Cache settings. If None, uses the environment defaults.

        Returns:
            Configured MemoryCacheStore
        """
        settings = settings or get_settings()
        return cls(lifetime=settings.lifetime, max_entries=settings.max_entries)

    def exists(self, key: str) -> bool:
        """Check whether an unexpired entry is held for the key."""
        with self._lock:
            return key in self._cache

    def read(self, key: str) -> CacheEntry | None:
        """Read an entry, dropping it when its metadata is corrupt.

        Args:
            key: The cache key

        Returns:
            The entry, or None on a miss
        """
        with self._lock:
            page = self._cache.get(key)
            if page is None:
                return None
            try:
                metadata = decode_metadata(page.data)
            except CorruptEntryError as e:
                logger.warning("Corrupt cache entry %s, deleting: %s", key, e)
                self._cache.pop(key, None)
                return None
        return CacheEntry(body=page.content, metadata=metadata)

    def write(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        """Store body and metadata of an entry as one item.

        Args:
            key: The cache key
            entry: Body and metadata to store
            ttl: Time-to-live in seconds

        Returns:
            True (an in-process write cannot fail)
        """
        page = _StoredPage(ttl=ttl, content=entry.body, data=encode_metadata(entry.metadata))
        with self._lock:
            self._cache[key] = page
        return True

    def delete(self, key: str) -> None:
        """Delete an entry. Idempotent."""
        with self._lock:
            self._cache.pop(key, None)

    def clear_all(self) -> bool:
        """Flush the whole cache.

        Returns:
            True
        """
        with self._lock:
            self._cache.clear()
        return True

    def count(self) -> int:
        """Count unexpired entries."""
        with self._lock:
            self._cache.expire()
            return len(self._cache)

    def stats(self) -> dict:
        """Get backend statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "memory",
            "total_entries": self.count(),
            "max_entries": self._max_entries,
            "ttl": self._lifetime,
        }
