"""Cache storage protocol.

Defines the interface for any storage backend that can persist rendered
pages. Every backend keeps two artifacts per cache key (body and
metadata) and must report a half-present entry as a miss.

Implementations:
- FilesystemCacheStore: two files per key under a directory (default)
- MemoryCacheStore: in-process map with per-item expiry
"""

from typing import Protocol, runtime_checkable

from page_cache.entities import CacheEntry

CONTENT_SUFFIX = ".content.cache"
DATA_SUFFIX = ".data.cache"


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for page cache storage backends.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        from page_cache.protocols import CacheStore

        store: CacheStore = FilesystemCacheStore.create(settings)
        store: CacheStore = MemoryCacheStore.create(settings)
        ```
    """

    def exists(self, key: str) -> bool:
        """Check whether a fresh, complete entry exists.

        Args:
            key: The cache key

        Returns:
            True if both artifacts are present and fresh
        """
        ...

    def read(self, key: str) -> CacheEntry | None:
        """Read a fresh entry.

        Stale, half-present or undecodable entries are deleted and
        reported as a miss.

        Args:
            key: The cache key

        Returns:
            The entry, or None on a miss
        """
        ...

    def write(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        """Persist both artifacts of an entry, replacing any previous one.

        Args:
            key: The cache key
            entry: Body and metadata to store
            ttl: Time-to-live in seconds

        Returns:
            True if stored, False if the backend could not write
        """
        ...

    def delete(self, key: str) -> None:
        """Delete both artifacts of an entry. Deleting a missing key is a no-op.

        Args:
            key: The cache key
        """
        ...

    def clear_all(self) -> bool:
        """Delete every entry of this backend.

        Returns:
            True on success
        """
        ...

    def count(self) -> int:
        """Count stored entries (fresh or not yet swept).

        Returns:
            Number of body artifacts currently held
        """
        ...

    def stats(self) -> dict:
        """Get backend statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...
