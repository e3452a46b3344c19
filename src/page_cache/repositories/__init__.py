"""Repository layer for data access.

This layer hides the storage backends behind the CacheStore protocol.
The repositories are protocol-based (structural typing), not
inheritance-based. Any class implementing the required methods will
satisfy the protocol.
"""

from page_cache.config import Settings, get_settings
from page_cache.protocols import CacheStore

from .filesystem_store import FilesystemCacheStore
from .memory_store import MemoryCacheStore
from .metadata_codec import CorruptEntryError


def create_store(settings: Settings | None = None) -> CacheStore:
    """Create the backend selected by ``settings.backend``.

    Args:
        settings: Cache settings. If None, uses the environment defaults.

    Returns:
        FilesystemCacheStore or MemoryCacheStore
    """
    settings = settings or get_settings()
    if settings.backend == "memory":
        return MemoryCacheStore.create(settings)
    return FilesystemCacheStore.create(settings)


__all__ = [
    "CacheStore",
    "CorruptEntryError",
    "FilesystemCacheStore",
    "MemoryCacheStore",
    "create_store",
]
