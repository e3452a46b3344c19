"""Handler layer for HTTP concerns.

This layer contains the ASGI page cache middleware and the
administrative endpoint handlers. Handlers depend on services, not
directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .cache_handler import CacheHandler
from .page_cache_middleware import CapturingResponder, PageCacheMiddleware

__all__ = [
    "CacheHandler",
    "CapturingResponder",
    "PageCacheMiddleware",
]
