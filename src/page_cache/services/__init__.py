"""Service layer for business logic.

This layer contains the cache decision logic. Services depend on
protocols (interfaces), not concrete backends.

Architecture:
    Middleware -> PageCacheService -> CacheStore
    (HTTP)     -> (Business)       -> (Data Access)
"""

from .cache_service import CacheLookup, PageCacheService
from .gatekeeper import Gatekeeper
from .normalizer import RequestNormalizer, build_query, parse_query, sort_params

__all__ = [
    "CacheLookup",
    "Gatekeeper",
    "PageCacheService",
    "RequestNormalizer",
    "build_query",
    "parse_query",
    "sort_params",
]
