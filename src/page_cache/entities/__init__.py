"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services,
repositories and the middleware. They are NOT used for API contracts -
use DTOs from the dto package for that.
"""

from .cache_entry import CacheEntry, CacheMetadata
from .request_context import RequestContext

__all__ = ["CacheEntry", "CacheMetadata", "RequestContext"]
