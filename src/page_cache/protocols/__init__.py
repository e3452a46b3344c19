"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of storage backends (filesystem, memory)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .cache_store import CONTENT_SUFFIX, DATA_SUFFIX, CacheStore

__all__ = [
    "CacheStore",
    "CONTENT_SUFFIX",
    "DATA_SUFFIX",
]
