"""Page Cache - transparent full-page response caching for ASGI apps.

This package provides a layered architecture for page caching:

Layers:
    - protocols: Interface contracts (CacheStore)
    - repositories: Storage backends (filesystem, memory)
    - services: Business logic (normalizer, gatekeeper, lifecycle)
    - handlers: HTTP concerns (ASGI middleware, admin handlers)
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from fastapi import FastAPI
    from page_cache import PageCacheMiddleware, load_settings

    app = FastAPI()
    app.add_middleware(PageCacheMiddleware, settings=load_settings("page_cache.yaml"))
    ```

For the demo HTTP app:
    ```python
    from page_cache.api.app import create_app
    ```
"""

from page_cache.config import ConfigError, Settings, get_settings, load_settings
from page_cache.entities import CacheEntry, CacheMetadata, RequestContext
from page_cache.handlers import CacheHandler, PageCacheMiddleware
from page_cache.protocols import CacheStore
from page_cache.repositories import FilesystemCacheStore, MemoryCacheStore, create_store
from page_cache.services import Gatekeeper, PageCacheService, RequestNormalizer

__all__ = [
    # Configuration
    "ConfigError",
    "Settings",
    "get_settings",
    "load_settings",
    # Protocols (interfaces)
    "CacheStore",
    # Services (business logic)
    "Gatekeeper",
    "PageCacheService",
    "RequestNormalizer",
    # Handlers (HTTP)
    "CacheHandler",
    "PageCacheMiddleware",
    # Repositories (data access)
    "FilesystemCacheStore",
    "MemoryCacheStore",
    "create_store",
    # Entities (domain models)
    "CacheEntry",
    "CacheMetadata",
    "RequestContext",
]
