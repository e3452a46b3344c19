import logging
import re
import time
from dataclasses import replace
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from page_cache.api.dependencies import HandlerDep, lifespan
from page_cache.config import ConfigError, Settings, load_settings
from page_cache.dto import CacheStatsResponse, ClearCacheResponse, HealthCheckResponse
from page_cache.handlers import CacheHandler, PageCacheMiddleware
from page_cache.protocols import CacheStore
from page_cache.services import PageCacheService

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/_cache"
# Matched against normalized URIs: scheme://host/path?query
ADMIN_EXCLUDE = rf"^[a-z]+://[^/]*{re.escape(ADMIN_PREFIX)}(/|\?)"


def build_service(
    settings: Settings | None = None,
    config_path: str | Path | None = None,
    store: CacheStore | None = None,
) -> PageCacheService | None:
    """Build the cache service, or None when the configuration is unusable.

    The administrative routes are always added to the exclusion patterns.
    """
    try:
        settings = settings or load_settings(config_path)
        settings = replace(settings, exclude=(*settings.exclude, ADMIN_EXCLUDE))
        return PageCacheService.create(settings, store=store)
    except (ConfigError, OSError) as e:
        logger.error("Page cache disabled, configuration failed: %s", e)
        return None


def create_app(
    settings: Settings | None = None,
    config_path: str | Path | None = None,
    store: CacheStore | None = None,
) -> FastAPI:
    """Create the demo application with the page cache in front of it.

    Args:
        settings: Cache settings. If None, loaded from ``config_path`` and the environment.
        config_path: Optional YAML configuration file.
        store: Storage backend override, mainly for tests.

    Returns:
        The FastAPI application
    """
    service = build_service(settings, config_path, store)

    app = FastAPI(
        title="Page Cache",
        description="Full-page response cache in front of a dynamic application",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.cache_service = service
    app.state.cache_handler = CacheHandler(cache_service=service)
    if service is not None:
        app.add_middleware(PageCacheMiddleware, service=service)  # type: ignore[arg-type]

    @app.get("/", response_class=HTMLResponse)
    async def root() -> str:
        """Demo page rendered on every cache miss."""
        return (
            "<!doctype html><html><head><title>Page Cache</title></head>"
            f"<body><h1>Page Cache</h1><p>Rendered at {time.time():.6f}</p></body></html>"
        )

    @app.get("/pages/{name}", response_class=HTMLResponse)
    async def page(name: str) -> str:
        """Demo page whose content depends on the path."""
        return f"<html><body><h1>{name}</h1><p>Rendered at {time.time():.6f}</p></body></html>"

    @app.get(f"{ADMIN_PREFIX}/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep) -> HealthCheckResponse:
        """Health check endpoint."""
        return await handler.health_check()

    @app.get(f"{ADMIN_PREFIX}/stats", response_model=CacheStatsResponse)
    async def stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get cache statistics."""
        return await handler.get_stats()

    @app.post(f"{ADMIN_PREFIX}/stats/reset", response_model=dict[str, Any])
    async def reset_stats(handler: HandlerDep) -> dict[str, Any]:
        """Reset hit/miss counters."""
        return await handler.reset_stats()

    @app.delete(ADMIN_PREFIX, response_model=ClearCacheResponse)
    async def clear_cache(handler: HandlerDep) -> ClearCacheResponse:
        """Clear all entries from the cache."""
        return await handler.clear_cache()

    return app


if __name__ == "__main__":
    import uvicorn

    from page_cache.config import get_settings

    settings = get_settings()
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "page_cache.api.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
