"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state when the app is built
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from page_cache.handlers import CacheHandler
from page_cache.services import PageCacheService

logger = logging.getLogger(__name__)


def get_handler(request: Request) -> CacheHandler:
    """Dependency injection for CacheHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The CacheHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "cache_handler", None)
    if handler is None:
        raise RuntimeError("CacheHandler not initialized. Check create_app setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Reports the cache configuration on startup.

    Args:
        app: The FastAPI application instance

    Yields:
        None
    """
    service: PageCacheService | None = getattr(app.state, "cache_service", None)
    if service is None:
        logger.warning("Page cache disabled")
    else:
        settings = service.settings
        logger.info("Page cache backend: %s", settings.backend)
        logger.info("Page cache lifetime: %ss, gzip: %s", settings.lifetime, settings.gzip)
        if settings.backend == "filesystem":
            logger.info("Page cache directory: %s", settings.cache_path)

    yield

    logger.info("Shutting down page cache app")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[CacheHandler, Depends(get_handler)]
