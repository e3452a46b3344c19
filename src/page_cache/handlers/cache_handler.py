"""HTTP handlers for cache administration.

Handlers convert between service calls and DTOs (API contracts).
They handle HTTP concerns like status codes and error responses.
"""

from fastapi import HTTPException, status

from page_cache.dto import (
    CacheStatsResponse,
    ClearCacheResponse,
    HealthCheckResponse,
    PerformanceStats,
)
from page_cache.services import PageCacheService


class CacheHandler:
    """HTTP handlers for cache administration.

    This handler delegates to PageCacheService and handles HTTP-specific
    concerns. A handler without a service answers for a disabled cache.

    Example:
        ```python
        handler = CacheHandler(cache_service=PageCacheService.create(settings))

        @app.delete("/_cache", response_model=ClearCacheResponse)
        async def clear_cache():
            return await handler.clear_cache()
        ```
    """

    def __init__(self, cache_service: PageCacheService | None) -> None:
        """Initialize the cache handler.

        Args:
            cache_service: The page cache service, or None when caching is disabled.
        """
        self._cache = cache_service

    def _require_service(self) -> PageCacheService:
        if self._cache is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Page cache is disabled",
            )
        return self._cache

    async def clear_cache(self) -> ClearCacheResponse:
        """Handle DELETE /_cache requests.

        Returns:
            ClearCacheResponse with the clear outcome

        Raises:
            HTTPException: If caching is disabled or the backend fails
        """
        cache = self._require_service()
        try:
            success = cache.clear()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to clear cache: {e}",
            ) from e

        message = "Cache cleared successfully" if success else "Some cache entries could not be removed"
        return ClearCacheResponse(success=success, message=message)

    async def get_stats(self) -> CacheStatsResponse:
        """Handle GET /_cache/stats requests.

        Returns:
            CacheStatsResponse with cache statistics

        Raises:
            HTTPException: If caching is disabled or the backend fails
        """
        cache = self._require_service()
        try:
            stats = cache.get_stats()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

        return CacheStatsResponse(
            backend=stats.get("backend", "unknown"),
            total_entries=stats.get("total_entries", 0),
            lifetime=stats.get("lifetime", 0),
            gzip=stats.get("gzip", False),
            directory=stats.get("directory"),
            performance=PerformanceStats(**stats.get("performance", {})),
        )

    async def reset_stats(self) -> dict:
        """Handle POST /_cache/stats/reset requests."""
        self._require_service().reset_metrics()
        return {"message": "Performance metrics reset"}

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /_cache/health requests.

        Returns:
            HealthCheckResponse with the cache status
        """
        if self._cache is None:
            return HealthCheckResponse(status="unhealthy", cache_enabled=False)

        try:
            backend = self._cache.get_stats().get("backend")
        except Exception:
            return HealthCheckResponse(status="unhealthy", cache_enabled=True)

        return HealthCheckResponse(status="healthy", cache_enabled=True, backend=backend)
