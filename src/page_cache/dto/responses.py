"""Response DTOs for the administrative endpoints."""

from pydantic import BaseModel, Field


class ClearCacheResponse(BaseModel):
    """Response DTO for a full cache clear."""

    success: bool = Field(..., description="Whether every entry was removed")
    message: str = Field(..., description="Human-readable status message")


class PerformanceStats(BaseModel):
    """Hit/miss counters since start-up or the last reset."""

    total_queries: int = Field(0, ge=0)
    cache_hits: int = Field(0, ge=0)
    cache_misses: int = Field(0, ge=0)
    hit_rate: float = Field(0.0, ge=0.0, le=1.0)
    stores: int = Field(0, ge=0)
    store_failures: int = Field(0, ge=0)
    purges: int = Field(0, ge=0)


class CacheStatsResponse(BaseModel):
    """Response DTO for cache statistics."""

    backend: str = Field(..., description="Active storage backend: 'filesystem' or 'memory'")
    total_entries: int = Field(
        ...,
        description="Number of stored pages (expired ones not yet swept included)",
        ge=0,
    )
    lifetime: int = Field(..., description="Time-to-live for cache entries in seconds", ge=0)
    gzip: bool = Field(..., description="Whether bodies are compressed before storage")
    directory: str | None = Field(None, description="Cache directory (filesystem backend)")
    performance: PerformanceStats = Field(default_factory=PerformanceStats)


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    cache_enabled: bool = Field(..., description="Whether the page cache is active")
    backend: str | None = Field(None, description="Active storage backend")
