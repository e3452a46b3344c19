"""Data Transfer Objects for API contracts.

These Pydantic models define the administrative API contract.
Internal logic uses entities from the entities package.
"""

from .responses import (
    CacheStatsResponse,
    ClearCacheResponse,
    HealthCheckResponse,
    PerformanceStats,
)

__all__ = [
    "CacheStatsResponse",
    "ClearCacheResponse",
    "HealthCheckResponse",
    "PerformanceStats",
]
