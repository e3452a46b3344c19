from dataclasses import dataclass


@dataclass
class PerformanceMetrics:
    """Track hit/miss counters for the page cache."""

    total_queries: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    stores: int = 0
    store_failures: int = 0
    purges: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        if self.total_queries == 0:
            return 0.0
        return self.cache_hits / self.total_queries

    def record_hit(self) -> None:
        """Record a cache hit."""
        self.total_queries += 1
        self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        self.total_queries += 1
        self.cache_misses += 1

    def record_store(self, stored: bool) -> None:
        """Record the outcome of persisting a captured page."""
        if stored:
            self.stores += 1
        else:
            self.store_failures += 1

    def record_purge(self) -> None:
        """Record a single-entry purge."""
        self.purges += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_queries": self.total_queries,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": self.hit_rate,
            "stores": self.stores,
            "store_failures": self.store_failures,
            "purges": self.purges,
        }
