"""Page cache lifecycle for a single request.

This service ties the gatekeeper, the normalizer and the storage backend
together: it decides whether a request is served from cache, builds the
headers replayed on a hit, and turns a freshly rendered response into a
stored entry on a miss.
"""

import gzip
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from page_cache.config import Settings, get_settings
from page_cache.entities import CacheEntry, CacheMetadata, RequestContext
from page_cache.models import PerformanceMetrics
from page_cache.protocols import CacheStore
from page_cache.repositories import create_store

from .gatekeeper import Gatekeeper
from .normalizer import RequestNormalizer

logger = logging.getLogger(__name__)

Header = tuple[str, str]

CACHE_STATUS_HEADER = "X-Cache"
GZIP_LEVEL = 9
NO_BODY_STATUSES = frozenset({204, 304})


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of checking the cache for an eligible request.

    Attributes:
        key: Cache key of the request
        uri: Normalized URI of the request
        method: Request method
        entry: Stored entry on a hit, None on a miss
        purged: Whether the request deleted its entry via the purge parameter
    """

    key: str
    uri: str
    method: str
    entry: CacheEntry | None = None
    purged: bool = False

    @property
    def is_hit(self) -> bool:
        return self.entry is not None


def _header_name_set(names: Iterable[str]) -> frozenset[str]:
    return frozenset(name.strip().lower() for name in names)


def _without(headers: Iterable[Header], names: frozenset[str]) -> list[Header]:
    return [(name, value) for name, value in headers if name.lower() not in names]


def _has_no_body(status_code: int) -> bool:
    return status_code < 200 or status_code in NO_BODY_STATUSES


def parse_header_line(line: str) -> Header | None:
    """Split a raw ``"Name: value"`` line, or None if it has no name."""
    name, sep, value = line.partition(":")
    name = name.strip()
    if not sep or not name:
        return None
    return name, value.strip()


class PageCacheService:
    """Core page cache orchestration service.

    This service depends on the CacheStore PROTOCOL, not on a concrete
    backend, so the filesystem and memory stores are interchangeable.

    Example:
        ```python
        from page_cache.services import PageCacheService

        cache = PageCacheService.create(settings)
        lookup = cache.lookup(context)
        if lookup and lookup.is_hit:
            headers = cache.replay_headers(lookup.entry)
        ```
    """

    def __init__(
        self,
        store: CacheStore,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the page cache service.

        Args:
            store: Storage backend (required).
            settings: Cache settings. Defaults to the environment settings.
            clock: Source of the capture timestamp.
        """
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock
        self._normalizer = RequestNormalizer(ignore_params=[self._settings.clear_cache_param])
        self._gatekeeper = Gatekeeper(
            self._normalizer,
            exclude=self._settings.exclude,
            xhr=self._settings.xhr,
            clear_cache_param=self._settings.clear_cache_param,
        )
        self._denylist = _header_name_set(self._settings.ignore_headers)
        self._metrics = PerformanceMetrics()

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        store: CacheStore | None = None,
    ) -> "PageCacheService":
        """Factory method to create PageCacheService with the configured backend.

        Args:
            settings: Cache settings. If None, uses the environment defaults.
            store: Storage backend. If None, built from ``settings.backend``.

        Returns:
            Configured PageCacheService instance
        """
        settings = settings or get_settings()
        return cls(store=store or create_store(settings), settings=settings)

    def lookup(self, context: RequestContext) -> CacheLookup | None:
        """Check the cache for a request.

        Business logic:
        1. Ineligible requests get None and bypass caching entirely
        2. A purge request deletes its own entry and is always a miss; its
           response is served but not stored, so the next request refills it
        3. Otherwise the backend is asked for a fresh entry

        Args:
            context: The incoming request

        Returns:
            CacheLookup for eligible requests, None otherwise
        """
        if not self._gatekeeper.is_eligible(context):
            return None

        key = self._normalizer.cache_key(context)
        uri = self._normalizer.normalize_uri(context)

        purged = self._gatekeeper.wants_purge(context)
        if purged:
            logger.info("Purging cache entry %s for %s", key, uri)
            self._store.delete(key)
            self._metrics.record_purge()
            entry = None
        else:
            entry = self._store.read(key)

        if entry is None:
            logger.debug("Cache miss %s", uri)
            self._metrics.record_miss()
        else:
            logger.debug("Cache hit %s", uri)
            self._metrics.record_hit()

        return CacheLookup(key=key, uri=uri, method=context.method, entry=entry, purged=purged)

    def replay_headers(self, entry: CacheEntry) -> list[Header]:
        """Headers sent with a cached body.

        Stored headers are re-emitted minus the denylist, ``Content-Length``
        is set from the stored body unless the status has no body,
        ``Content-Encoding: gzip`` is added for
        compressed bodies and ``X-Cache: hit`` marks the response.

        Args:
            entry: The stored entry

        Returns:
            List of (name, value) pairs
        """
        headers = [h for h in map(parse_header_line, entry.metadata.headers) if h is not None]
        replaced = {"content-length", CACHE_STATUS_HEADER.lower()}
        if entry.metadata.gzip:
            replaced.add("content-encoding")
        headers = _without(headers, self._denylist | replaced)

        if entry.metadata.gzip:
            headers.append(("Content-Encoding", "gzip"))
        if not _has_no_body(entry.metadata.status_code):
            headers.append(("Content-Length", str(len(entry.body))))
        headers.append((CACHE_STATUS_HEADER, "hit"))
        return headers

    def capture(
        self,
        lookup: CacheLookup,
        status_code: int,
        headers: list[Header],
        body: bytes,
    ) -> tuple[list[Header], bytes]:
        """Store a freshly rendered response and return what to send.

        The body is compressed at most once, here; the compressed bytes are
        both stored and sent. Responses that already carry a
        ``Content-Encoding``, empty bodies and bodyless statuses (1xx, 204,
        304) are stored as they are. HEAD responses pass through untouched,
        with the downstream ``Content-Length``. HEAD, 304 and purge responses
        are sent but not stored. A failed write still returns the response.

        Args:
            lookup: The miss returned by :meth:`lookup`
            status_code: Response status produced by the downstream app
            headers: Response headers produced by the downstream app
            body: Complete response body produced by the downstream app

        Returns:
            Tuple of (headers, body) to send to the client
        """
        if lookup.method == "HEAD":
            return headers, body

        if _has_no_body(status_code):
            out_headers = list(headers)
            compress = False
        else:
            already_encoded = any(name.lower() == "content-encoding" for name, _ in headers)
            compress = self._settings.gzip and bool(body) and not already_encoded

            out_headers = _without(headers, frozenset({"content-length"}))
            if compress:
                body = gzip.compress(body, compresslevel=GZIP_LEVEL)
                out_headers.append(("Content-Encoding", "gzip"))
            out_headers.append(("Content-Length", str(len(body))))

        # A 304 answers one client's validators and is never replayed to others
        if lookup.purged or status_code == 304:
            return out_headers, body

        stored_headers = _without(out_headers, self._denylist | {"content-length"})
        entry = CacheEntry(
            body=body,
            metadata=CacheMetadata(
                headers=[f"{name}: {value}" for name, value in stored_headers],
                status_code=status_code,
                uri=lookup.uri,
                created_at=self._clock(),
                gzip=compress,
            ),
        )
        stored = self._store.write(lookup.key, entry, self._settings.lifetime)
        self._metrics.record_store(stored)
        if stored:
            logger.debug("Stored cache entry %s for %s", lookup.key, lookup.uri)
        else:
            logger.warning("Serving %s without caching it", lookup.uri)

        return out_headers, body

    def clear(self) -> bool:
        """Clear every entry of the active backend.

        Returns:
            True on success
        """
        cleared = self._store.clear_all()
        logger.info("Cache cleared (success=%s)", cleared)
        return cleared

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with backend stats and hit/miss counters
        """
        stats = self._store.stats()
        stats["lifetime"] = self._settings.lifetime
        stats["gzip"] = self._settings.gzip
        stats["performance"] = self._metrics.to_dict()
        return stats

    def reset_metrics(self) -> None:
        """Reset hit/miss counters."""
        self._metrics = PerformanceMetrics()

    @property
    def store(self) -> CacheStore:
        """Get the underlying store (for testing)."""
        return self._store

    @property
    def normalizer(self) -> RequestNormalizer:
        return self._normalizer

    @property
    def gatekeeper(self) -> Gatekeeper:
        return self._gatekeeper

    @property
    def settings(self) -> Settings:
        return self._settings
