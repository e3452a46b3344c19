"""Per-request caching eligibility."""

import re
from collections.abc import Iterable

from page_cache.config import ConfigError
from page_cache.entities import RequestContext

from .normalizer import RequestNormalizer, parse_query

CACHEABLE_METHODS = frozenset({"GET", "HEAD"})


class Gatekeeper:
    """Decides whether a request takes part in caching.

    A request is eligible when its method is GET or HEAD, its normalized
    URI matches none of the exclusion patterns, and it is not an XHR
    request unless XHR caching is enabled.

    Args:
        normalizer: Normalizer used to build the URI patterns are matched on.
        exclude: Regular expressions searched in the normalized URI.
        xhr: Whether XMLHttpRequest-flagged requests may be cached.
        clear_cache_param: Query parameter that triggers a single-entry purge.
    """

    def __init__(
        self,
        normalizer: RequestNormalizer,
        exclude: Iterable[str] = (),
        xhr: bool = False,
        clear_cache_param: str | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._xhr = xhr
        self._clear_cache_param = clear_cache_param
        try:
            self._exclude = [re.compile(pattern) for pattern in exclude]
        except re.error as e:
            raise ConfigError(f"Invalid exclude pattern: {e}") from e

    def is_excluded(self, context: RequestContext) -> bool:
        uri = self._normalizer.normalize_uri(context)
        return any(rx.search(uri) for rx in self._exclude)

    def is_eligible(self, context: RequestContext) -> bool:
        """Check method, XHR policy and exclusion patterns, cheapest first."""
        if context.method not in CACHEABLE_METHODS:
            return False
        if context.is_xhr and not self._xhr:
            return False
        return not self.is_excluded(context)

    def wants_purge(self, context: RequestContext) -> bool:
        """Whether the purge parameter is present, with any value."""
        if not self._clear_cache_param:
            return False
        return self._clear_cache_param in parse_query(context.query_string)
