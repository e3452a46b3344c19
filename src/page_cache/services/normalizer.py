"""Canonical request identity and cache-key derivation.

Query strings are decoded with bracket notation (``a[b]=1``, ``a[]=1``)
into nested dicts, every level is sorted by key, and the result is
re-encoded into a canonical query string. The cache key is the md5 hex
digest of ``scheme://host/path?query``.

Paths are used exactly as received: no case folding and no trailing-slash
handling, so ``/About`` and ``/about/`` are different pages.
"""

import hashlib
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote_plus, unquote_plus

from page_cache.entities import RequestContext

QueryParams = dict[str, Any]


def _split_name(name: str) -> list[str]:
    """Split ``a[b][]`` into ``["a", "b", ""]``; malformed names stay whole."""
    start = name.find("[")
    if start <= 0:
        return [name]

    parts = [name[:start]]
    rest = name[start:]
    while rest.startswith("["):
        end = rest.find("]")
        if end == -1:
            return [name]
        parts.append(rest[1:end])
        rest = rest[end + 1 :]
    if rest:
        return [name]
    return parts


def parse_query(query_string: str) -> QueryParams:
    """Decode a raw query string into a nested structure.

    Repeated plain keys keep the last value; ``[]`` appends at the next
    integer index.

    Example:
        >>> parse_query("b=2&a[y]=1&a[x]=2&c[]=3")
        {'b': '2', 'a': {'y': '1', 'x': '2'}, 'c': {'0': '3'}}
    """
    params: QueryParams = {}
    for pair in query_string.split("&"):
        if not pair:
            continue
        raw_name, _, raw_value = pair.partition("=")
        name = unquote_plus(raw_name)
        if not name:
            continue
        value = unquote_plus(raw_value)

        *parents, leaf = _split_name(name)
        node = params
        for part in parents:
            if part == "":
                part = str(_next_index(node))
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        if leaf == "" and parents:
            leaf = str(_next_index(node))
        node[leaf] = value
    return params


def _is_index(key: str) -> bool:
    return key.isascii() and key.isdecimal()


def _next_index(node: QueryParams) -> int:
    indexes = [int(k) for k in node if _is_index(k)]
    return max(indexes) + 1 if indexes else 0


def _sort_key(key: str) -> tuple[int, int, str]:
    # Integer keys sort numerically so appended items keep their order;
    # "007" and "7" tie on value and fall back to the raw string
    if _is_index(key):
        return (0, int(key), key)
    return (1, 0, key)


def sort_params(params: QueryParams) -> QueryParams:
    """Recursively sort every mapping by key."""
    result: QueryParams = {}
    for key in sorted(params, key=_sort_key):
        value = params[key]
        result[key] = sort_params(value) if isinstance(value, dict) else value
    return result


def _flatten(params: QueryParams, prefix: str | None = None) -> Iterable[tuple[str, str]]:
    for key, value in params.items():
        name = key if prefix is None else f"{prefix}[{key}]"
        if isinstance(value, dict):
            yield from _flatten(value, name)
        else:
            yield name, str(value)


def build_query(params: QueryParams) -> str:
    """Encode a nested structure as a query string, keeping its order."""
    return "&".join(f"{quote_plus(name)}={quote_plus(value)}" for name, value in _flatten(params))


class RequestNormalizer:
    """Derives the normalized URI and cache key of a request.

    Args:
        ignore_params: Top-level query parameters left out of the identity,
            typically the purge trigger.
    """

    def __init__(self, ignore_params: Iterable[str] = ()) -> None:
        self._ignore = frozenset(ignore_params)

    def query_params(self, context: RequestContext) -> QueryParams:
        """Parsed and sorted query parameters, ignored names removed."""
        params = parse_query(context.query_string)
        for name in self._ignore:
            params.pop(name, None)
        return sort_params(params)

    def normalize_uri(self, context: RequestContext) -> str:
        """Build ``scheme://host/path?canonical_query`` for a request."""
        query = build_query(self.query_params(context))
        return f"{context.scheme}://{context.host}{context.path}?{query}"

    def cache_key(self, context: RequestContext) -> str:
        """Fixed-length key of the normalized URI."""
        uri = self.normalize_uri(context)
        return hashlib.md5(uri.encode("utf-8"), usedforsecurity=False).hexdigest()
