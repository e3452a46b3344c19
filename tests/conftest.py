"""Shared test fixtures for page_cache."""

from pathlib import Path

import pytest

from page_cache.config import Settings
from page_cache.entities import CacheEntry, CacheMetadata, RequestContext


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Filesystem settings rooted in a temporary directory."""
    return Settings(
        cache_dir=str(tmp_path / "cache"),
        backend="filesystem",
        lifetime=60,
        gzip=False,
        xhr=False,
        exclude=(),
        clear_cache_param="purge",
        ignore_headers=("X-Powered-By", "Set-Cookie"),
    )


def make_context(
    path: str = "/a",
    query_string: str = "",
    method: str = "GET",
    host: str = "example.com",
    scheme: str = "http",
    headers: dict[str, str] | None = None,
) -> RequestContext:
    return RequestContext(
        method=method,
        scheme=scheme,
        host=host,
        path=path,
        query_string=query_string,
        headers=headers or {},
    )


def make_entry(body: bytes = b"<html>page</html>", created_at: float = 0.0, **metadata) -> CacheEntry:
    metadata.setdefault("headers", ["Content-Type: text/html; charset=utf-8"])
    metadata.setdefault("status_code", 200)
    metadata.setdefault("uri", "http://example.com/a?")
    return CacheEntry(body=body, metadata=CacheMetadata(created_at=created_at, **metadata))
