#!/usr/bin/env python3
"""
Demo script for page cache.

This script runs the demo app in-process and shows misses, hits, the purge
parameter and a full clear, for both storage backends.
Requires the test extra (httpx) for the in-process client.
"""

import tempfile
import time

from fastapi.testclient import TestClient

from page_cache.api.app import create_app
from page_cache.config import load_settings


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def timed_get(client: TestClient, url: str) -> None:
    """Request a page and print whether it came from cache."""
    start = time.perf_counter()
    response = client.get(url)
    elapsed_ms = (time.perf_counter() - start) * 1000
    source = "HIT " if response.headers.get("x-cache") == "hit" else "MISS"
    encoding = response.headers.get("content-encoding", "identity")
    print(f"  {source} {url:<28} {response.status_code} {encoding:<8} {elapsed_ms:6.2f} ms")


def demo_backend(backend: str, cache_dir: str) -> None:
    """Walk through the request lifecycle on one backend."""
    print_section(f"Backend: {backend}")

    settings = load_settings(
        cache_dir=cache_dir,
        backend=backend,
        lifetime=60,
        gzip=True,
        clear_cache_param="purge",
    )
    client = TestClient(create_app(settings=settings))

    print("\n🔍 Query order does not matter:")
    timed_get(client, "/pages/demo?x=2&y=1")
    timed_get(client, "/pages/demo?y=1&x=2")

    print("\n🧹 Purge a single page:")
    timed_get(client, "/pages/demo?x=2&y=1&purge=1")
    timed_get(client, "/pages/demo?x=2&y=1")
    timed_get(client, "/pages/demo?x=2&y=1")

    print("\n🚫 POST is never cached:")
    response = client.post("/pages/demo")
    print(f"  POST /pages/demo -> {response.status_code}")

    print("\n📊 Stats:")
    stats = client.get("/_cache/stats").json()
    print(f"  Entries: {stats['total_entries']}")
    print(f"  Hit rate: {stats['performance']['hit_rate']:.0%}")

    print("\n🗑  Clear:")
    print(f"  {client.delete('/_cache').json()['message']}")
    timed_get(client, "/pages/demo?x=2&y=1")


def main() -> None:
    """Run all demos."""
    print("\n" + "=" * 70)
    print("  PAGE CACHE DEMO")
    print("=" * 70)

    with tempfile.TemporaryDirectory() as cache_dir:
        demo_backend("filesystem", cache_dir)
    demo_backend("memory", tempfile.gettempdir())

    print("\n" + "=" * 70)
    print("  Demo complete!")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    main()
