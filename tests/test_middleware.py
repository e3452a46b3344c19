"""Tests for the ASGI page cache middleware."""

import asyncio
import gzip
from dataclasses import replace

import pytest
from conftest import make_context
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from fastapi.testclient import TestClient

from page_cache.handlers import CapturingResponder, PageCacheMiddleware
from page_cache.repositories import MemoryCacheStore
from page_cache.services import PageCacheService


def build_app(service: PageCacheService | None = None, **middleware_kwargs) -> FastAPI:
    """A dynamic app that counts how often it renders."""
    app = FastAPI()
    app.state.renders = 0

    @app.get("/a")
    async def page_a() -> HTMLResponse:
        app.state.renders += 1
        response = HTMLResponse(f"<p>render {app.state.renders}</p>", status_code=200)
        response.set_cookie("session", "secret")
        response.headers["x-page"] = "a"
        return response

    @app.post("/a")
    async def post_a() -> HTMLResponse:
        app.state.renders += 1
        return HTMLResponse(f"<p>posted {app.state.renders}</p>")

    @app.get("/missing")
    async def missing() -> HTMLResponse:
        app.state.renders += 1
        return HTMLResponse("<p>not here</p>", status_code=404)

    @app.get("/stream")
    async def stream() -> StreamingResponse:
        app.state.renders += 1

        async def chunks():
            for part in (b"<p>", b"streamed ", b"page", b"</p>"):
                yield part

        return StreamingResponse(chunks(), media_type="text/html")

    @app.get("/empty", status_code=204)
    async def empty() -> Response:
        app.state.renders += 1
        return Response(status_code=204)

    @app.api_route("/both", methods=["GET", "HEAD"])
    async def both() -> HTMLResponse:
        app.state.renders += 1
        return HTMLResponse("<p>both</p>")

    @app.get("/big")
    async def big() -> HTMLResponse:
        app.state.renders += 1
        return HTMLResponse("<p>" + "lorem ipsum " * 500 + "</p>")

    if service is not None:
        middleware_kwargs["service"] = service
    app.add_middleware(PageCacheMiddleware, **middleware_kwargs)
    return app


@pytest.fixture
def memory_service(settings, clock) -> PageCacheService:
    settings = replace(settings, backend="memory")
    return PageCacheService(store=MemoryCacheStore(lifetime=60, clock=clock), settings=settings)


@pytest.fixture
def app(memory_service) -> FastAPI:
    return build_app(memory_service)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def test_miss_then_hit(client, app):
    first = client.get("/a?x=2&y=1")
    assert first.status_code == 200
    assert first.text == "<p>render 1</p>"
    assert "x-cache" not in first.headers

    second = client.get("/a?y=1&x=2")
    assert second.status_code == 200
    assert second.text == "<p>render 1</p>"
    assert second.headers["x-cache"] == "hit"
    assert second.headers["x-page"] == "a"
    assert second.headers["content-type"].startswith("text/html")
    assert app.state.renders == 1


def test_set_cookie_is_never_replayed(client):
    first = client.get("/a")
    assert "set-cookie" in first.headers

    second = client.get("/a")
    assert second.headers["x-cache"] == "hit"
    assert "set-cookie" not in second.headers


def test_unicode_digit_query_name_is_cached(client, app):
    first = client.get("/a?%C2%B2=1")
    assert first.status_code == 200
    assert client.get("/a?%C2%B2=1").headers["x-cache"] == "hit"
    assert app.state.renders == 1


def test_post_is_never_cached(client, app):
    client.get("/a")
    response = client.post("/a")
    assert response.text == "<p>posted 2</p>"
    assert "x-cache" not in response.headers
    client.post("/a")
    assert app.state.renders == 3


def test_status_code_is_replayed(client, app):
    client.get("/missing")
    response = client.get("/missing")
    assert response.status_code == 404
    assert response.headers["x-cache"] == "hit"
    assert app.state.renders == 1


def test_streaming_response_is_buffered_and_stored(client, app):
    first = client.get("/stream")
    assert first.text == "<p>streamed page</p>"
    assert first.headers["content-length"] == str(len(b"<p>streamed page</p>"))

    second = client.get("/stream")
    assert second.text == "<p>streamed page</p>"
    assert second.headers["x-cache"] == "hit"
    assert app.state.renders == 1


def test_purge_parameter_refreshes_single_entry(client, app):
    client.get("/a?x=2&y=1")
    client.get("/stream")

    purged = client.get("/a?x=2&y=1&purge=1")
    assert "x-cache" not in purged.headers
    assert purged.text == "<p>render 2</p>"

    again = client.get("/a?y=1&x=2")
    assert "x-cache" not in again.headers
    assert again.text == "<p>render 3</p>"
    assert client.get("/a?x=2&y=1").headers["x-cache"] == "hit"
    assert client.get("/stream").headers["x-cache"] == "hit"


def test_xhr_requests_bypass_cache(client, app):
    headers = {"X-Requested-With": "XMLHttpRequest"}
    client.get("/a", headers=headers)
    response = client.get("/a", headers=headers)
    assert "x-cache" not in response.headers
    assert app.state.renders == 2


def test_xhr_cached_when_enabled(settings, clock):
    service = PageCacheService(
        store=MemoryCacheStore(lifetime=60, clock=clock),
        settings=replace(settings, xhr=True),
    )
    client = TestClient(build_app(service))
    headers = {"X-Requested-With": "XMLHttpRequest"}
    client.get("/a", headers=headers)
    assert client.get("/a", headers=headers).headers["x-cache"] == "hit"


def test_excluded_paths_bypass_cache(settings, clock):
    service = PageCacheService(
        store=MemoryCacheStore(lifetime=60, clock=clock),
        settings=replace(settings, exclude=(r"/stream",)),
    )
    app = build_app(service)
    client = TestClient(app)
    client.get("/stream")
    assert "x-cache" not in client.get("/stream").headers
    assert app.state.renders == 2
    assert service.store.count() == 0


def test_gzip_body_is_compressed_once(settings, clock):
    service = PageCacheService(
        store=MemoryCacheStore(lifetime=60, clock=clock),
        settings=replace(settings, gzip=True),
    )
    app = build_app(service)
    client = TestClient(app)
    expected = "<p>" + "lorem ipsum " * 500 + "</p>"

    first = client.get("/big")
    assert first.headers["content-encoding"] == "gzip"
    assert first.text == expected

    second = client.get("/big")
    assert second.headers["content-encoding"] == "gzip"
    assert second.headers["x-cache"] == "hit"
    assert second.text == expected

    stored = service.lookup(make_context(path="/big", host="testserver")).entry
    assert gzip.decompress(stored.body) == expected.encode()
    assert int(second.headers["content-length"]) == len(stored.body)


def test_gzip_never_applies_to_no_content(settings, clock):
    service = PageCacheService(
        store=MemoryCacheStore(lifetime=60, clock=clock),
        settings=replace(settings, gzip=True),
    )
    app = build_app(service)
    client = TestClient(app)

    for _ in range(2):
        response = client.get("/empty")
        assert response.status_code == 204
        assert response.content == b""
        assert "content-encoding" not in response.headers
        assert "content-length" not in response.headers

    assert response.headers["x-cache"] == "hit"
    assert app.state.renders == 1


def test_head_miss_and_hit_report_the_same_length(client, app):
    miss = client.head("/both")
    assert "x-cache" not in miss.headers
    assert miss.headers["content-length"] == str(len(b"<p>both</p>"))

    client.get("/both")
    hit = client.head("/both")
    assert hit.headers["x-cache"] == "hit"
    assert hit.headers["content-length"] == miss.headers["content-length"]
    assert app.state.renders == 2


def test_head_served_from_cache_without_body(client, app):
    client.get("/a")
    response = client.head("/a")
    assert response.status_code == 200
    assert response.headers["x-cache"] == "hit"
    assert response.content == b""
    assert app.state.renders == 1


def test_config_failure_disables_caching(tmp_path):
    config = tmp_path / "broken.yaml"
    config.write_text("lifetime: [unterminated\n")
    app = build_app(config_path=config)
    client = TestClient(app)

    client.get("/a")
    response = client.get("/a")
    assert response.status_code == 200
    assert "x-cache" not in response.headers
    assert app.state.renders == 2


def test_middleware_builds_service_from_settings(settings):
    app = build_app(settings=settings)
    client = TestClient(app)
    client.get("/a")
    assert client.get("/a").headers["x-cache"] == "hit"
    assert list((settings.cache_path).glob("*.content.cache"))


def test_filesystem_scenario_example(settings):
    """x=2&y=1 and y=1&x=2 share an entry; purge drops it; the next request refills it."""
    service = PageCacheService.create(settings)
    app = build_app(service)
    client = TestClient(app)

    assert "x-cache" not in client.get("/a?x=2&y=1").headers
    hit = client.get("/a?y=1&x=2")
    assert hit.headers["x-cache"] == "hit"
    assert app.state.renders == 1

    purge = client.get("/a?x=2&y=1&purge=1")
    assert "x-cache" not in purge.headers
    assert app.state.renders == 2

    refilled = client.get("/a?x=2&y=1")
    assert "x-cache" not in refilled.headers
    assert refilled.text == "<p>render 3</p>"
    assert client.get("/a?y=1&x=2").headers["x-cache"] == "hit"
    assert app.state.renders == 3
    assert len(list(settings.cache_path.glob("*.content.cache"))) == 1
    assert len(list(settings.cache_path.glob("*.data.cache"))) == 1


def test_capturing_responder_drives_raw_asgi_app(memory_service):
    async def raw_app(scope, receive, send):
        headers = [(b"content-type", b"text/html")]
        await send({"type": "http.response.start", "status": 200, "headers": headers})
        await send({"type": "http.response.body", "body": b"<p>", "more_body": True})
        await send({"type": "http.response.body", "body": b"raw</p>"})

    sent = []

    async def send(message):
        sent.append(message)

    async def run() -> None:
        lookup = memory_service.lookup(make_context())
        responder = CapturingResponder(raw_app, memory_service, lookup, send)
        await responder({"type": "http"}, None)

    asyncio.run(run())

    assert [m["type"] for m in sent] == ["http.response.start", "http.response.body"]
    assert (b"content-length", b"10") in sent[0]["headers"]
    assert sent[1]["body"] == b"<p>raw</p>"
    assert memory_service.lookup(make_context()).entry.body == b"<p>raw</p>"
