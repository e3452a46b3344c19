"""ASGI middleware that serves and captures full pages.

On a hit the stored response is sent and the wrapped application is never
called. On a miss the wrapped application's ``send`` is intercepted: the
start message is held back and every body chunk is buffered until the last
one, then the page is handed to the cache service, which stores it
(compressing it once if enabled) and returns the headers and bytes that
are finally sent.
"""

import logging
from pathlib import Path

from starlette.concurrency import run_in_threadpool
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from page_cache.config import ConfigError, Settings, load_settings
from page_cache.entities import CacheEntry, RequestContext
from page_cache.services import CacheLookup, PageCacheService
from page_cache.services.cache_service import Header

logger = logging.getLogger(__name__)


def _encode_headers(headers: list[Header]) -> list[tuple[bytes, bytes]]:
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in headers]


def _decode_headers(raw: list[tuple[bytes, bytes]]) -> list[Header]:
    return [(name.decode("latin-1"), value.decode("latin-1")) for name, value in raw]


async def _replay(service: PageCacheService, entry: CacheEntry, method: str, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": entry.metadata.status_code,
            "headers": _encode_headers(service.replay_headers(entry)),
        }
    )
    body = b"" if method == "HEAD" else entry.body
    await send({"type": "http.response.body", "body": body})


class PageCacheMiddleware:
    """Full-page cache in front of an ASGI application.

    Example:
        ```python
        app = FastAPI()
        app.add_middleware(PageCacheMiddleware, settings=load_settings("cache.yaml"))
        ```

    Args:
        app: The wrapped (dynamic) application.
        service: Ready-made cache service. Takes precedence over settings.
        settings: Cache settings used to build a service.
        config_path: YAML file read when neither service nor settings is given.

    When the configuration cannot be loaded the middleware logs the error
    and passes every request straight through.
    """

    def __init__(
        self,
        app: ASGIApp,
        service: PageCacheService | None = None,
        settings: Settings | None = None,
        config_path: str | Path | None = None,
    ) -> None:
        self.app = app
        if service is None:
            try:
                service = PageCacheService.create(settings or load_settings(config_path))
            except (ConfigError, OSError) as e:
                logger.error("Page cache disabled, configuration failed: %s", e)
        self.service = service

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.service is None:
            await self.app(scope, receive, send)
            return

        context = RequestContext.from_scope(scope)
        lookup = await run_in_threadpool(self.service.lookup, context)
        if lookup is None:
            await self.app(scope, receive, send)
            return

        if lookup.entry is not None:
            await _replay(self.service, lookup.entry, lookup.method, send)
            return

        responder = CapturingResponder(self.app, self.service, lookup, send)
        await responder(scope, receive)


class CapturingResponder:
    """Buffers one response of the wrapped app and stores it on completion."""

    def __init__(self, app: ASGIApp, service: PageCacheService, lookup: CacheLookup, send: Send) -> None:
        self.app = app
        self.service = service
        self.lookup = lookup
        self.send = send
        self.start_message: Message | None = None
        self.chunks: list[bytes] = []

    async def __call__(self, scope: Scope, receive: Receive) -> None:
        await self.app(scope, receive, self.send_with_capture)

    async def send_with_capture(self, message: Message) -> None:
        message_type = message["type"]

        if message_type == "http.response.start":
            self.start_message = message
            return

        if message_type != "http.response.body" or self.start_message is None:
            await self.send(message)
            return

        self.chunks.append(message.get("body", b""))
        if message.get("more_body", False):
            return

        status_code = self.start_message["status"]
        headers, body = await run_in_threadpool(
            self.service.capture,
            self.lookup,
            status_code,
            _decode_headers(self.start_message.get("headers", [])),
            b"".join(self.chunks),
        )
        self.chunks = []
        await self.send(
            {
                "type": "http.response.start",
                "status": status_code,
                "headers": _encode_headers(headers),
            }
        )
        await self.send({"type": "http.response.body", "body": body})
