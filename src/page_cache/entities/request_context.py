"""Request context domain entity."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RequestContext:
    """The parts of an incoming request the cache engine looks at.

    Built once per request at the HTTP boundary and passed explicitly to
    the gatekeeper, the normalizer and the lifecycle manager.

    Attributes:
        method: Upper-case HTTP method
        scheme: ``http`` or ``https``
        host: Host name, lower-cased and without the port
        path: Request path, not normalized
        query_string: Raw (undecoded) query string
        headers: Request headers with lower-cased names
    """

    method: str
    scheme: str
    host: str
    path: str
    query_string: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_xhr(self) -> bool:
        """Whether the request was flagged as an XMLHttpRequest."""
        return self.headers.get("x-requested-with", "").lower() == "xmlhttprequest"

    @classmethod
    def from_scope(cls, scope: dict) -> "RequestContext":
        """Build a context from an ASGI HTTP connection scope."""
        headers: dict[str, str] = {}
        for name, value in scope.get("headers", []):
            headers[name.decode("latin-1").lower()] = value.decode("latin-1")

        host = headers.get("host")
        if host is None and scope.get("server"):
            host = scope["server"][0]
        host = host or ""
        if host.startswith("["):
            host = host[: host.find("]") + 1]
        else:
            host = host.split(":", 1)[0]
        host = host.lower()

        return cls(
            method=scope.get("method", "GET").upper(),
            scheme=scope.get("scheme", "http"),
            host=host,
            path=scope.get("path", "/"),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=headers,
        )
