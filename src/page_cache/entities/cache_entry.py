"""Cache entry domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CacheMetadata:
    """Response metadata captured alongside a cached body.

    Attributes:
        headers: Raw ``"Name: value"`` header lines, denylisted names removed
        status_code: HTTP status code of the original response
        uri: Normalized URI the entry was captured for
        created_at: Unix timestamp of the capture
        gzip: Whether the stored body is gzip-encoded
    """

    headers: list[str] = field(default_factory=list)
    status_code: int = 200
    uri: str = ""
    created_at: float = 0.0
    gzip: bool = False


@dataclass(frozen=True)
class CacheEntry:
    """Domain entity for one cached page.

    The body and the metadata are persisted as two artifacts under the same
    cache key. An entry is only valid when both are present.

    Attributes:
        body: Exact bytes sent to the client (gzip-encoded if ``metadata.gzip``)
        metadata: Captured response metadata
    """

    body: bytes
    metadata: CacheMetadata
