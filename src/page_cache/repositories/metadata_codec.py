"""JSON encoding of the metadata artifact shared by all backends."""

import json

from page_cache.entities import CacheMetadata


class CorruptEntryError(ValueError):
    """Raised when a stored metadata artifact cannot be decoded."""


def encode_metadata(metadata: CacheMetadata) -> bytes:
    """Serialize metadata to UTF-8 JSON bytes."""
    return json.dumps(
        {
            "headers": list(metadata.headers),
            "status_code": metadata.status_code,
            "uri": metadata.uri,
            "created_at": metadata.created_at,
            "gzip": metadata.gzip,
        },
        ensure_ascii=False,
    ).encode("utf-8")


def decode_metadata(raw: bytes) -> CacheMetadata:
    """Deserialize metadata bytes.

    Raises:
        CorruptEntryError: If the payload is not valid metadata JSON.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
        headers = data["headers"]
        if not isinstance(headers, list) or not all(isinstance(h, str) for h in headers):
            raise TypeError("headers must be a list of strings")
        return CacheMetadata(
            headers=headers,
            status_code=int(data["status_code"]),
            uri=str(data.get("uri", "")),
            created_at=float(data.get("created_at", 0.0)),
            gzip=bool(data.get("gzip", False)),
        )
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise CorruptEntryError(f"Invalid cache metadata: {e}") from e
