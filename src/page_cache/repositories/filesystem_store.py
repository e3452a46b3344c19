"""Filesystem implementation of CacheStore.

Every entry is two files in the cache directory:
``<key>.content.cache`` holds the body bytes and ``<key>.data.cache`` the
JSON metadata. Both files are stamped with the same modification time
when written; a pair whose stamps differ came from two different writes.
Freshness is decided lazily on read from that stamp; nothing sweeps stale
files in the background.
"""

import logging
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from page_cache.config import Settings, get_settings
from page_cache.entities import CacheEntry
from page_cache.protocols import CONTENT_SUFFIX, DATA_SUFFIX

from .metadata_codec import CorruptEntryError, decode_metadata, encode_metadata

logger = logging.getLogger(__name__)


class FilesystemCacheStore:
    """Two-files-per-key store under a single directory.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    There is no inter-process locking. Each artifact is written to a
    temporary file and renamed into place, so a reader sees either the old
    or the new file, never a partial one. A reader that finds only one of
    the two files, or two files with different stamps, treats the entry as
    a miss and deletes what is left.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        lifetime: int,
        file_mode: int = 0o755,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the filesystem store.

        Args:
            cache_dir: Directory holding the cache files. Created if missing.
            lifetime: Seconds after which an entry is stale.
            file_mode: Permission bits used when creating the directory.
            clock: Source of the current unix time.
        """
        self._dir = Path(cache_dir).expanduser()
        self._lifetime = lifetime
        self._clock = clock

        if not self._dir.is_dir():
            self._dir.mkdir(mode=file_mode, parents=True, exist_ok=True)
            logger.info("Created cache directory: %s", self._dir)
        self._dir = self._dir.resolve()

    @classmethod
    def create(cls, settings: Settings | None = None) -> "FilesystemCacheStore":
        """Factory method to create FilesystemCacheStore from settings.

        Args:
            settings: Cache settings. If None, uses the environment defaults.

        Returns:
            Configured FilesystemCacheStore
        """
        settings = settings or get_settings()
        return cls(
            cache_dir=settings.cache_dir,
            lifetime=settings.lifetime,
            file_mode=settings.file_mode,
        )

    def content_path(self, key: str) -> Path:
        """Path of the body artifact for a key."""
        return self._dir / f"{key}{CONTENT_SUFFIX}"

    def data_path(self, key: str) -> Path:
        """Path of the metadata artifact for a key."""
        return self._dir / f"{key}{DATA_SUFFIX}"

    def _is_stale(self, content_path: Path, ttl: int) -> bool:
        return self._clock() - content_path.stat().st_mtime > ttl

    def _is_mixed(self, content_path: Path, data_path: Path) -> bool:
        return content_path.stat().st_mtime_ns != data_path.stat().st_mtime_ns

    def exists(self, key: str) -> bool:
        """Check whether both artifacts of one write are present and fresh."""
        content_path = self.content_path(key)
        data_path = self.data_path(key)
        try:
            return not (
                self._is_mixed(content_path, data_path)
                or self._is_stale(content_path, self._lifetime)
            )
        except FileNotFoundError:
            return False

    def read(self, key: str) -> CacheEntry | None:
        """Read a fresh entry, deleting it when stale, partial or corrupt.

        Args:
            key: The cache key

        Returns:
            The entry, or None on a miss
        """
        content_path = self.content_path(key)
        data_path = self.data_path(key)

        if not (content_path.is_file() and data_path.is_file()):
            if content_path.exists() or data_path.exists():
                logger.debug("Incomplete cache entry %s, deleting", key)
                self.delete(key)
            return None

        try:
            if self._is_mixed(content_path, data_path):
                logger.debug("Cache entry %s spans two writes, deleting", key)
                self.delete(key)
                return None
            if self._is_stale(content_path, self._lifetime):
                logger.debug("Stale cache entry %s, deleting", key)
                self.delete(key)
                return None
            metadata = decode_metadata(data_path.read_bytes())
            body = content_path.read_bytes()
        except FileNotFoundError:
            # Removed by a concurrent purge or writer between the checks above
            self.delete(key)
            return None
        except (CorruptEntryError, OSError) as e:
            logger.warning("Corrupt cache entry %s, deleting: %s", key, e)
            self.delete(key)
            return None

        return CacheEntry(body=body, metadata=metadata)

    def write(self, key: str, entry: CacheEntry, ttl: int) -> bool:
        """Write both artifacts, body first, each via an atomic rename.

        Both files get the current time as their mtime. The TTL is not
        persisted: freshness is judged on read against the store's
        configured lifetime and that stamp.

        Args:
            key: The cache key
            entry: Body and metadata to store
            ttl: Time-to-live in seconds (unused by this backend)

        Returns:
            True if both files were written, False otherwise
        """
        written_at = self._clock()
        try:
            self._atomic_write(self.content_path(key), entry.body, written_at)
            self._atomic_write(self.data_path(key), encode_metadata(entry.metadata), written_at)
        except OSError as e:
            logger.warning("Unable to write cache entry %s: %s", key, e)
            self.delete(key)
            return False
        return True

    def _atomic_write(self, path: Path, payload: bytes, mtime: float) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.utime(tmp_name, (mtime, mtime))
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def delete(self, key: str) -> None:
        """Delete both artifacts of an entry. Missing files are ignored."""
        for path in (self.content_path(key), self.data_path(key)):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Unable to delete cache file %s: %s", path, e)

    def clear_all(self) -> bool:
        """Delete every body and metadata file in the cache directory.

        Returns:
            True if every file was removed, False if any deletion failed
        """
        success = True
        for suffix in (CONTENT_SUFFIX, DATA_SUFFIX):
            for path in self._dir.glob(f"*{suffix}"):
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    logger.warning("Unable to delete cache file %s: %s", path, e)
                    success = False
        return success

    def count(self) -> int:
        """Count body files on disk, stale ones included."""
        return sum(1 for _ in self._dir.glob(f"*{CONTENT_SUFFIX}"))

    def stats(self) -> dict:
        """Get backend statistics.

        Returns:
            Dictionary with stats
        """
        return {
            "backend": "filesystem",
            "directory": str(self._dir),
            "total_entries": self.count(),
            "ttl": self._lifetime,
        }

    @property
    def directory(self) -> Path:
        """Get the cache directory."""
        return self._dir
