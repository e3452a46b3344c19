import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BACKENDS = ("filesystem", "memory")


class ConfigError(ValueError):
    """Raised when the cache configuration cannot be loaded or is invalid."""


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _parse_mode(value: Any) -> int:
    """Accept file modes as ints (``493``) or octal strings (``"0755"``)."""
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 8)
    except ValueError as e:
        raise ConfigError(f"file_mode must be an octal permission string, got {value!r}") from e


@dataclass(frozen=True)
class Settings:
    """Page cache settings loaded from environment variables."""

    # Storage
    cache_dir: str = os.getenv("PAGE_CACHE_DIR", ".page_cache")
    file_mode: int = _parse_mode(os.getenv("PAGE_CACHE_FILE_MODE", "0755"))
    backend: str = os.getenv("PAGE_CACHE_BACKEND", "filesystem")
    max_entries: int = int(os.getenv("PAGE_CACHE_MAX_ENTRIES", "10000"))  # memory backend only

    # Cache policy
    lifetime: int = int(os.getenv("PAGE_CACHE_LIFETIME", "60"))
    gzip: bool = _env_bool("PAGE_CACHE_GZIP", "false")
    xhr: bool = _env_bool("PAGE_CACHE_XHR", "false")
    exclude: tuple[str, ...] = field(default_factory=lambda: _env_list("PAGE_CACHE_EXCLUDE", ""))
    clear_cache_param: str = os.getenv("PAGE_CACHE_CLEAR_PARAM", "clear_cache")
    ignore_headers: tuple[str, ...] = field(
        default_factory=lambda: _env_list("PAGE_CACHE_IGNORE_HEADERS", "X-Powered-By,Set-Cookie")
    )

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = _env_bool("API_RELOAD", "false")

    @property
    def cache_path(self) -> Path:
        """Absolute path of the filesystem backend directory."""
        return Path(self.cache_dir).expanduser().resolve()

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.lifetime < 0:
            raise ConfigError(f"lifetime must be >= 0, got {self.lifetime}")

        if self.backend not in BACKENDS:
            raise ConfigError(f"backend must be one of {list(BACKENDS)}, got {self.backend!r}")

        if self.max_entries < 1:
            raise ConfigError(f"max_entries must be >= 1, got {self.max_entries}")

        for pattern in self.exclude:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"Invalid exclude pattern {pattern!r}: {e}") from e


def load_settings(path: str | Path | None = None, **overrides: Any) -> Settings:
    """Build settings from the environment, a YAML file and keyword overrides.

    Later sources win: environment defaults, then the YAML mapping, then
    ``overrides``. Unknown YAML keys are ignored with a warning.

    Args:
        path: Optional YAML configuration file.
        **overrides: Explicit option values.

    Returns:
        Validated Settings instance

    Raises:
        ConfigError: If the file cannot be read or parsed, or a value is invalid.
    """
    values: dict[str, Any] = {}

    if path is not None:
        try:
            with open(path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Unable to load cache config {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Cache config {path} must contain a mapping")
        values.update(loaded)

    values.update(overrides)

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        logger.warning("Ignoring unknown cache config keys: %s", ", ".join(unknown))

    kwargs = {k: v for k, v in values.items() if k in known}
    if "file_mode" in kwargs:
        kwargs["file_mode"] = _parse_mode(kwargs["file_mode"])
    for name in ("exclude", "ignore_headers"):
        if name in kwargs:
            kwargs[name] = tuple(kwargs[name] or ())

    try:
        return replace(Settings(), **kwargs)
    except ConfigError:
        raise
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid cache config: {e}") from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
