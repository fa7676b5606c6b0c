"""Runtime configuration sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple
from urllib.parse import urlparse

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"
DEFAULT_PAGE_LIMIT = 300


@dataclass(frozen=True)
class BootstarterSettings:
    database_url: str = DEFAULT_DATABASE_URL
    default_page_limit: int = DEFAULT_PAGE_LIMIT
    debug: bool = False
    log_level: str = "INFO"
    api_title: str = "Bootstarter API"
    api_description: str = ""
    api_version: str = "1.0.0"
    api_versions: Tuple[str, ...] = ("1",)
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_url: Optional[str] = None

    @property
    def contact(self) -> Optional[dict]:
        """OpenAPI contact object, or None when no author data is configured."""
        data = {
            "name": self.contact_name,
            "email": self.contact_email,
            "url": self.contact_url,
        }
        data = {k: v for k, v in data.items() if v}
        return data or None


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _normalize_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _normalize_versions(value: str | None) -> Tuple[str, ...]:
    if not value:
        return ("1",)
    versions = []
    for raw in value.split(","):
        version = raw.strip().lstrip("vV")
        if version and version not in versions:
            versions.append(version)
    return tuple(versions) or ("1",)


def _absolute_url(value: str | None) -> Optional[str]:
    """Keep only absolute http(s) URLs; anything else is dropped."""
    if not value:
        return None
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return value
    return None


def _optional(value: str | None) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@lru_cache(maxsize=None)
def get_settings() -> BootstarterSettings:
    """Return the cached settings built from the current environment."""
    database_url = (
        os.getenv("BOOTSTARTER_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or DEFAULT_DATABASE_URL
    )
    page_limit = _normalize_int(os.getenv("BOOTSTARTER_DEFAULT_PAGE_LIMIT"), DEFAULT_PAGE_LIMIT)
    if page_limit <= 0:
        page_limit = DEFAULT_PAGE_LIMIT
    return BootstarterSettings(
        database_url=database_url,
        default_page_limit=page_limit,
        debug=_normalize_bool(os.getenv("BOOTSTARTER_DEBUG"), default=False),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        api_title=os.getenv("API_TITLE", "Bootstarter API"),
        api_description=os.getenv("API_DESCRIPTION", ""),
        api_version=os.getenv("API_VERSION", "1.0.0"),
        api_versions=_normalize_versions(os.getenv("API_VERSIONS")),
        contact_name=_optional(os.getenv("API_AUTHOR_NAME")),
        contact_email=_optional(os.getenv("API_AUTHOR_EMAIL")),
        contact_url=_absolute_url(os.getenv("API_AUTHOR_URL")),
    )


def debug_enabled() -> bool:
    """Verbose mode: patch mapping re-raises conversion failures."""
    return get_settings().debug


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()
