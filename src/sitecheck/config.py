"""
Settings resolved from environment variables (and an optional `.env` file).

Every field can be overridden by the matching variable; CLI flags in turn
override these values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from sitecheck.checks import CRITICAL_PAGES
from sitecheck.core import DEFAULT_TIMEOUT_MS
from sitecheck.links import SOCIAL_MEDIA_DOMAINS
from sitecheck.models import CrawlOptions

DEFAULT_BASE_URL = "https://www.carloschaves.com"
DEFAULT_MAX_PAGES = 50


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_list(name: str, default: Tuple[str, ...] = ()) -> Tuple[str, ...]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass
class Settings:
    base_url: str = field(
        default_factory=lambda: os.environ.get("BASE_URL") or DEFAULT_BASE_URL
    )
    max_pages: int = field(
        default_factory=lambda: _env_int("MAX_PAGES", DEFAULT_MAX_PAGES)
    )
    # Page navigation timeout in milliseconds
    timeout: int = field(
        default_factory=lambda: _env_int("TIMEOUT", DEFAULT_TIMEOUT_MS)
    )
    skip_external_links: bool = field(
        default_factory=lambda: os.environ.get("SKIP_EXTERNAL") == "true"
    )
    exclude_patterns: Tuple[str, ...] = field(
        default_factory=lambda: _env_list("EXCLUDE_PATTERNS")
    )
    social_media_domains: Tuple[str, ...] = field(
        default_factory=lambda: _env_list("SOCIAL_MEDIA_DOMAINS", SOCIAL_MEDIA_DOMAINS)
    )
    critical_pages: Tuple[str, ...] = field(
        default_factory=lambda: _env_list("CRITICAL_PAGES", CRITICAL_PAGES)
    )

    def crawl_options(self) -> CrawlOptions:
        return CrawlOptions(
            max_pages=self.max_pages,
            skip_external_links=self.skip_external_links,
            exclude_patterns=self.exclude_patterns,
        )


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load `.env` (without overriding the real environment) and build Settings."""
    load_dotenv(env_file or Path.cwd() / ".env", override=False)
    return Settings()
