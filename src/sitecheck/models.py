"""
Data structures produced and consumed by the crawler and link validator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

# Page failure kinds
PAGE_ERROR = "page"
NAVIGATION_ERROR = "navigation"

# Link verdict categories
CATEGORY_SOCIAL = "social"
CATEGORY_BLOCKED = "blocked"
CATEGORY_EXTERNAL = "external"
CATEGORY_ERROR = "error"


@dataclass(frozen=True, slots=True)
class Anchor:
    """An <a href> read from the current page, in document order."""
    href: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class PageResult:
    """A page that could not be crawled."""
    url: str
    kind: str
    error: str
    status: Optional[int] = None


@dataclass(frozen=True, slots=True)
class LinkVerdict:
    """Outcome of validating one external link."""
    valid: bool
    category: str
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BrokenLink:
    """A link found on `source_page` that failed validation."""
    source_page: str
    link: str
    anchor_text: str
    category: str
    status: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_verdict(cls, source_page: str, anchor: Anchor, verdict: LinkVerdict) -> BrokenLink:
        return cls(
            source_page=source_page,
            link=anchor.href,
            anchor_text=anchor.text,
            category=verdict.category,
            status=verdict.status,
            error=verdict.error,
        )


@dataclass(frozen=True, slots=True)
class CrawlOptions:
    """Per-crawl traversal options."""
    max_pages: int = 50
    skip_external_links: bool = False
    exclude_patterns: Tuple[str, ...] = ()

    def is_excluded(self, url: str) -> bool:
        """Check if any exclude pattern is a substring of the URL."""
        return any(pattern in url for pattern in self.exclude_patterns)


@dataclass(frozen=True, slots=True)
class CrawlReport:
    """
    Final result of one crawl.

    `visited` holds every dequeued page (successful or not) in visit order,
    each URL once.
    """
    visited: Tuple[str, ...]
    errors: Tuple[PageResult, ...]
    broken_links: Tuple[BrokenLink, ...]

    @property
    def ok(self) -> bool:
        return not self.errors and not self.broken_links

    @property
    def page_errors(self) -> Tuple[PageResult, ...]:
        return tuple(e for e in self.errors if e.kind == PAGE_ERROR)

    @property
    def navigation_errors(self) -> Tuple[PageResult, ...]:
        return tuple(e for e in self.errors if e.kind == NAVIGATION_ERROR)
