"""
Quick page checks: critical pages and homepage sanity.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sitecheck.drivers import BrowserDriver
from sitecheck.errors import SiteCheckError

CRITICAL_PAGES = ("/cv/", "/", "/case-studies/")
MIN_BODY_LENGTH = 100


@dataclass(frozen=True, slots=True)
class PageCheck:
    """Outcome of loading one critical page."""
    path: str
    url: str
    status: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 200


@dataclass(slots=True)
class HomepageResult:
    url: str
    status: Optional[int] = None
    title: str = ""
    body_length: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def join_path(base_url: str, path: str) -> str:
    """Append a site path to the base URL without doubling the slash."""
    if base_url.endswith("/") and path.startswith("/"):
        return base_url + path[1:]
    return base_url + path


def check_critical_pages(
    driver: BrowserDriver,
    base_url: str,
    paths: Iterable[str] = CRITICAL_PAGES,
    timeout_ms: int = 30000,
    verbose: bool = False,
) -> List[PageCheck]:
    """Load each critical path; a page passes only with HTTP 200."""
    results = []
    for path in paths:
        url = join_path(base_url, path)
        try:
            status = driver.navigate(url, timeout_ms)
        except SiteCheckError as e:
            results.append(PageCheck(path=path, url=url, error=str(e)))
            if verbose:
                sys.stderr.write(f"  ✗ ERROR {path}: {e}\n")
            continue
        results.append(PageCheck(path=path, url=url, status=status))
        if verbose:
            marker = "→" if status == 200 else "✗"
            sys.stderr.write(f"  {marker} {status} {path}\n")
    return results


def check_homepage(
    driver: BrowserDriver,
    base_url: str,
    timeout_ms: int = 30000,
    min_body_length: int = MIN_BODY_LENGTH,
) -> HomepageResult:
    """Homepage must return 200, carry a title and have some body text."""
    result = HomepageResult(url=base_url)
    try:
        result.status = driver.navigate(base_url, timeout_ms)
    except SiteCheckError as e:
        result.failures.append(f"Navigation failed: {e}")
        return result

    if result.status != 200:
        result.failures.append(f"Expected HTTP 200, got {result.status}")
        return result

    result.title = driver.title()
    result.body_length = len(driver.body_text())
    if not result.title:
        result.failures.append("Page has no title")
    if result.body_length <= min_body_length:
        result.failures.append(
            f"Body text too short ({result.body_length} <= {min_body_length} characters)"
        )
    return result
