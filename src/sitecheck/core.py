"""
Site crawling: LIFO traversal of internal pages with link validation.
"""
from __future__ import annotations

import sys
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

from sitecheck.drivers import BrowserDriver
from sitecheck.errors import SiteCheckError
from sitecheck.links import LinkValidator
from sitecheck.models import (
    CATEGORY_ERROR,
    NAVIGATION_ERROR,
    PAGE_ERROR,
    Anchor,
    BrokenLink,
    CrawlOptions,
    CrawlReport,
    PageResult,
)

DEFAULT_TIMEOUT_MS = 30000
POLITENESS_DELAY_S = 0.5

# href prefixes that never point at a page
SKIP_PREFIXES = ("mailto:", "tel:", "javascript:")


@dataclass(slots=True)
class CrawlState:
    """Frontier, visited set and accumulators owned by a single crawl call."""
    frontier: List[str] = field(default_factory=list)
    visited: Dict[str, None] = field(default_factory=dict)  # ordered set
    errors: List[PageResult] = field(default_factory=list)
    broken_links: List[BrokenLink] = field(default_factory=list)

    def is_known(self, url: str) -> bool:
        return url in self.visited or url in self.frontier

    def enqueue(self, url: str) -> bool:
        """Push a URL onto the frontier unless already visited or queued."""
        if self.is_known(url):
            return False
        self.frontier.append(url)
        return True

    def to_report(self) -> CrawlReport:
        return CrawlReport(
            visited=tuple(self.visited),
            errors=tuple(self.errors),
            broken_links=tuple(self.broken_links),
        )


def is_navigable_href(href: str) -> bool:
    """Check if an anchor href should be classified at all."""
    if not href or not href.strip():
        return False
    if href.startswith(SKIP_PREFIXES):
        return False
    # Any fragment drops the link, including links to other pages' sections
    return "#" not in href


def is_http_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


class SiteCrawler:
    """
    Crawls every internal page reachable from a start URL.

    Internal links (prefixed by `base_url`) are followed; external links are
    handed to the LinkValidator. Failures are recorded, never raised, so a
    crawl always runs until the frontier is empty or `max_pages` is reached.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        base_url: str,
        validator: Optional[LinkValidator] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        delay_s: float = POLITENESS_DELAY_S,
        verbose: bool = False,
    ) -> None:
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid base URL: {base_url}")
        self.driver = driver
        self.base_url = base_url
        self.validator = validator or LinkValidator(verbose=verbose)
        self.timeout_ms = timeout_ms
        self.delay_s = delay_s
        self.verbose = verbose

    def crawl(self, start_url: str, options: Optional[CrawlOptions] = None) -> CrawlReport:
        """
        Crawl the site starting from `start_url`.

        Args:
            start_url: First page to visit.
            options: Page budget, external link skipping and exclude patterns.

        Returns:
            CrawlReport with the visited pages, page errors and broken links.
        """
        if not is_http_url(start_url):
            raise ValueError(f"Invalid start URL: {start_url}")
        options = options or CrawlOptions()
        state = CrawlState(frontier=[start_url])

        if self.verbose:
            sys.stderr.write(f"Starting crawl from: {start_url}\n")
            sys.stderr.write(f"Max pages: {options.max_pages}\n\n")

        while state.frontier and len(state.visited) < options.max_pages:
            url = state.frontier.pop()

            if url in state.visited:
                continue
            if options.is_excluded(url):
                if self.verbose:
                    sys.stderr.write(f"\n  ⊘ EXCLUDED {url}")
                continue

            self._crawl_page(state, url, options)
            state.visited[url] = None
            time.sleep(self.delay_s)

        if self.verbose:
            sys.stderr.write("\n\n")

        return state.to_report()

    def _crawl_page(self, state: CrawlState, url: str, options: CrawlOptions) -> None:
        try:
            status = self.driver.navigate(url, self.timeout_ms)
        except SiteCheckError as e:
            state.errors.append(PageResult(url=url, kind=NAVIGATION_ERROR, error=str(e)))
            if self.verbose:
                sys.stderr.write(f"\n  ✗ ERROR {url}: {e}")
            return

        if status >= 400:
            state.errors.append(
                PageResult(url=url, kind=PAGE_ERROR, error=f"HTTP {status}", status=status)
            )
            if self.verbose:
                sys.stderr.write(f"\n  ✗ {status} {url}")
            return

        try:
            anchors = [a for a in self.driver.extract_anchors() if is_navigable_href(a.href)]
        except SiteCheckError as e:
            state.errors.append(PageResult(url=url, kind=NAVIGATION_ERROR, error=str(e)))
            return

        queued_before = len(state.frontier)
        for anchor in anchors:
            try:
                self._process_link(state, anchor, url, options)
            except (SiteCheckError, ValueError) as e:
                state.broken_links.append(BrokenLink(
                    source_page=url,
                    link=anchor.href,
                    anchor_text=anchor.text,
                    category=CATEGORY_ERROR,
                    error=str(e),
                ))

        if self.verbose:
            new_links = len(state.frontier) - queued_before
            sys.stderr.write(f"\n  → {status} {url} ({len(anchors)} links, +{new_links} queued)")
            sys.stderr.flush()

    def _process_link(
        self,
        state: CrawlState,
        anchor: Anchor,
        current_url: str,
        options: CrawlOptions,
    ) -> None:
        link = anchor.href
        if self.is_external(link):
            if options.skip_external_links:
                return
            verdict = self.validator.check_external_link(link, current_url, anchor.text)
            if not verdict.valid:
                state.broken_links.append(BrokenLink.from_verdict(current_url, anchor, verdict))
            return

        full_link = link if is_http_url(link) else urljoin(current_url, link)
        if full_link.startswith(self.base_url):
            state.enqueue(full_link)

    def is_external(self, link: str) -> bool:
        return is_http_url(link) and not link.startswith(self.base_url)


def crawl(
    driver: BrowserDriver,
    start_url: str,
    base_url: Optional[str] = None,
    options: Optional[CrawlOptions] = None,
    validator: Optional[LinkValidator] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    delay_s: float = POLITENESS_DELAY_S,
    verbose: bool = False,
) -> CrawlReport:
    """Crawl with a one-off SiteCrawler; `base_url` defaults to `start_url`."""
    crawler = SiteCrawler(
        driver,
        base_url or start_url,
        validator=validator,
        timeout_ms=timeout_ms,
        delay_s=delay_s,
        verbose=verbose,
    )
    return crawler.crawl(start_url, options)
