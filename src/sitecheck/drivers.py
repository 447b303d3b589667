"""
Browser drivers: the navigation and anchor-extraction surface the crawler consumes.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, SoupStrainer

from sitecheck.errors import NavigationError
from sitecheck.models import Anchor

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)

# Reads href as resolved by the browser, like HTMLAnchorElement.href
ANCHORS_SCRIPT = """
anchors => anchors.map(a => ({ href: a.href, text: (a.textContent || '').trim() }))
"""


class BrowserDriver(Protocol):
    """What the crawler needs from a browser."""

    def navigate(self, url: str, timeout_ms: int) -> int:
        """Load `url` and return its HTTP status. Raises NavigationError."""
        ...

    def extract_anchors(self) -> List[Anchor]:
        """Return the current page's anchors in document order."""
        ...

    def title(self) -> str:
        ...

    def body_text(self) -> str:
        ...

    def close(self) -> None:
        ...

    def __enter__(self) -> BrowserDriver:
        ...

    def __exit__(self, *exc: Any) -> None:
        ...


class RequestsDriver:
    """Plain HTTP driver: requests for fetching, BeautifulSoup for parsing."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.session = session or requests.Session()
        if user_agent:
            self.session.headers["User-Agent"] = user_agent
        self._url: Optional[str] = None
        self._html = ""

    def navigate(self, url: str, timeout_ms: int) -> int:
        try:
            resp = self.session.get(url, timeout=timeout_ms / 1000, allow_redirects=True)
        except requests.RequestException as e:
            raise NavigationError(str(e)) from e

        self._url = resp.url or url
        content_type = (resp.headers.get("content-type") or "").lower()
        # Non-HTML responses have no anchors
        self._html = resp.text if "html" in content_type else ""
        return resp.status_code

    def extract_anchors(self) -> List[Anchor]:
        if not self._html or self._url is None:
            return []
        soup = BeautifulSoup(self._html, "lxml", parse_only=LINK_STRAINER)
        anchors = []
        for a in soup.find_all("a", href=True):
            href = a["href"].strip()
            try:
                resolved = urljoin(self._url, href) if href else ""
            except ValueError:
                # Browsers keep unparseable hrefs as written
                resolved = href
            anchors.append(Anchor(href=resolved, text=a.get_text().strip()))
        return anchors

    def title(self) -> str:
        if not self._html:
            return ""
        soup = BeautifulSoup(self._html, "lxml")
        if soup.title and soup.title.string:
            return soup.title.string.strip()
        return ""

    def body_text(self) -> str:
        if not self._html:
            return ""
        soup = BeautifulSoup(self._html, "lxml")
        body = soup.body
        return body.get_text(separator=" ", strip=True) if body else ""

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> RequestsDriver:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class PlaywrightDriver:
    """
    Headless Chromium driver.

    Playwright is imported lazily so the requests driver and the test suite
    don't need a browser installed.
    """

    def __init__(self, headless: bool = True, ignore_https_errors: bool = True) -> None:
        from playwright.sync_api import sync_playwright  # noqa: PLC0415

        self._pw = sync_playwright().start()
        try:
            self._browser = self._pw.chromium.launch(
                headless=headless,
                args=["--disable-dev-shm-usage", "--no-sandbox", "--disable-setuid-sandbox"],
            )
            self._context = self._browser.new_context(
                ignore_https_errors=ignore_https_errors,
                viewport={"width": 1280, "height": 720},
            )
            self.page = self._context.new_page()
        except Exception:
            # Stopping playwright also shuts down a launched browser
            self._pw.stop()
            raise

    def navigate(self, url: str, timeout_ms: int) -> int:
        from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415

        try:
            response = self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(e.message) from e
        if response is None:
            raise NavigationError(f"No response for {url}")
        return response.status

    def extract_anchors(self) -> List[Anchor]:
        from playwright.sync_api import Error as PlaywrightError  # noqa: PLC0415

        try:
            raw = self.page.eval_on_selector_all("a[href]", ANCHORS_SCRIPT)
        except PlaywrightError as e:
            raise NavigationError(e.message) from e
        return [Anchor(href=item["href"], text=item["text"]) for item in raw]

    def title(self) -> str:
        return self.page.title()

    def body_text(self) -> str:
        return self.page.text_content("body") or ""

    def close(self) -> None:
        self._context.close()
        self._browser.close()
        self._pw.stop()

    def __enter__(self) -> PlaywrightDriver:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def make_driver(name: str, user_agent: Optional[str] = None) -> BrowserDriver:
    """Build a driver by name ("requests" or "playwright")."""
    if name == "requests":
        return RequestsDriver(user_agent=user_agent)
    if name == "playwright":
        return PlaywrightDriver()
    raise ValueError(f"Unknown driver: {name}")
