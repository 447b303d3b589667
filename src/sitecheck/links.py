"""
External link validation: HEAD probe first, GET fallback when HEAD is rejected.
"""
from __future__ import annotations

import sys
from typing import Dict, Iterable, Optional, Tuple
from urllib.parse import urlparse

import requests

from sitecheck.errors import MethodNotAllowedError, ProbeError
from sitecheck.models import (
    CATEGORY_BLOCKED,
    CATEGORY_EXTERNAL,
    CATEGORY_SOCIAL,
    LinkVerdict,
)

# Domains that reject automated probes even for legitimate links
SOCIAL_MEDIA_DOMAINS: Tuple[str, ...] = (
    "linkedin.com",
    "facebook.com",
    "instagram.com",
    "twitter.com",
    "x.com",
)

HEAD_TIMEOUT_MS = 8000
GET_TIMEOUT_MS = 6000

BROKEN_STATUS = 400
ANTI_BOT_STATUS = 999  # LinkedIn and friends answer bots with 999

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "pt-PT,pt;q=0.9,en;q=0.8",
    "DNT": "1",
    "Connection": "keep-alive",
}


class Prober:
    """Issues a single request and returns the final HTTP status code."""

    method = "GET"

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.session = session or requests.Session()

    def probe(self, url: str, timeout_ms: int, headers: Dict[str, str]) -> int:
        try:
            resp = self.session.request(
                self.method,
                url,
                headers=headers,
                timeout=timeout_ms / 1000,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            raise ProbeError(str(e)) from e
        resp.close()
        return resp.status_code


class HeadProber(Prober):
    """Header-only probe. Raises MethodNotAllowedError when the server rejects HEAD."""

    method = "HEAD"

    def probe(self, url: str, timeout_ms: int, headers: Dict[str, str]) -> int:
        status = super().probe(url, timeout_ms, headers)
        if status == 405:
            raise MethodNotAllowedError(url)
        return status


class GetProber(Prober):
    """Full content-fetching probe."""

    method = "GET"


def host_matches(url: str, domains: Iterable[str]) -> bool:
    """Check if the URL host is one of `domains` or a subdomain of one."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    for domain in domains:
        domain = domain.lower()
        if host == domain or host.endswith("." + domain):
            return True
    return False


def is_method_not_allowed(error: Exception) -> bool:
    """Check if a probe failure signals that the request method was rejected."""
    if isinstance(error, MethodNotAllowedError):
        return True
    message = str(error)
    return "Method Not Allowed" in message or "405" in message


class LinkValidator:
    """
    Decides whether an external link is reachable.

    Links on social media domains are assumed valid without a request. Other
    links get a HEAD probe (8 s); if the server rejects HEAD the link is
    retried once with GET (6 s). Any other probe failure marks the link broken.
    """

    def __init__(
        self,
        social_media_domains: Iterable[str] = SOCIAL_MEDIA_DOMAINS,
        head_prober: Optional[Prober] = None,
        get_prober: Optional[Prober] = None,
        headers: Optional[Dict[str, str]] = None,
        verbose: bool = False,
    ) -> None:
        self.social_media_domains = tuple(social_media_domains)
        self.head_prober = head_prober or HeadProber()
        self.get_prober = get_prober or GetProber(self.head_prober.session)
        self.headers = dict(headers or DEFAULT_HEADERS)
        self.verbose = verbose

    def check_external_link(
        self,
        link: str,
        source_page: str = "",
        anchor_text: str = "",
    ) -> LinkVerdict:
        """
        Validate one absolute external link.

        Args:
            link: Absolute URL to check.
            source_page: Page the link was found on (progress output only).
            anchor_text: Text of the anchor (progress output only).

        Returns:
            A LinkVerdict; `valid` is False only for a broken link.
        """
        if host_matches(link, self.social_media_domains):
            self._log(f"⚠ SOCIAL {link} (assumed valid)")
            return LinkVerdict(valid=True, category=CATEGORY_SOCIAL)

        try:
            status = self.head_prober.probe(link, HEAD_TIMEOUT_MS, self.headers)
        except ProbeError as e:
            if is_method_not_allowed(e):
                return self._try_get(link)
            self._log(f"✗ ERROR {link} on {source_page}: {e}")
            return LinkVerdict(valid=False, category=CATEGORY_EXTERNAL, error=str(e))

        return self._verdict(status, link, anchor_text)

    def _try_get(self, link: str) -> LinkVerdict:
        try:
            status = self.get_prober.probe(link, GET_TIMEOUT_MS, self.headers)
        except ProbeError as e:
            self._log(f"✗ ERROR {link} (GET fallback): {e}")
            return LinkVerdict(valid=False, category=CATEGORY_EXTERNAL, error=str(e))
        return self._verdict(status, link)

    def _verdict(self, status: int, link: str, anchor_text: str = "") -> LinkVerdict:
        if status == ANTI_BOT_STATUS:
            self._log(f"⚠ {status} {link} (anti-bot response)")
            return LinkVerdict(valid=True, category=CATEGORY_BLOCKED)
        if status >= BROKEN_STATUS:
            label = f' "{anchor_text}"' if anchor_text else ""
            self._log(f"✗ {status} {link}{label}")
            return LinkVerdict(valid=False, category=CATEGORY_EXTERNAL, status=status)
        self._log(f"→ {status} {link}")
        return LinkVerdict(valid=True, category=CATEGORY_EXTERNAL, status=status)

    def _log(self, line: str) -> None:
        if self.verbose:
            sys.stderr.write(f"\n    {line}")
            sys.stderr.flush()
