"""
Exception types raised at the driver and prober boundaries.
"""
from __future__ import annotations

from typing import Optional


class SiteCheckError(Exception):
    """Base class for all sitecheck errors."""


class NavigationError(SiteCheckError):
    """The driver could not complete navigation (timeout, DNS, protocol error)."""


class ProbeError(SiteCheckError):
    """A HEAD/GET probe of an external link failed before producing a status."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class MethodNotAllowedError(ProbeError):
    """The server rejected the probe method itself (HTTP 405)."""

    def __init__(self, url: str) -> None:
        super().__init__(f"405 Method Not Allowed: {url}", status=405)
