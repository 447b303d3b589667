"""Shared fakes: a scripted browser driver and scripted probers."""
from __future__ import annotations

from typing import Dict, List, Tuple, Union

import pytest

from sitecheck.errors import NavigationError
from sitecheck.links import LinkValidator, Prober
from sitecheck.models import Anchor

PageSpec = Union[Tuple[int, List[Anchor]], Exception]


class FakeDriver:
    """Serves scripted pages; unknown URLs return 404."""

    def __init__(self, pages: Dict[str, PageSpec]) -> None:
        self.pages = pages
        self.navigations: List[str] = []
        self.extractions: List[str] = []
        self._current = None
        self.page_title = ""
        self.page_body = ""

    def navigate(self, url: str, timeout_ms: int) -> int:
        self.navigations.append(url)
        spec = self.pages.get(url, (404, []))
        if isinstance(spec, Exception):
            raise spec
        self._current = url
        return spec[0]

    def extract_anchors(self) -> List[Anchor]:
        self.extractions.append(self._current)
        return list(self.pages[self._current][1])

    def title(self) -> str:
        return self.page_title

    def body_text(self) -> str:
        return self.page_body

    def close(self) -> None:
        pass

    def __enter__(self) -> FakeDriver:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class FakeProber(Prober):
    """Returns scripted statuses (or raises scripted errors); default 200."""

    def __init__(self, responses=None) -> None:
        self.responses = responses or {}
        self.calls: List[Tuple[str, int]] = []
        self.session = None

    def probe(self, url, timeout_ms, headers) -> int:
        self.calls.append((url, timeout_ms))
        result = self.responses.get(url, 200)
        if isinstance(result, Exception):
            raise result
        return result


def page(status: int = 200, *anchors: Tuple[str, str]) -> Tuple[int, List[Anchor]]:
    return status, [Anchor(href=href, text=text) for href, text in anchors]


@pytest.fixture
def head_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def get_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def validator(head_prober, get_prober) -> LinkValidator:
    return LinkValidator(head_prober=head_prober, get_prober=get_prober)


@pytest.fixture
def nav_error() -> NavigationError:
    return NavigationError("net::ERR_NAME_NOT_RESOLVED")
