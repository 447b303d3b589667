"""Tests for SiteCrawler traversal, filtering and classification."""
from __future__ import annotations

import pytest

from conftest import FakeDriver, page
from sitecheck.core import CrawlState, SiteCrawler, crawl, is_navigable_href
from sitecheck.errors import NavigationError, ProbeError
from sitecheck.models import CrawlOptions

BASE = "https://example.com"
START = "https://example.com/"


def make_crawler(driver, validator, base_url=BASE):
    return SiteCrawler(driver, base_url, validator=validator, delay_s=0)


class TestIsNavigableHref:
    @pytest.mark.parametrize("href", [
        "",
        "   ",
        "mailto:a@b.com",
        "tel:+351123456789",
        "javascript:void(0)",
        "#top",
        "https://example.com/page#section",
        "https://external.test/docs#install",
    ])
    def test_filtered(self, href):
        assert not is_navigable_href(href)

    @pytest.mark.parametrize("href", ["/about", "https://example.com/contact", "page.html?x=1"])
    def test_kept(self, href):
        assert is_navigable_href(href)


class TestCrawlState:
    def test_enqueue_skips_known_urls(self):
        state = CrawlState(frontier=["a"])
        state.visited["b"] = None

        assert state.enqueue("a") is False
        assert state.enqueue("b") is False
        assert state.enqueue("c") is True
        assert state.frontier == ["a", "c"]


class TestScenarios:
    def _driver(self):
        return FakeDriver({
            START: page(
                200,
                ("/about", "About"),
                ("https://example.com/contact", "Contact"),
                ("https://external.test/x", "External"),
                ("mailto:a@b.com", "Mail"),
            ),
            "https://example.com/about": page(200),
            "https://example.com/contact": page(200),
        })

    def test_mixed_anchors(self, validator, head_prober):
        driver = self._driver()
        report = make_crawler(driver, validator).crawl(START)

        assert set(report.visited) == {
            START,
            "https://example.com/about",
            "https://example.com/contact",
        }
        assert report.broken_links == ()
        assert report.errors == ()
        assert report.ok
        assert head_prober.calls == [("https://external.test/x", 8000)]

    def test_lifo_order(self, validator):
        driver = self._driver()
        report = make_crawler(driver, validator).crawl(START)

        # Last discovered link is visited first
        assert report.visited == (
            START,
            "https://example.com/contact",
            "https://example.com/about",
        )

    def test_broken_external_link(self, validator, head_prober):
        head_prober.responses["https://external.test/x"] = 404
        report = make_crawler(self._driver(), validator).crawl(START)

        assert len(report.broken_links) == 1
        broken = report.broken_links[0]
        assert broken.source_page == START
        assert broken.link == "https://external.test/x"
        assert broken.anchor_text == "External"
        assert broken.status == 404
        assert broken.category == "external"
        assert not report.ok


class TestTraversal:
    def test_max_pages_bounds_visited(self, validator):
        pages = {
            f"{BASE}/p{i}": page(200, (f"{BASE}/p{i + 1}", "next"))
            for i in range(10)
        }
        driver = FakeDriver(pages)
        report = make_crawler(driver, validator).crawl(f"{BASE}/p0", CrawlOptions(max_pages=3))

        assert report.visited == (f"{BASE}/p0", f"{BASE}/p1", f"{BASE}/p2")
        assert len(driver.navigations) == 3

    def test_pages_visited_once(self, validator):
        driver = FakeDriver({
            START: page(200, ("/a", "A"), ("/b", "B")),
            f"{BASE}/a": page(200, ("/b", "B"), ("/", "Home")),
            f"{BASE}/b": page(200, ("/a", "A"), ("/", "Home")),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert sorted(report.visited) == sorted([START, f"{BASE}/a", f"{BASE}/b"])
        assert len(driver.navigations) == 3

    def test_excluded_urls_not_navigated_or_counted(self, validator):
        driver = FakeDriver({
            START: page(200, ("/a", "A"), ("/b", "B"), ("/private/x", "Private")),
            f"{BASE}/a": page(200),
            f"{BASE}/b": page(200),
        })
        options = CrawlOptions(max_pages=3, exclude_patterns=("/private",))
        report = make_crawler(driver, validator).crawl(START, options)

        assert f"{BASE}/private/x" not in driver.navigations
        assert f"{BASE}/private/x" not in report.visited
        assert len(report.visited) == 3

    def test_relative_links_resolve_against_current_page(self, validator):
        driver = FakeDriver({
            START: page(200, ("/docs/", "Docs")),
            f"{BASE}/docs/": page(200, ("intro", "Intro")),
            f"{BASE}/docs/intro": page(200),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert f"{BASE}/docs/intro" in report.visited

    def test_relative_link_outside_base_is_ignored(self, validator):
        driver = FakeDriver({START: page(200, ("//other.test/page", "Other"))})
        report = make_crawler(driver, validator).crawl(START)

        assert report.visited == (START,)

    def test_filtered_anchors_never_classified(self, validator, head_prober):
        driver = FakeDriver({
            START: page(
                200,
                ("https://external.test/page#frag", "Fragment"),
                ("https://example.com/about#team", "Team"),
                ("javascript:void(0)", "JS"),
                ("tel:123", "Phone"),
                ("", "Empty"),
            ),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert report.visited == (START,)
        assert head_prober.calls == []

    def test_delay_after_each_page(self, validator, monkeypatch):
        sleeps = []
        monkeypatch.setattr("sitecheck.core.time.sleep", sleeps.append)
        driver = FakeDriver({START: page(200, ("/a", "A")), f"{BASE}/a": page(200)})

        SiteCrawler(driver, BASE, validator=validator).crawl(START)

        assert sleeps == [0.5, 0.5]


class TestExternalLinks:
    def test_skip_external_links_makes_no_calls(self, validator, head_prober):
        head_prober.responses["https://external.test/x"] = 500
        driver = FakeDriver({START: page(200, ("https://external.test/x", "Ext"))})
        report = make_crawler(driver, validator).crawl(START, CrawlOptions(skip_external_links=True))

        assert head_prober.calls == []
        assert report.broken_links == ()

    def test_social_link_makes_no_calls(self, validator, head_prober):
        driver = FakeDriver({START: page(200, ("https://www.linkedin.com/in/me", "LinkedIn"))})
        report = make_crawler(driver, validator).crawl(START)

        assert head_prober.calls == []
        assert report.ok

    def test_probe_error_recorded_with_message(self, validator, head_prober):
        head_prober.responses["https://external.test/x"] = ProbeError("Read timed out")
        driver = FakeDriver({START: page(200, ("https://external.test/x", "Ext"))})
        report = make_crawler(driver, validator).crawl(START)

        assert report.broken_links[0].error == "Read timed out"
        assert report.broken_links[0].status is None


class TestFailures:
    def test_page_error_skips_link_extraction(self, validator):
        driver = FakeDriver({
            START: page(200, ("/missing", "Missing")),
            f"{BASE}/missing": page(404, ("/never", "Never")),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert driver.extractions == [START]
        assert len(report.errors) == 1
        error = report.errors[0]
        assert error.url == f"{BASE}/missing"
        assert error.kind == "page"
        assert error.status == 404
        assert error.error == "HTTP 404"
        assert f"{BASE}/missing" in report.visited
        assert report.page_errors == (error,)

    def test_navigation_error_does_not_abort(self, validator, nav_error):
        driver = FakeDriver({
            START: page(200, ("/down", "Down"), ("/up", "Up")),
            f"{BASE}/down": nav_error,
            f"{BASE}/up": page(200),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert f"{BASE}/up" in report.visited
        assert f"{BASE}/down" in report.visited
        assert report.navigation_errors[0].url == f"{BASE}/down"
        assert report.navigation_errors[0].error == "net::ERR_NAME_NOT_RESOLVED"
        assert report.navigation_errors[0].status is None

    def test_malformed_relative_link_recorded_and_crawl_continues(self, validator):
        driver = FakeDriver({
            START: page(200, ("//[broken", "Bad"), ("/ok", "Ok")),
            f"{BASE}/ok": page(200),
        })
        report = make_crawler(driver, validator).crawl(START)

        assert len(report.broken_links) == 1
        assert report.broken_links[0].category == "error"
        assert report.broken_links[0].link == "//[broken"
        assert f"{BASE}/ok" in report.visited

    def test_start_page_failure_returns_report(self, validator):
        driver = FakeDriver({START: NavigationError("Timeout 30000ms exceeded")})
        report = make_crawler(driver, validator).crawl(START)

        assert report.visited == (START,)
        assert report.errors[0].kind == "navigation"


class TestValidation:
    def test_invalid_base_url(self, validator):
        with pytest.raises(ValueError):
            SiteCrawler(FakeDriver({}), "example.com", validator=validator)

    def test_invalid_start_url(self, validator):
        with pytest.raises(ValueError):
            make_crawler(FakeDriver({}), validator).crawl("ftp://example.com/")


def test_crawl_function_defaults_base_to_start(validator):
    driver = FakeDriver({START: page(200, ("/a", "A")), f"{BASE}/a": page(200)})
    report = crawl(driver, START, validator=validator, delay_s=0)

    assert set(report.visited) == {START, f"{BASE}/a"}


def test_crawls_are_isolated(validator):
    driver = FakeDriver({START: page(200, ("/a", "A")), f"{BASE}/a": page(200)})
    crawler = make_crawler(driver, validator)

    first = crawler.crawl(START)
    second = crawler.crawl(START)

    assert first == second
    assert len(driver.navigations) == 4
